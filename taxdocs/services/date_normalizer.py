"""
Date and financial-year normalizer.

Parses the date formats printed on Australian statements into ``date``
objects and maps dates onto Australian financial years
(1 July to 30 June, labelled ``"YYYY-YYYY"``).
"""
import re
from datetime import date
from typing import Optional, Tuple, Union

import structlog

logger = structlog.get_logger(__name__)

FINANCIAL_YEAR_START_MONTH = 7

MONTH_NAMES = (
    r"jan(?:uary)?|feb(?:ruary)?|mar(?:ch)?|apr(?:il)?|may|june?|july?"
    r"|aug(?:ust)?|sep(?:t(?:ember)?)?|oct(?:ober)?|nov(?:ember)?|dec(?:ember)?"
)

# Any date a statement may print, for embedding in label patterns
DATE_VALUE_PATTERN = (
    r"\d{4}-\d{2}-\d{2}"
    r"|\d{1,2}[/.\-]\d{1,2}[/.\-](?:\d{4}|\d{2})(?!\d)"
    rf"|(?:{MONTH_NAMES})\.?[ \t]+\d{{1,2}}(?:st|nd|rd|th)?,?[ \t]+\d{{4}}"
    rf"|\d{{1,2}}(?:st|nd|rd|th)?[ \t]+(?:{MONTH_NAMES})\.?,?[ \t]+\d{{4}}"
)

FINANCIAL_YEAR_LABEL = re.compile(r"^(\d{4})-(\d{4})$")


class DateNormalizer:
    """
    Parse statement dates and derive financial years.

    Supported formats:
    - ISO: 2024-03-15
    - Numeric day-first: 15/03/2024, 15-03-2024, 15.03.2024, 15/03/24
    - Month name: March 15, 2024 / 15 March 2024 / 15 Mar 2024
    """

    ISO_PATTERN = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
    NUMERIC_PATTERN = re.compile(r"^(\d{1,2})[/.\-](\d{1,2})[/.\-](\d{4}|\d{2})$")
    MONTH_FIRST_PATTERN = re.compile(
        rf"^({MONTH_NAMES})\.?\s+(\d{{1,2}})(?:st|nd|rd|th)?,?\s+(\d{{4}})$",
        re.IGNORECASE,
    )
    DAY_FIRST_PATTERN = re.compile(
        rf"^(\d{{1,2}})(?:st|nd|rd|th)?\s+({MONTH_NAMES})\.?,?\s+(\d{{4}})$",
        re.IGNORECASE,
    )

    MONTH_MAP = {
        "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
        "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
    }

    def parse_date(self, value: Optional[str]) -> Optional[date]:
        """
        Parse a statement date.

        Args:
            value: Date text as printed.

        Returns:
            The date, or None when the text is not a valid calendar date.
        """
        if not value or not value.strip():
            return None

        text = value.strip()

        match = self.ISO_PATTERN.match(text)
        if match:
            return self._build(int(match.group(1)), int(match.group(2)), int(match.group(3)), text)

        match = self.NUMERIC_PATTERN.match(text)
        if match:
            day, month, year = match.groups()
            return self._build(self._parse_year(year), int(month), int(day), text)

        match = self.MONTH_FIRST_PATTERN.match(text)
        if match:
            month_name, day, year = match.groups()
            return self._build(int(year), self.MONTH_MAP[month_name[:3].lower()], int(day), text)

        match = self.DAY_FIRST_PATTERN.match(text)
        if match:
            day, month_name, year = match.groups()
            return self._build(int(year), self.MONTH_MAP[month_name[:3].lower()], int(day), text)

        return None

    def to_iso(self, value: Optional[str]) -> Optional[str]:
        """Parse a statement date and render it as ``YYYY-MM-DD``."""
        parsed = self.parse_date(value)
        return parsed.isoformat() if parsed else None

    def financial_year(self, value: Union[str, date]) -> str:
        """
        Financial year label for a date.

        Args:
            value: A ``date`` or an ISO ``YYYY-MM-DD`` string.

        Returns:
            ``"2023-2024"`` for any date from 1 July 2023 to 30 June 2024.

        Raises:
            ValueError: If a string value is not a valid date.
        """
        day = value if isinstance(value, date) else self.parse_date(value)
        if day is None:
            raise ValueError(f"Not a valid date: {value!r}")

        start_year = day.year if day.month >= FINANCIAL_YEAR_START_MONTH else day.year - 1
        return f"{start_year}-{start_year + 1}"

    def financial_year_bounds(self, label: str) -> Tuple[date, date]:
        """
        First and last day of a financial year.

        Raises:
            ValueError: If the label is not ``"YYYY-YYYY"`` with consecutive years.
        """
        match = FINANCIAL_YEAR_LABEL.match(label.strip()) if label else None
        if not match or int(match.group(2)) != int(match.group(1)) + 1:
            raise ValueError(f"Not a financial year label: {label!r}")

        start_year = int(match.group(1))
        return date(start_year, FINANCIAL_YEAR_START_MONTH, 1), date(start_year + 1, 6, 30)

    def _parse_year(self, year_str: str) -> int:
        """Parse year from string (handles 2-digit and 4-digit)."""
        year = int(year_str)
        if year < 100:
            year = 2000 + year if year < 50 else 1900 + year
        return year

    @staticmethod
    def _build(year: int, month: int, day: int, raw: str) -> Optional[date]:
        try:
            return date(year, month, day)
        except ValueError:
            logger.debug("invalid_calendar_date", value=raw)
            return None


def get_date_normalizer() -> DateNormalizer:
    """Create a DateNormalizer."""
    return DateNormalizer()
