"""
Numeric parser for amounts printed on dividend statements.

Handles the formats found on Australian registry statements:
- Currency: $1,234.56, A$1,234.56, AUD 1,234.56
- Negative: (123.45), -123.45
- Cents: 215 cents, 21.5c, 215¢
- Percentages: 100%
- Share counts: 1,500
"""
import re
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional

import structlog

logger = structlog.get_logger(__name__)

CENTS = Decimal("0.01")
HUNDRED = Decimal("100")


def to_cents(value: Decimal) -> Decimal:
    """Quantise a dollar value to whole cents, rounding half up."""
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


@dataclass
class ParsedNumber:
    """Result of parsing a numeric string."""

    value: Optional[Decimal]
    raw_value: str
    is_negative: bool = False
    is_cents: bool = False
    currency: Optional[str] = None
    is_percentage: bool = False


class NumericParser:
    """
    Parser for statement amounts, percentages and share counts.

    Commas are always thousands separators and a period is always the
    decimal point. Values written in cents are converted to dollars.
    """

    CURRENCY_PREFIXES = ("AUD", "A$", "$")

    PARENTHESES_PATTERN = re.compile(r"^\s*\(([^)]+)\)\s*$")
    CENTS_PATTERN = re.compile(r"\s*(?:cents?|c|¢)\s*$", re.IGNORECASE)
    PERCENTAGE_PATTERN = re.compile(r"\s*%\s*$")
    NUMBER_PATTERN = re.compile(r"^(?:\d{1,3}(?:,\d{3})+|\d+)(?:\.\d+)?$|^\.\d+$")
    SHARE_COUNT_PATTERN = re.compile(r"^(?:\d{1,3}(?:,\d{3})+|\d+)$")

    def parse(self, value_str: str) -> ParsedNumber:
        """
        Parse a string value into a numeric result.

        Args:
            value_str: The string to parse.

        Returns:
            ParsedNumber with the value in dollars, or ``value=None``.
        """
        if not value_str or not value_str.strip():
            return ParsedNumber(value=None, raw_value=value_str or "")

        original = value_str
        value_str = value_str.strip()

        is_negative = False
        paren_match = self.PARENTHESES_PATTERN.match(value_str)
        if paren_match:
            value_str = paren_match.group(1).strip()
            is_negative = True

        if value_str.startswith("-"):
            is_negative = True
            value_str = value_str[1:].strip()
        elif value_str.startswith("+"):
            value_str = value_str[1:].strip()

        currency = None
        for prefix in self.CURRENCY_PREFIXES:
            if value_str.upper().startswith(prefix):
                currency = prefix
                value_str = value_str[len(prefix):].strip()
                break

        is_percentage = False
        if self.PERCENTAGE_PATTERN.search(value_str):
            is_percentage = True
            value_str = self.PERCENTAGE_PATTERN.sub("", value_str)

        is_cents = False
        if not is_percentage and self.CENTS_PATTERN.search(value_str):
            is_cents = True
            value_str = self.CENTS_PATTERN.sub("", value_str)

        parsed_value = self._parse_number(value_str)
        if parsed_value is not None:
            if is_cents:
                parsed_value = parsed_value / HUNDRED
            if is_negative:
                parsed_value = -parsed_value

        return ParsedNumber(
            value=parsed_value,
            raw_value=original,
            is_negative=is_negative,
            is_cents=is_cents,
            currency=currency,
            is_percentage=is_percentage,
        )

    def _parse_number(self, value_str: str) -> Optional[Decimal]:
        """
        Parse a cleaned numeric string into a Decimal.

        Args:
            value_str: Cleaned string containing only the number.

        Returns:
            Parsed Decimal, or None when the string is not a number.
        """
        value_str = value_str.replace(" ", "")
        if not self.NUMBER_PATTERN.match(value_str):
            return None

        try:
            return Decimal(value_str.replace(",", ""))
        except (InvalidOperation, ValueError) as e:
            logger.warning("number_parse_failed", value=value_str, error=str(e))
            return None

    def parse_amount(self, value_str: str) -> Optional[Decimal]:
        """Parse a dollar amount, quantised to cents."""
        value = self.parse(value_str).value
        return None if value is None else to_cents(value)

    def parse_share_count(self, value_str: str) -> Optional[int]:
        """
        Parse a whole number of shares or units.

        Args:
            value_str: Count such as ``"1,500"``.

        Returns:
            The count, or None for anything that is not a whole number.
        """
        if not value_str:
            return None
        cleaned = value_str.strip().replace(" ", "")
        if not self.SHARE_COUNT_PATTERN.match(cleaned):
            return None
        return int(cleaned.replace(",", ""))

    def parse_batch(self, values: list[str]) -> list[ParsedNumber]:
        """
        Parse multiple values.

        Args:
            values: List of strings to parse.

        Returns:
            List of ParsedNumber results.
        """
        return [self.parse(v) for v in values]


def get_numeric_parser() -> NumericParser:
    """Create a NumericParser."""
    return NumericParser()
