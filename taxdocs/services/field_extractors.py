"""
Field extractors for dividend statement text.

Each extractor looks for one field using an ordered list of label
patterns and returns an ``Extracted`` value or None. Extractors are
independent: a field that cannot be found never stops another from being
extracted. Label synonyms are pooled across registries, so the same
patterns serve Computershare, Link, Boardroom and company-issued
statements.
"""
import re
from decimal import Decimal
from typing import FrozenSet, Iterable, List, Optional, Pattern, Tuple

import structlog

from taxdocs.models import Extracted, ExtractedFields
from taxdocs.services.date_normalizer import DATE_VALUE_PATTERN, DateNormalizer
from taxdocs.services.numeric_parser import NumericParser, to_cents
from taxdocs.validation.validators import normalize_identifier

logger = structlog.get_logger(__name__)

# Optional ":" or "-" between a label and its value
SEP = r"[ \t]*[:\-]?[ \t]*"
# Dollar amount, always with two decimals
MONEY = r"\$?[ \t]*((?:\d{1,3}(?:,\d{3})+|\d+)\.\d{2})\b"
# Whole share or unit count
COUNT = r"(\d{1,3}(?:,\d{3})+|\d+)\b(?!\.\d)"
# Per-share value in dollars or cents
PER_SHARE = r"(\$?[ \t]*\d[\d,]*(?:\.\d+)?(?:[ \t]*(?:cents?\b|c\b|¢))?)"
DATE = rf"({DATE_VALUE_PATTERN})"
ABN_VALUE = r"(\d{2}[ \t]?\d{3}[ \t]?\d{3}[ \t]?\d{3})\b"

# Source tag suffix for per-share values printed in cents
CENTS_SOURCE_SUFFIX = " (cents)"

LabelPatterns = List[Tuple[str, Pattern[str]]]


def _labels(*entries: Tuple[str, str], flags: int = re.IGNORECASE) -> LabelPatterns:
    return [(label, re.compile(regex, flags)) for label, regex in entries]


class DividendFieldExtractor:
    """
    Extract dividend statement fields from plain text.

    Example:
        >>> fields = DividendFieldExtractor().extract(text)
        >>> fields.gross_amount.value
        Decimal('1075.00')
    """

    COMPANY_LABEL_PATTERNS = _labels(
        ("company", r"^[ \t]*(?:company(?:[ \t]+name)?|issuer|security[ \t]+name|entity)[ \t]*:[ \t]*(\S.*?)[ \t]*$"),
        flags=re.IGNORECASE | re.MULTILINE,
    )
    # Case-sensitive: company suffixes are capitalised on statements
    COMPANY_SUFFIX_PATTERN = re.compile(
        r"^[ \t]*([A-Z][A-Za-z0-9&.,'() \t\-]*?[ \t](?:Limited|LIMITED|Ltd|LTD|Corporation|CORPORATION"
        r"|Group|GROUP|Trust|TRUST|Inc|INC|PLC))\.?[ \t]*$",
        re.MULTILINE,
    )
    COMPANY_HOLDING_PATTERN = re.compile(
        r"\bholdings?[ \t]+in[ \t]+([A-Z][A-Za-z0-9&.' \t\-]+?)[ \t]*(?:$|[,.(])",
        re.MULTILINE,
    )
    REGISTRY_BRANDING = re.compile(
        r"computer\s?share|link\s*market\s*services|link\s+(?:administration|group)|board\s?room",
        re.IGNORECASE,
    )

    ASX_CODE_PATTERNS = _labels(
        ("asx code", rf"(?i:\basx(?:[ \t]+code)?){SEP}([A-Z]{{3,5}})\b"),
        ("security code", rf"(?i:\bsecurity[ \t]+code){SEP}([A-Z]{{3,5}})\b"),
        ("code", rf"^[ \t]*(?i:code|ticker){SEP}([A-Z]{{3,5}})\b"),
        flags=re.MULTILINE,
    )

    COMPANY_ABN_PATTERN = re.compile(rf"\b(?:company|issuer)[ \t]+ABN{SEP}{ABN_VALUE}", re.IGNORECASE)
    ABN_PATTERN = re.compile(rf"\bABN{SEP}{ABN_VALUE}", re.IGNORECASE)
    ACN_PATTERNS = _labels(
        ("acn", r"\b(?:ACN|Australian[ \t]+Company[ \t]+Number)" + SEP + r"(\d{3}[ \t]?\d{3}[ \t]?\d{3})\b"),
    )

    GROSS_AMOUNT_PATTERNS = _labels(
        ("gross dividend", rf"\b(?:gross|total)[ \t]+(?:dividend|distribution)(?:[ \t]+amount)?{SEP}{MONEY}"),
        # Lookbehinds skip the "Franked Dividend Amount" part labels
        ("dividend amount", rf"(?<!franked )(?<!franked\t)\bdividend[ \t]+(?:paid|amount){SEP}{MONEY}"),
        ("amount payable", rf"\b(?:total[ \t]+)?amount[ \t]+payable{SEP}{MONEY}"),
        ("total payment", rf"\btotal[ \t]+payment{SEP}{MONEY}"),
        ("dividend", rf"^[ \t]*dividend{SEP}{MONEY}"),
        flags=re.IGNORECASE | re.MULTILINE,
    )
    FRANKED_AMOUNT_PATTERNS = _labels(
        ("franked amount", rf"(?<!un-)\bfranked[ \t]+(?:amount|dividend(?:[ \t]+amount)?){SEP}{MONEY}"),
        ("fully franked", rf"\bfully[ \t]+franked{SEP}{MONEY}"),
        ("franked", rf"(?<!un-)\bfranked{SEP}{MONEY}"),
    )
    UNFRANKED_AMOUNT_PATTERNS = _labels(
        ("unfranked amount", rf"\bun-?franked[ \t]+(?:amount|dividend(?:[ \t]+amount)?){SEP}{MONEY}"),
        ("unfranked", rf"\bun-?franked{SEP}{MONEY}"),
    )
    FRANKING_CREDIT_PATTERNS = _labels(
        ("franking credits", rf"\bfranking[ \t]+(?:credits?|offsets?)(?:[ \t]+amount)?{SEP}{MONEY}"),
        ("imputation credits", rf"\bimputation[ \t]+credits?{SEP}{MONEY}"),
        ("credit entitlement", rf"\bcredit[ \t]+entitlement{SEP}{MONEY}"),
    )
    # "Franked at 30%" states the company tax rate, not the franked share
    FRANKING_PERCENTAGE_PATTERNS = _labels(
        ("franking percentage", rf"\bfranking[ \t]+percentage{SEP}(\d{{1,3}}(?:\.\d+)?)[ \t]*%?"),
        ("percent franked", r"\b(\d{1,3}(?:\.\d+)?)[ \t]*%[ \t]+franked\b"),
    )
    FULLY_FRANKED_PATTERN = re.compile(r"\bfully[ \t]+franked\b", re.IGNORECASE)

    DIVIDEND_PER_SHARE_PATTERNS = _labels(
        ("dividend per share", rf"\b(?:dividend|distribution)[ \t]+per[ \t]+(?:share|unit|security){SEP}{PER_SHARE}"),
        ("cents per share", r"\b(\d+(?:\.\d+)?[ \t]*cents?)[ \t]+per[ \t]+(?:share|unit)\b"),
        ("dps", rf"\bDPS{SEP}{PER_SHARE}"),
    )
    SHARES_HELD_PATTERNS = _labels(
        ("shares held", rf"\b(?:shares|units|securities)[ \t]+held{SEP}{COUNT}"),
        ("number of shares", rf"\bnumber[ \t]+of[ \t]+(?:shares|units|securities){SEP}{COUNT}"),
        ("holding", rf"\bholding{SEP}{COUNT}[ \t]+(?:shares|units|securities)\b"),
        ("shares", rf"^[ \t]*(?:shares|units){SEP}{COUNT}"),
        flags=re.IGNORECASE | re.MULTILINE,
    )

    PAYMENT_DATE_PATTERNS = _labels(
        ("payment date", rf"\b(?:payment|pay|distribution)[ \t]+date{SEP}{DATE}"),
        ("date paid", rf"\b(?:date[ \t]+paid|paid[ \t]+on){SEP}{DATE}"),
    )
    RECORD_DATE_PATTERNS = _labels(
        ("record date", rf"\b(?:record|entitlement)[ \t]+date{SEP}{DATE}"),
    )
    STATEMENT_DATE_PATTERNS = _labels(
        ("statement date", rf"\b(?:statement[ \t]+date|date[ \t]+of[ \t]+statement){SEP}{DATE}"),
    )

    def __init__(
        self,
        registry_abns: Iterable[str] = (),
        numeric_parser: Optional[NumericParser] = None,
        date_normalizer: Optional[DateNormalizer] = None,
    ):
        """
        Initialize field extractor.

        Args:
            registry_abns: ABNs of share registries, skipped when looking
                for the issuing company's ABN.
            numeric_parser: Parser for amounts and counts.
            date_normalizer: Parser for statement dates.
        """
        self._registry_abns: FrozenSet[str] = frozenset(normalize_identifier(a) for a in registry_abns)
        self._numbers = numeric_parser or NumericParser()
        self._dates = date_normalizer or DateNormalizer()

    def extract(self, text: str) -> ExtractedFields:
        """
        Run every field extractor over a statement.

        Args:
            text: Full statement text.

        Returns:
            ExtractedFields with None for every field that was not found.
        """
        text = text or ""
        fields = ExtractedFields(
            company_name=self.extract_company_name(text),
            asx_code=self.extract_asx_code(text),
            abn=self.extract_abn(text),
            acn=self.extract_acn(text),
            gross_amount=self._extract_amount(text, self.GROSS_AMOUNT_PATTERNS),
            franked_amount=self._extract_amount(text, self.FRANKED_AMOUNT_PATTERNS),
            unfranked_amount=self._extract_amount(text, self.UNFRANKED_AMOUNT_PATTERNS),
            franking_credits=self._extract_amount(text, self.FRANKING_CREDIT_PATTERNS),
            franking_percentage=self.extract_franking_percentage(text),
            shares_held=self.extract_shares_held(text),
            dividend_per_share=self.extract_dividend_per_share(text),
            payment_date=self._extract_date(text, self.PAYMENT_DATE_PATTERNS),
            record_date=self._extract_date(text, self.RECORD_DATE_PATTERNS),
            statement_date=self._extract_date(text, self.STATEMENT_DATE_PATTERNS),
        )
        logger.debug("fields_extracted", fields=sorted(fields.provenance_map()))
        return fields

    # =========================================================================
    # Identity
    # =========================================================================

    def extract_company_name(self, text: str) -> Optional[Extracted[str]]:
        """
        Find the issuing company's name.

        Tries a labelled line first ("Company:", "Issuer:"), then a line
        ending in a company suffix that is not registry branding, then a
        "holding in <name>" phrase.
        """
        found = self._first(text, self.COMPANY_LABEL_PATTERNS)
        if found:
            label, match = found
            return Extracted(value=match.group(1).strip(), source=label)

        for match in self.COMPANY_SUFFIX_PATTERN.finditer(text):
            name = match.group(1).strip()
            if not self.REGISTRY_BRANDING.search(name):
                return Extracted(value=name, source="company suffix")

        match = self.COMPANY_HOLDING_PATTERN.search(text)
        if match and not self.REGISTRY_BRANDING.search(match.group(1)):
            return Extracted(value=match.group(1).strip(), source="holding in")

        return None

    def extract_asx_code(self, text: str) -> Optional[Extracted[str]]:
        found = self._first(text, self.ASX_CODE_PATTERNS)
        if not found:
            return None
        label, match = found
        return Extracted(value=match.group(1).upper(), source=label)

    def extract_abn(self, text: str) -> Optional[Extracted[str]]:
        """
        Find the issuing company's ABN.

        A "Company ABN" or "Issuer ABN" label wins outright. Otherwise the
        first ABN that does not belong to a share registry is used, falling
        back to the last ABN on the statement.
        """
        match = self.COMPANY_ABN_PATTERN.search(text)
        if match:
            return Extracted(value=normalize_identifier(match.group(1)), source="company abn")

        candidates = [normalize_identifier(m.group(1)) for m in self.ABN_PATTERN.finditer(text)]
        if not candidates:
            return None

        for abn in candidates:
            if abn not in self._registry_abns:
                return Extracted(value=abn, source="abn")
        return Extracted(value=candidates[-1], source="abn")

    def extract_acn(self, text: str) -> Optional[Extracted[str]]:
        found = self._first(text, self.ACN_PATTERNS)
        if not found:
            return None
        label, match = found
        return Extracted(value=normalize_identifier(match.group(1)), source=label)

    # =========================================================================
    # Amounts
    # =========================================================================

    def extract_franking_percentage(self, text: str) -> Optional[Extracted[Decimal]]:
        found = self._first(text, self.FRANKING_PERCENTAGE_PATTERNS)
        if found:
            label, match = found
            value = Decimal(match.group(1))
            if value <= 100:
                return Extracted(value=value, source=label)

        if self.FULLY_FRANKED_PATTERN.search(text):
            return Extracted(value=Decimal("100"), source="fully franked")
        return None

    def extract_dividend_per_share(self, text: str) -> Optional[Extracted[Decimal]]:
        """
        Find the dividend per share in dollars.

        Values printed in cents ("215 cents", "21.5c") are converted and
        tagged with CENTS_SOURCE_SUFFIX in their source.
        """
        for label, regex in self.DIVIDEND_PER_SHARE_PATTERNS:
            for match in regex.finditer(text):
                parsed = self._numbers.parse(match.group(1))
                if parsed.value is None or parsed.value < 0:
                    continue
                source = label + CENTS_SOURCE_SUFFIX if parsed.is_cents else label
                return Extracted(value=parsed.value, source=source)
        return None

    def extract_shares_held(self, text: str) -> Optional[Extracted[int]]:
        for label, regex in self.SHARES_HELD_PATTERNS:
            for match in regex.finditer(text):
                count = self._numbers.parse_share_count(match.group(1))
                if count is not None:
                    return Extracted(value=count, source=label)
        return None

    def _extract_amount(self, text: str, patterns: LabelPatterns) -> Optional[Extracted[Decimal]]:
        for label, regex in patterns:
            for match in regex.finditer(text):
                amount = self._numbers.parse_amount(match.group(1))
                if amount is not None:
                    return Extracted(value=to_cents(amount), source=label)
        return None

    # =========================================================================
    # Dates
    # =========================================================================

    def _extract_date(self, text: str, patterns: LabelPatterns) -> Optional[Extracted[str]]:
        for label, regex in patterns:
            for match in regex.finditer(text):
                iso = self._dates.to_iso(match.group(1))
                if iso:
                    return Extracted(value=iso, source=label)
        return None

    @staticmethod
    def _first(text: str, patterns: LabelPatterns) -> Optional[Tuple[str, "re.Match[str]"]]:
        for label, regex in patterns:
            match = regex.search(text)
            if match:
                return label, match
        return None
