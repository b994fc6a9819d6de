"""
Dividend statement parser.

Turns the text of an Australian dividend statement into a ParsedDividend:
detects the share registry, extracts fields, reconciles amounts and dates
with fallback rules, derives the financial year and scores confidence.

Every fallback is reported as a warning on the result. The only hard
failure is a statement with no derivable dividend amount.
"""
import time
from dataclasses import replace
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, List, Optional, Tuple

import structlog

from taxdocs.config import Settings, get_settings
from taxdocs.models import Extracted, ExtractedFields, ParsedDividend, ParseResult, RegistryProvider
from taxdocs.services.confidence import ConfidenceScorer
from taxdocs.services.date_normalizer import DateNormalizer
from taxdocs.services.field_extractors import CENTS_SOURCE_SUFFIX, DividendFieldExtractor
from taxdocs.services.numeric_parser import to_cents
from taxdocs.services.provider_detector import ProviderDetector
from taxdocs.validation.validators import validate_abn, validate_acn

logger = structlog.get_logger(__name__)

UNKNOWN_COMPANY = "Unknown Company"

# Per-share values above this may have been printed in cents
CENTS_HEURISTIC_THRESHOLD = Decimal("10")

ZERO = Decimal("0.00")
HUNDRED = Decimal("100")


def calculate_franking_credits(franked_amount: Decimal, company_tax_rate: Decimal = Decimal("0.30")) -> Decimal:
    """
    Franking credits attached to a franked amount.

    Args:
        franked_amount: Franked part of the dividend.
        company_tax_rate: Corporate tax rate the dividend was franked at.

    Returns:
        ``franked * rate / (1 - rate)`` rounded to the cent.
    """
    return to_cents(franked_amount * company_tax_rate / (1 - company_tax_rate))


def calculate_franking_percentage(franked_amount: Decimal, dividend_amount: Decimal) -> int:
    """Franked share of a dividend as a whole percentage, 0 for a nil dividend."""
    if dividend_amount == 0:
        return 0
    ratio = franked_amount / dividend_amount * HUNDRED
    return int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class DividendStatementParser:
    """
    Parse dividend statement text into structured, reconciled facts.

    Parsing is deterministic: the same text always gives the same result,
    apart from ``processing_time_ms``. The clock is only read when a
    statement carries no date at all.
    """

    def __init__(
        self,
        detector: Optional[ProviderDetector] = None,
        extractor: Optional[DividendFieldExtractor] = None,
        scorer: Optional[ConfidenceScorer] = None,
        date_normalizer: Optional[DateNormalizer] = None,
        settings: Optional[Settings] = None,
        today: Callable[[], date] = date.today,
    ):
        """
        Initialize dividend statement parser.

        Args:
            detector: Share registry detector.
            extractor: Field extractor. Defaults to one that skips the
                detector's registry ABNs.
            scorer: Confidence scorer.
            date_normalizer: Financial year calculator.
            settings: Tax rate and raw text limit.
            today: Clock used for the last-resort payment date.
        """
        self._settings = settings or get_settings()
        self._detector = detector or ProviderDetector()
        self._dates = date_normalizer or DateNormalizer()
        self._extractor = extractor or DividendFieldExtractor(
            registry_abns=self._detector.registry_abns,
            date_normalizer=self._dates,
        )
        self._scorer = scorer or ConfidenceScorer()
        self._today = today

    @property
    def detector(self) -> ProviderDetector:
        return self._detector

    def parse(self, text: str) -> ParseResult:
        """
        Parse a single dividend statement.

        Args:
            text: Full statement text.

        Returns:
            ParseResult with the dividend on success, or errors on failure.
        """
        start = time.perf_counter()
        text = text or ""
        errors: List[str] = []
        warnings: List[str] = []

        provider = self._detector.detect(text)
        fields = self._extractor.extract(text)

        company_name = self._check_identity(fields, warnings)
        dps = self._resolve_dividend_per_share(fields, warnings)

        gross = self._resolve_gross(fields, dps, warnings)
        if gross is None:
            errors.append("Could not extract dividend amount")
            logger.warning("dividend_parse_failed", provider=provider.value, errors=errors)
            return ParseResult(
                success=False,
                provider=provider,
                errors=errors,
                warnings=warnings,
                processing_time_ms=self._elapsed_ms(start),
            )

        franked, unfranked = self._resolve_split(gross, fields, warnings)
        credits = self._resolve_franking_credits(fields, franked, warnings)
        payment_date, record_date = self._resolve_dates(fields, warnings)

        reconciled = replace(
            fields,
            gross_amount=gross,
            franked_amount=franked,
            unfranked_amount=unfranked,
            franking_credits=credits,
            dividend_per_share=dps,
            payment_date=payment_date,
            record_date=record_date,
        )

        dividend = ParsedDividend(
            company_name=company_name,
            asx_code=fields.asx_code.value if fields.asx_code else None,
            company_abn=fields.abn.value if fields.abn else None,
            company_acn=fields.acn.value if fields.acn else None,
            dividend_amount=gross.value,
            franked_amount=franked.value,
            unfranked_amount=unfranked.value,
            franking_credits=credits.value,
            franking_percentage=calculate_franking_percentage(franked.value, gross.value),
            shares_held=fields.shares_held.value if fields.shares_held else 0,
            dividend_per_share=dps.value if dps else ZERO,
            payment_date=payment_date.value,
            record_date=record_date.value,
            statement_date=fields.statement_date.value if fields.statement_date else None,
            financial_year=self._dates.financial_year(payment_date.value),
            provider=provider,
            confidence=self._scorer.score(reconciled),
            raw_text=text[: self._settings.raw_text_limit],
            extraction_errors=list(errors),
            field_provenance=reconciled.provenance_map(),
        )

        logger.info(
            "dividend_parsed",
            provider=provider.value,
            company=dividend.company_name,
            amount=str(dividend.dividend_amount),
            confidence=dividend.confidence,
            warnings=len(warnings),
        )

        return ParseResult(
            success=True,
            provider=provider,
            dividend=dividend,
            errors=errors,
            warnings=warnings,
            processing_time_ms=self._elapsed_ms(start),
        )

    def detect_provider(self, text: str) -> RegistryProvider:
        return self._detector.detect(text)

    # =========================================================================
    # Reconciliation steps
    # =========================================================================

    def _check_identity(self, fields: ExtractedFields, warnings: List[str]) -> str:
        if fields.abn and not validate_abn(fields.abn.value):
            warnings.append(f"ABN {fields.abn.value} failed validation check")
        if fields.acn and not validate_acn(fields.acn.value):
            warnings.append(f"ACN {fields.acn.value} failed validation check")

        if fields.company_name is None:
            warnings.append(f"Could not extract company name, using '{UNKNOWN_COMPANY}'")
            return UNKNOWN_COMPANY
        return fields.company_name.value

    def _resolve_dividend_per_share(
        self, fields: ExtractedFields, warnings: List[str]
    ) -> Optional[Extracted[Decimal]]:
        """Convert a per-share value printed in cents to dollars."""
        dps = fields.dividend_per_share
        if dps is None:
            return None

        if dps.source.endswith(CENTS_SOURCE_SUFFIX):
            warnings.append("Dividend per share converted from cents to dollars")
            return dps

        gross = fields.gross_amount
        shares = fields.shares_held
        if (
            dps.value > CENTS_HEURISTIC_THRESHOLD
            and gross is not None
            and shares is not None
            and dps.value * shares.value > gross.value * 2
        ):
            warnings.append("Dividend per share converted from cents to dollars")
            return Extracted.derived(dps.value / HUNDRED, dps.source + CENTS_SOURCE_SUFFIX)

        return dps

    def _resolve_gross(
        self,
        fields: ExtractedFields,
        dps: Optional[Extracted[Decimal]],
        warnings: List[str],
    ) -> Optional[Extracted[Decimal]]:
        """
        Explicit gross, then franked + unfranked, then DPS x shares.

        A single stated part is only used as the gross when nothing else
        is available; the split step then derives the other part.
        """
        if fields.gross_amount is not None:
            return fields.gross_amount

        franked, unfranked = fields.franked_amount, fields.unfranked_amount
        if franked is not None and unfranked is not None:
            warnings.append("Gross dividend calculated from franked and unfranked amounts")
            return Extracted.derived(to_cents(franked.value + unfranked.value), "franked + unfranked")

        if dps is not None and fields.shares_held is not None:
            warnings.append("Gross dividend calculated from DPS and shares held")
            return Extracted.derived(to_cents(dps.value * fields.shares_held.value), "dps x shares")

        if franked is not None:
            warnings.append("Gross dividend taken from franked amount")
            return Extracted.derived(franked.value, "franked amount")
        if unfranked is not None:
            warnings.append("Gross dividend taken from unfranked amount")
            return Extracted.derived(unfranked.value, "unfranked amount")

        return None

    def _resolve_split(
        self,
        gross: Extracted[Decimal],
        fields: ExtractedFields,
        warnings: List[str],
    ) -> Tuple[Extracted[Decimal], Extracted[Decimal]]:
        """
        Reconcile franked and unfranked amounts against the gross dividend.

        The gross amount is never changed here: missing parts are the
        complement against it, and parts that disagree with it are
        adjusted so that franked + unfranked == gross.
        """
        total = gross.value
        franked, unfranked = fields.franked_amount, fields.unfranked_amount

        if franked is not None and unfranked is not None:
            if franked.value + unfranked.value == total:
                return franked, unfranked
            warnings.append(
                f"Franked ({franked.value}) and unfranked ({unfranked.value}) amounts "
                f"do not add up to the gross dividend ({total}), unfranked amount adjusted"
            )
            capped = self._capped(franked, total)
            return capped, Extracted.derived(total - capped.value, "gross - franked")

        if franked is not None:
            if franked.value > total:
                warnings.append(f"Franked amount ({franked.value}) exceeds the gross dividend ({total})")
            capped = self._capped(franked, total)
            if capped.value != total:
                warnings.append("Unfranked amount calculated from gross dividend and franked amount")
            return capped, Extracted.derived(total - capped.value, "gross - franked")

        if unfranked is not None:
            if unfranked.value > total:
                warnings.append(f"Unfranked amount ({unfranked.value}) exceeds the gross dividend ({total})")
            capped = self._capped(unfranked, total)
            if capped.value != total:
                warnings.append("Franked amount calculated from gross dividend and unfranked amount")
            return Extracted.derived(total - capped.value, "gross - unfranked"), capped

        percentage = fields.franking_percentage
        if percentage is None:
            warnings.append("Franking percentage not stated, assuming fully franked")
            rate = HUNDRED
        else:
            warnings.append("Franked and unfranked amounts calculated from franking percentage")
            rate = percentage.value

        franked_value = min(to_cents(total * rate / HUNDRED), total)
        return (
            Extracted.derived(franked_value, "franking percentage"),
            Extracted.derived(total - franked_value, "franking percentage"),
        )

    @staticmethod
    def _capped(part: Extracted[Decimal], total: Decimal) -> Extracted[Decimal]:
        if part.value <= total:
            return part
        return Extracted.derived(total, part.source)

    def _resolve_franking_credits(
        self,
        fields: ExtractedFields,
        franked: Extracted[Decimal],
        warnings: List[str],
    ) -> Extracted[Decimal]:
        if fields.franking_credits is not None:
            return fields.franking_credits

        if franked.value > 0:
            warnings.append("Franking credits calculated from franked amount")
            return Extracted.derived(
                calculate_franking_credits(franked.value, self._settings.company_tax_rate),
                "franked amount",
            )

        return Extracted.derived(ZERO, "no franked amount")

    def _resolve_dates(
        self, fields: ExtractedFields, warnings: List[str]
    ) -> Tuple[Extracted[str], Extracted[str]]:
        """Payment date falls back to record, statement, then today's date."""
        payment = fields.payment_date
        if payment is None:
            if fields.record_date is not None:
                warnings.append("Could not extract payment date, using record date")
                payment = Extracted.derived(fields.record_date.value, "record date")
            elif fields.statement_date is not None:
                warnings.append("Could not extract payment date, using statement date")
                payment = Extracted.derived(fields.statement_date.value, "statement date")
            else:
                warnings.append("Could not extract payment date, using current date")
                payment = Extracted.derived(self._today().isoformat(), "current date")

        record = fields.record_date
        if record is None:
            warnings.append("Record date not found, using payment date")
            record = Extracted.derived(payment.value, "payment date")

        return payment, record

    @staticmethod
    def _elapsed_ms(start: float) -> float:
        return round((time.perf_counter() - start) * 1000, 3)


def get_dividend_parser(settings: Optional[Settings] = None) -> DividendStatementParser:
    """Create a DividendStatementParser with default collaborators."""
    return DividendStatementParser(settings=settings)
