"""
Confidence scoring for parsed dividend statements.

Confidence is a weighted completeness score over the fields that matter
for a tax return. Explicit values earn their full weight, values derived
by a fallback rule earn DERIVED_CREDIT of it, missing values earn nothing.
"""
from typing import Dict, Optional

import structlog

from taxdocs.models import Extracted, ExtractedFields, Provenance

logger = structlog.get_logger(__name__)

DERIVED_CREDIT = 0.5

FIELD_WEIGHTS: Dict[str, float] = {
    "company_name": 0.15,
    "asx_code": 0.10,
    "gross_amount": 0.25,
    "franking_breakdown": 0.20,
    "shares_held": 0.10,
    "payment_date": 0.20,
}

BREAKDOWN_FIELDS = ("franked_amount", "unfranked_amount", "franking_credits")


def _credit(value: Optional[Extracted]) -> float:
    if value is None:
        return 0.0
    return 1.0 if value.provenance == Provenance.EXPLICIT else DERIVED_CREDIT


class ConfidenceScorer:
    """
    Score how completely a statement was read.

    Works on the reconciled fields, so every value carries the provenance
    recorded by the parser.
    """

    def __init__(self, weights: Optional[Dict[str, float]] = None):
        self._weights = dict(weights or FIELD_WEIGHTS)

    def score(self, fields: ExtractedFields) -> float:
        """
        Compute a confidence score in [0, 1].

        The franking breakdown is explicit only when the franked and
        unfranked amounts and the franking credits were all read from
        the statement; any missing or derived part makes it derived.

        Args:
            fields: Reconciled statement fields.

        Returns:
            Confidence rounded to two decimal places.
        """
        credits = {
            "company_name": _credit(fields.company_name),
            "asx_code": _credit(fields.asx_code),
            "gross_amount": _credit(fields.gross_amount),
            "franking_breakdown": self._breakdown_credit(fields),
            "shares_held": _credit(fields.shares_held),
            "payment_date": _credit(fields.payment_date),
        }

        total = sum(self._weights.get(name, 0.0) * credit for name, credit in credits.items())
        confidence = round(min(max(total, 0.0), 1.0), 2)

        logger.debug("confidence_scored", confidence=confidence)
        return confidence

    @staticmethod
    def _breakdown_credit(fields: ExtractedFields) -> float:
        parts = [getattr(fields, name) for name in BREAKDOWN_FIELDS]
        if all(part is None for part in parts):
            return 0.0
        if all(part is not None and part.is_explicit for part in parts):
            return 1.0
        return DERIVED_CREDIT
