"""Pydantic schemas for serialising results."""
from taxdocs.schemas.dividend import (
    BatchParseResultSchema,
    ClassificationSchema,
    DetectionExportSchema,
    DocumentMetadataSchema,
    DocumentResultSchema,
    ParsedDividendSchema,
    ParseResultSchema,
    TaxYearSummarySchema,
)

__all__ = [
    "BatchParseResultSchema",
    "ClassificationSchema",
    "DetectionExportSchema",
    "DocumentMetadataSchema",
    "DocumentResultSchema",
    "ParsedDividendSchema",
    "ParseResultSchema",
    "TaxYearSummarySchema",
]
