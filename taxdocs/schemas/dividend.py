"""
Pydantic schemas for JSON output.

Mirror the domain dataclasses so results can be serialised with
``model_validate(result).model_dump_json()``. Decimal amounts serialise
as strings to keep cents exact.
"""
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from taxdocs.models import (
    ClassificationMethod,
    DocumentFormat,
    DocumentType,
    Provenance,
    RecommendedAction,
    RegistryProvider,
)


class _FromAttributes(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class ParsedDividendSchema(_FromAttributes):
    """A parsed dividend statement."""

    company_name: str = Field(..., description="Issuing company")
    asx_code: Optional[str] = Field(None, description="ASX ticker")
    company_abn: Optional[str] = Field(None, description="Issuer ABN, digits only")
    company_acn: Optional[str] = Field(None, description="Issuer ACN, digits only")
    dividend_amount: Decimal = Field(..., description="Gross dividend")
    franked_amount: Decimal = Field(..., description="Franked part of the dividend")
    unfranked_amount: Decimal = Field(..., description="Unfranked part of the dividend")
    franking_credits: Decimal = Field(..., description="Franking credits attached")
    franking_percentage: int = Field(..., ge=0, le=100, description="Franked share of the dividend")
    shares_held: int = Field(..., ge=0, description="Shares or units held")
    dividend_per_share: Decimal = Field(..., description="Dividend per share in dollars")
    payment_date: str = Field(..., description="Payment date (YYYY-MM-DD)")
    record_date: str = Field(..., description="Record date (YYYY-MM-DD)")
    statement_date: Optional[str] = Field(None, description="Statement date (YYYY-MM-DD)")
    financial_year: str = Field(..., description="Australian financial year (YYYY-YYYY)")
    provider: RegistryProvider = Field(..., description="Share registry")
    confidence: float = Field(..., ge=0, le=1, description="Extraction confidence (0-1)")
    extraction_errors: List[str] = Field(default_factory=list)
    field_provenance: Dict[str, Provenance] = Field(
        default_factory=dict, description="Whether each field was read or derived"
    )


class ParseResultSchema(_FromAttributes):
    """Outcome of parsing one statement."""

    success: bool
    provider: RegistryProvider
    dividend: Optional[ParsedDividendSchema] = None
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    processing_time_ms: float = Field(0.0, description="Processing time in milliseconds")


class BatchParseResultSchema(_FromAttributes):
    """Outcome of parsing several statements."""

    total: int
    successful: int
    failed: int
    results: List[ParseResultSchema]
    dividends: List[ParsedDividendSchema]
    total_dividend_amount: Decimal
    total_franking_credits: Decimal
    total_processing_time_ms: float = 0.0


class TaxYearSummarySchema(_FromAttributes):
    """Dividend income for one financial year."""

    financial_year: str
    total_dividend: Decimal
    total_franked: Decimal
    total_unfranked: Decimal
    total_franking_credits: Decimal
    gross_income: Decimal = Field(..., description="Dividends plus franking credits")
    count: int


class DocumentMetadataSchema(_FromAttributes):
    """Evidence gathered during classification."""

    detected_keywords: List[str] = Field(default_factory=list)
    format: DocumentFormat = DocumentFormat.TEXT
    page_count: Optional[int] = None
    has_amounts: bool = False
    has_dates: bool = False
    has_abn: bool = False


class ClassificationSchema(_FromAttributes):
    """Classification of one document."""

    type: DocumentType
    confidence: float = Field(..., ge=0, le=1)
    method: ClassificationMethod
    metadata: DocumentMetadataSchema
    scores: Dict[DocumentType, float] = Field(default_factory=dict, description="Raw score per type")


class DetectionExportSchema(BaseModel):
    """One row of a classification export."""

    file: str = Field(..., description="Source file path")
    type: DocumentType
    confidence: float
    method: ClassificationMethod
    recommended_action: RecommendedAction


class DocumentResultSchema(_FromAttributes):
    """Classification and, for dividend statements, the parse outcome."""

    filename: str
    classification: ClassificationSchema
    parse_result: Optional[ParseResultSchema] = None
    errors: List[str] = Field(default_factory=list)
