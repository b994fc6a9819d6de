"""
Domain model for document classification and dividend statement parsing.

Implements the value objects passed between the pipeline stages:
- DocumentType / ClassificationResult for the document classifier
- RegistryProvider for the share-registry detector
- Extracted values with provenance (explicit vs derived)
- ParsedDividend, ParseResult and BatchParseResult envelopes
- ParserProgress events for batch progress reporting
- TaxYearSummary roll-ups

Every entity is created fresh per call and is never mutated afterwards.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Dict, Generic, List, Optional, TypeVar

T = TypeVar("T")


class DocumentType(str, Enum):
    """Financial document categories."""
    RECEIPT = "receipt"
    BANK_STATEMENT = "bank_statement"
    DIVIDEND_STATEMENT = "dividend_statement"
    INVOICE = "invoice"
    CONTRACT = "contract"
    UNKNOWN = "unknown"


class ClassificationMethod(str, Enum):
    """Which kind of evidence decided a classification."""
    KEYWORD = "keyword"      # Phrase indicators only
    PATTERN = "pattern"      # At least one regex indicator
    STRUCTURE = "structure"  # At least one co-occurrence indicator
    FALLBACK = "fallback"    # Nothing cleared the minimum score


class DocumentFormat(str, Enum):
    """Source format of the classified text."""
    PDF = "pdf"
    IMAGE = "image"
    TEXT = "text"


class RecommendedAction(str, Enum):
    """What a caller should do with a classification."""
    ACCEPT = "accept"
    REVIEW = "review"
    MANUAL = "manual"


class RegistryProvider(str, Enum):
    """Share registries that issue dividend statements."""
    COMPUTERSHARE = "computershare"
    LINK = "link"
    BOARDROOM = "boardroom"
    DIRECT = "direct"
    UNKNOWN = "unknown"


class Provenance(str, Enum):
    """Where an extracted value came from."""
    EXPLICIT = "explicit"  # Read directly from the statement text
    DERIVED = "derived"    # Computed by a fallback rule


class ParseStatus(str, Enum):
    """Stages reported through progress callbacks."""
    IDLE = "idle"
    READING = "reading"
    EXTRACTING = "extracting"
    PARSING = "parsing"
    COMPLETE = "complete"
    ERROR = "error"


# =============================================================================
# Classification
# =============================================================================

@dataclass(frozen=True)
class DocumentMetadata:
    """Evidence gathered while classifying a document."""
    detected_keywords: List[str] = field(default_factory=list)
    format: DocumentFormat = DocumentFormat.TEXT
    page_count: Optional[int] = None
    has_amounts: bool = False
    has_dates: bool = False
    has_abn: bool = False


@dataclass(frozen=True)
class ClassificationResult:
    """Best-matching document type for a block of text."""
    type: DocumentType
    confidence: float
    method: ClassificationMethod
    metadata: DocumentMetadata = field(default_factory=DocumentMetadata)
    scores: Dict[DocumentType, float] = field(default_factory=dict)


# =============================================================================
# Field extraction
# =============================================================================

@dataclass(frozen=True)
class Extracted(Generic[T]):
    """A field value tagged with its provenance."""
    value: T
    provenance: Provenance = Provenance.EXPLICIT
    source: str = ""

    @property
    def is_explicit(self) -> bool:
        return self.provenance == Provenance.EXPLICIT

    @classmethod
    def derived(cls, value: T, source: str) -> "Extracted[T]":
        return cls(value=value, provenance=Provenance.DERIVED, source=source)


@dataclass(frozen=True)
class ExtractedFields:
    """Independently optional fields pulled from a dividend statement."""
    company_name: Optional[Extracted[str]] = None
    asx_code: Optional[Extracted[str]] = None
    abn: Optional[Extracted[str]] = None
    acn: Optional[Extracted[str]] = None
    gross_amount: Optional[Extracted[Decimal]] = None
    franked_amount: Optional[Extracted[Decimal]] = None
    unfranked_amount: Optional[Extracted[Decimal]] = None
    franking_credits: Optional[Extracted[Decimal]] = None
    franking_percentage: Optional[Extracted[Decimal]] = None
    shares_held: Optional[Extracted[int]] = None
    dividend_per_share: Optional[Extracted[Decimal]] = None
    payment_date: Optional[Extracted[str]] = None
    record_date: Optional[Extracted[str]] = None
    statement_date: Optional[Extracted[str]] = None

    def provenance_map(self) -> Dict[str, Provenance]:
        """Provenance of every populated field, keyed by field name."""
        return {
            name: value.provenance
            for name, value in vars(self).items()
            if value is not None
        }


# =============================================================================
# Parse results
# =============================================================================

@dataclass(frozen=True)
class ParsedDividend:
    """One successfully parsed dividend statement."""
    company_name: str
    dividend_amount: Decimal
    franked_amount: Decimal
    unfranked_amount: Decimal
    franking_credits: Decimal
    franking_percentage: int
    shares_held: int
    dividend_per_share: Decimal
    payment_date: str
    record_date: str
    financial_year: str
    provider: RegistryProvider
    confidence: float
    raw_text: str = ""
    asx_code: Optional[str] = None
    company_abn: Optional[str] = None
    company_acn: Optional[str] = None
    statement_date: Optional[str] = None
    extraction_errors: List[str] = field(default_factory=list)
    field_provenance: Dict[str, Provenance] = field(default_factory=dict)


@dataclass(frozen=True)
class ParseResult:
    """Outcome of parsing a single statement."""
    success: bool
    provider: RegistryProvider
    dividend: Optional[ParsedDividend] = None
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    processing_time_ms: float = 0.0


@dataclass(frozen=True)
class BatchParseResult:
    """Aggregate outcome of parsing several statements."""
    total: int
    successful: int
    failed: int
    results: List[ParseResult]
    dividends: List[ParsedDividend]
    total_dividend_amount: Decimal
    total_franking_credits: Decimal
    total_processing_time_ms: float = 0.0


@dataclass(frozen=True)
class StatementInput:
    """Statement text to parse, named for progress reporting."""
    filename: str
    text: str


@dataclass(frozen=True)
class StatementFile:
    """Raw statement file bytes, named for progress reporting."""
    filename: str
    content: bytes


@dataclass(frozen=True)
class ExtractedText:
    """Output of the text extraction boundary."""
    text: str
    page_count: int


@dataclass(frozen=True)
class ParserProgress:
    """Progress event emitted while parsing documents."""
    status: ParseStatus
    progress: int  # 0-100
    message: str = ""
    page_count: Optional[int] = None
    index: Optional[int] = None
    total: Optional[int] = None
    filename: Optional[str] = None


@dataclass(frozen=True)
class TaxYearSummary:
    """Dividend income rolled up for one financial year."""
    financial_year: str
    total_dividend: Decimal
    total_franked: Decimal
    total_unfranked: Decimal
    total_franking_credits: Decimal
    gross_income: Decimal
    count: int


@dataclass(frozen=True)
class DocumentResult:
    """Classification (and, for dividend statements, parse) of one document."""
    filename: str
    classification: ClassificationResult
    parse_result: Optional[ParseResult] = None
    errors: List[str] = field(default_factory=list)
