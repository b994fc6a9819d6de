"""
Rule-based classifier for financial documents.

Scores extracted document text against a registry of weighted indicators
for each document type and picks the best-scoring type.

Scoring:
1. Each matched indicator adds its weight to its type's score
2. Scores below MIN_CLASSIFICATION_SCORE → unknown, confidence 0
3. Ties within TIE_EPSILON → most specific type wins
4. Confidence saturates with score: 1 - exp(-score / SATURATION_SCALE)
"""
import math
import re
from pathlib import PurePath
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

import structlog

from taxdocs.models import (
    ClassificationMethod,
    ClassificationResult,
    DocumentFormat,
    DocumentMetadata,
    DocumentType,
    RecommendedAction,
)
from taxdocs.services.patterns import (
    IndicatorKind,
    PatternRegistry,
    RegistryMatch,
    default_document_registry,
)

logger = structlog.get_logger(__name__)


MIN_CLASSIFICATION_SCORE = 2.0
TIE_EPSILON = 0.5
SATURATION_SCALE = 4.0

# Recommended action bands
ACCEPT_THRESHOLD = 0.8
REVIEW_THRESHOLD = 0.5

# Minimum confidence callers should act on without review
CONFIDENCE_ACCEPTABLE = 0.60

# Display bands
HIGH_CONFIDENCE = 0.85
MEDIUM_CONFIDENCE = 0.60

SPECIFICITY_ORDER = (
    DocumentType.DIVIDEND_STATEMENT,
    DocumentType.BANK_STATEMENT,
    DocumentType.INVOICE,
    DocumentType.CONTRACT,
    DocumentType.RECEIPT,
    DocumentType.UNKNOWN,
)

DOCUMENT_TYPE_LABELS = {
    DocumentType.RECEIPT: "Receipt",
    DocumentType.BANK_STATEMENT: "Bank Statement",
    DocumentType.DIVIDEND_STATEMENT: "Dividend Statement",
    DocumentType.INVOICE: "Invoice",
    DocumentType.CONTRACT: "Contract",
    DocumentType.UNKNOWN: "Unknown Document",
}

DOCUMENT_TYPE_ICONS = {
    DocumentType.RECEIPT: "Receipt",
    DocumentType.BANK_STATEMENT: "Banknote",
    DocumentType.DIVIDEND_STATEMENT: "TrendingUp",
    DocumentType.INVOICE: "FileText",
    DocumentType.CONTRACT: "FileSignature",
    DocumentType.UNKNOWN: "FileQuestion",
}

IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".gif", ".bmp", ".tif", ".tiff", ".webp", ".heic"}

AMOUNT_PATTERN = re.compile(r"\$\s?\d[\d,]*(?:\.\d{2})?|\b\d{1,3}(?:,\d{3})*\.\d{2}\b")
DATE_PATTERN = re.compile(
    r"\b\d{1,2}[/.\-]\d{1,2}[/.\-]\d{2,4}\b"
    r"|\b\d{4}-\d{2}-\d{2}\b"
    r"|\b\d{1,2}\s+(?:jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)[a-z]*\.?\s+\d{4}\b"
    r"|\b(?:jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)[a-z]*\.?\s+\d{1,2},?\s+\d{4}\b",
    re.IGNORECASE,
)
ABN_PATTERN = re.compile(r"\bABN\b|\b\d{2}\s?\d{3}\s?\d{3}\s?\d{3}\b")


def label_for(document_type: DocumentType) -> str:
    """Human-readable label for a document type."""
    return DOCUMENT_TYPE_LABELS.get(document_type, DOCUMENT_TYPE_LABELS[DocumentType.UNKNOWN])


def icon_for(document_type: DocumentType) -> str:
    """Icon name for a document type."""
    return DOCUMENT_TYPE_ICONS.get(document_type, DOCUMENT_TYPE_ICONS[DocumentType.UNKNOWN])


def is_confidence_acceptable(confidence: float) -> bool:
    return confidence >= CONFIDENCE_ACCEPTABLE


def confidence_level(confidence: float) -> str:
    """Bucket a confidence into "high", "medium" or "low"."""
    if confidence >= HIGH_CONFIDENCE:
        return "high"
    if confidence >= MEDIUM_CONFIDENCE:
        return "medium"
    return "low"


def recommended_action(result: ClassificationResult) -> RecommendedAction:
    """
    Decide what to do with a classification.

    Args:
        result: Classification to act on.

    Returns:
        ACCEPT at or above ACCEPT_THRESHOLD, REVIEW at or above
        REVIEW_THRESHOLD, MANUAL otherwise or for unknown documents.
    """
    if result.type == DocumentType.UNKNOWN:
        return RecommendedAction.MANUAL
    if result.confidence >= ACCEPT_THRESHOLD:
        return RecommendedAction.ACCEPT
    if result.confidence >= REVIEW_THRESHOLD:
        return RecommendedAction.REVIEW
    return RecommendedAction.MANUAL


def _format_for(file_path: Optional[str]) -> DocumentFormat:
    if not file_path:
        return DocumentFormat.TEXT
    suffix = PurePath(file_path).suffix.lower()
    if suffix == ".pdf":
        return DocumentFormat.PDF
    if suffix in IMAGE_EXTENSIONS:
        return DocumentFormat.IMAGE
    return DocumentFormat.TEXT


ClassifyItem = Union[str, Mapping[str, Any]]


class DocumentClassifier:
    """
    Classify extracted document text into a DocumentType.

    The indicator registry is injected; by default the built-in registry
    from ``default_document_registry`` is used. Classification never raises.
    """

    def __init__(self, registry: Optional[PatternRegistry[DocumentType]] = None):
        """
        Initialize document classifier.

        Args:
            registry: Indicator registry keyed by DocumentType.
        """
        self._registry = registry if registry is not None else default_document_registry()

    @property
    def registry(self) -> PatternRegistry[DocumentType]:
        return self._registry

    def classify(
        self,
        text: Optional[str],
        file_path: Optional[str] = None,
        page_count: Optional[int] = None,
    ) -> ClassificationResult:
        """
        Classify a block of document text.

        Args:
            text: Extracted document text.
            file_path: Optional source path, used only to report the format.
            page_count: Optional page count of the source document.

        Returns:
            ClassificationResult for the best-matching type.
        """
        doc_format = _format_for(file_path)

        if not text or not text.strip():
            return ClassificationResult(
                type=DocumentType.UNKNOWN,
                confidence=0.0,
                method=ClassificationMethod.FALLBACK,
                metadata=DocumentMetadata(format=doc_format, page_count=page_count),
            )

        matches = self._registry.score(text)
        scores = {tag: match.score for tag, match in matches.items()}
        winner = self._pick_winner(scores)

        if winner is None:
            metadata = self._build_metadata(text, [], doc_format, page_count)
            logger.debug("document_unclassified", best_score=max(scores.values(), default=0.0))
            return ClassificationResult(
                type=DocumentType.UNKNOWN,
                confidence=0.0,
                method=ClassificationMethod.FALLBACK,
                metadata=metadata,
                scores=scores,
            )

        match = matches[winner]
        confidence = round(1.0 - math.exp(-match.score / SATURATION_SCALE), 4)
        metadata = self._build_metadata(text, match.labels, doc_format, page_count)

        logger.debug(
            "document_classified",
            document_type=winner.value,
            score=match.score,
            confidence=confidence,
        )

        return ClassificationResult(
            type=winner,
            confidence=confidence,
            method=self._method_for(match),
            metadata=metadata,
            scores=scores,
        )

    def classify_batch(self, items: Iterable[ClassifyItem]) -> List[ClassificationResult]:
        """
        Classify multiple documents.

        Args:
            items: Texts, or mappings with ``text`` and optional ``file_path``.

        Returns:
            List of ClassificationResults in input order.
        """
        results = []
        for item in items:
            if isinstance(item, str):
                results.append(self.classify(item))
            else:
                results.append(self.classify(item.get("text", ""), item.get("file_path")))
        return results

    def _pick_winner(self, scores: Dict[DocumentType, float]) -> Optional[DocumentType]:
        """Highest-scoring type, ties resolved by specificity."""
        if not scores:
            return None

        best = max(scores.values())
        if best < MIN_CLASSIFICATION_SCORE:
            return None

        floor = max(best - TIE_EPSILON, MIN_CLASSIFICATION_SCORE)
        contenders = {tag for tag, score in scores.items() if score >= floor}
        for doc_type in SPECIFICITY_ORDER:
            if doc_type in contenders:
                return doc_type
        # Registry types outside the specificity order
        return max(contenders, key=lambda tag: scores[tag])

    @staticmethod
    def _method_for(match: RegistryMatch) -> ClassificationMethod:
        kinds = {indicator.kind for indicator in match.matched}
        if IndicatorKind.STRUCTURE in kinds:
            return ClassificationMethod.STRUCTURE
        if IndicatorKind.PATTERN in kinds:
            return ClassificationMethod.PATTERN
        return ClassificationMethod.KEYWORD

    @staticmethod
    def _build_metadata(
        text: str,
        keywords: List[str],
        doc_format: DocumentFormat,
        page_count: Optional[int],
    ) -> DocumentMetadata:
        return DocumentMetadata(
            detected_keywords=keywords,
            format=doc_format,
            page_count=page_count,
            has_amounts=bool(AMOUNT_PATTERN.search(text)),
            has_dates=bool(DATE_PATTERN.search(text)),
            has_abn=bool(ABN_PATTERN.search(text)),
        )


def get_document_classifier(
    registry: Optional[PatternRegistry[DocumentType]] = None,
) -> DocumentClassifier:
    """Create a DocumentClassifier with the default or a custom registry."""
    return DocumentClassifier(registry)
