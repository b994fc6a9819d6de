"""
Document pipeline: classify a document, then parse it if it is a
dividend statement.

Other document types are classified only; their parsers live elsewhere.
"""
from typing import Iterable, List, Optional, Union

import structlog

from taxdocs.exceptions import DocumentValidationError
from taxdocs.models import (
    ClassificationMethod,
    ClassificationResult,
    DocumentFormat,
    DocumentMetadata,
    DocumentResult,
    DocumentType,
    StatementFile,
    StatementInput,
)
from taxdocs.services.batch_processor import DividendBatchProcessor
from taxdocs.services.classifiers.document_classifier import DocumentClassifier

logger = structlog.get_logger(__name__)

PipelineItem = Union[str, StatementInput]


class DocumentPipeline:
    """Route documents through classification and dividend parsing."""

    def __init__(
        self,
        classifier: Optional[DocumentClassifier] = None,
        processor: Optional[DividendBatchProcessor] = None,
    ):
        self._classifier = classifier or DocumentClassifier()
        self._processor = processor or DividendBatchProcessor()

    def process_text(
        self,
        text: str,
        filename: Optional[str] = None,
        document_type: Optional[DocumentType] = None,
    ) -> DocumentResult:
        """
        Classify and, for dividend statements, parse a document's text.

        Args:
            text: Extracted document text.
            filename: Source name, also used to report the format.
            document_type: Known type; skips classification when given.

        Returns:
            DocumentResult with a parse result for dividend statements.
        """
        classification = self._classify(text, filename, document_type)

        parse_result = None
        if classification.type == DocumentType.DIVIDEND_STATEMENT:
            parse_result = self._processor.parse_text(text)

        logger.info(
            "document_processed",
            filename=filename,
            document_type=classification.type.value,
            confidence=classification.confidence,
            parsed=parse_result is not None,
        )
        return DocumentResult(
            filename=filename or "",
            classification=classification,
            parse_result=parse_result,
            errors=list(parse_result.errors) if parse_result else [],
        )

    async def process_pdf(
        self,
        content: bytes,
        filename: str,
        document_type: Optional[DocumentType] = None,
    ) -> DocumentResult:
        """
        Extract, classify and, for dividend statements, parse a PDF.

        Extraction failures are reported on the result, never raised.
        """
        try:
            extracted = await self._processor.extract_pdf_text(content)
        except DocumentValidationError as e:
            errors = list(e.details.get("errors") or [e.message])
        except Exception as e:
            errors = [f"PDF extraction failed: {e}"]
        else:
            errors = []

        if errors:
            logger.warning("document_extraction_failed", filename=filename, errors=errors)
            return DocumentResult(
                filename=filename,
                classification=ClassificationResult(
                    type=DocumentType.UNKNOWN,
                    confidence=0.0,
                    method=ClassificationMethod.FALLBACK,
                    metadata=DocumentMetadata(format=DocumentFormat.PDF),
                ),
                errors=errors,
            )

        classification = self._classify(extracted.text, filename, document_type, extracted.page_count)
        parse_result = None
        if classification.type == DocumentType.DIVIDEND_STATEMENT:
            parse_result = self._processor.parse_text(extracted.text)

        return DocumentResult(
            filename=filename,
            classification=classification,
            parse_result=parse_result,
            errors=list(parse_result.errors) if parse_result else [],
        )

    def process_many(self, items: Iterable[PipelineItem]) -> List[DocumentResult]:
        """Process several text documents in input order."""
        results = []
        for i, item in enumerate(items, start=1):
            if isinstance(item, StatementInput):
                results.append(self.process_text(item.text, item.filename))
            else:
                results.append(self.process_text(item, f"document-{i}"))
        return results

    async def process_pdfs(self, files: Iterable[StatementFile]) -> List[DocumentResult]:
        """Process several PDF documents one after another."""
        return [await self.process_pdf(file.content, file.filename) for file in files]

    def _classify(
        self,
        text: str,
        filename: Optional[str],
        document_type: Optional[DocumentType],
        page_count: Optional[int] = None,
    ) -> ClassificationResult:
        result = self._classifier.classify(text, filename, page_count)
        if document_type is None:
            return result
        # Caller already knows the type; keep the gathered evidence
        return ClassificationResult(
            type=document_type,
            confidence=1.0,
            method=result.method if result.type == document_type else ClassificationMethod.FALLBACK,
            metadata=result.metadata,
            scores=result.scores,
        )


def get_document_pipeline() -> DocumentPipeline:
    """Create a DocumentPipeline with default components."""
    return DocumentPipeline()
