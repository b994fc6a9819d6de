"""
Batch processor for dividend statements.

Parses many statements (plain text, or PDF bytes through a text
extractor) one after another and aggregates the outcomes. A statement
that fails never stops the batch: every item gets its own ParseResult.
"""
import time
from decimal import Decimal
from typing import Callable, Iterable, List, Optional, Sequence, Union

import structlog

from taxdocs.config import Settings, get_settings
from taxdocs.exceptions import DocumentValidationError
from taxdocs.models import (
    BatchParseResult,
    ExtractedText,
    ParsedDividend,
    ParseResult,
    ParserProgress,
    ParseStatus,
    RegistryProvider,
    StatementFile,
    StatementInput,
)
from taxdocs.services.dividend_parser import DividendStatementParser
from taxdocs.services.text_extraction import PdfPlumberTextExtractor, TextExtractor
from taxdocs.validation.validators import validate_pdf_bytes

logger = structlog.get_logger(__name__)

ProgressCallback = Callable[[ParserProgress], None]
StatementItem = Union[str, StatementInput]


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 3)


def _prefixed(
    on_progress: Optional[ProgressCallback],
    index: int,
    total: int,
    filename: str,
) -> Optional[ProgressCallback]:
    """Wrap a callback so each event names its position in the batch."""
    if on_progress is None:
        return None

    def report(progress: ParserProgress) -> None:
        on_progress(ParserProgress(
            status=progress.status,
            progress=progress.progress,
            message=f"[{index}/{total}] {filename}: {progress.message}",
            page_count=progress.page_count,
            index=index,
            total=total,
            filename=filename,
        ))

    return report


def _completion_message(result: ParseResult) -> str:
    if result.success and result.dividend:
        return f"Successfully parsed dividend from {result.dividend.company_name}"
    return "Parsing completed with errors"


def aggregate_results(results: List[ParseResult], processing_time_ms: float = 0.0) -> BatchParseResult:
    """
    Summarise per-statement results.

    Totals only include successful dividends.
    """
    dividends: List[ParsedDividend] = [r.dividend for r in results if r.success and r.dividend]
    return BatchParseResult(
        total=len(results),
        successful=len(dividends),
        failed=len(results) - len(dividends),
        results=results,
        dividends=dividends,
        total_dividend_amount=sum((d.dividend_amount for d in dividends), Decimal("0.00")),
        total_franking_credits=sum((d.franking_credits for d in dividends), Decimal("0.00")),
        total_processing_time_ms=processing_time_ms,
    )


class DividendBatchProcessor:
    """
    Parse dividend statements in bulk.

    Features:
    - Sequential processing with per-item error isolation
    - Progress events per item ("[i/n] filename: message")
    - PDF input through an injected TextExtractor
    - Aggregated totals over successful statements
    """

    def __init__(
        self,
        parser: Optional[DividendStatementParser] = None,
        extractor: Optional[TextExtractor] = None,
        settings: Optional[Settings] = None,
    ):
        """
        Initialize batch processor.

        Args:
            parser: Statement parser applied to every text.
            extractor: PDF text extractor. Defaults to pdfplumber.
            settings: Limits for PDF validation.
        """
        self._settings = settings or get_settings()
        self._parser = parser or DividendStatementParser(settings=self._settings)
        self._extractor = extractor or PdfPlumberTextExtractor(self._settings.max_pdf_size_bytes)

    @property
    def parser(self) -> DividendStatementParser:
        return self._parser

    # =========================================================================
    # Text input
    # =========================================================================

    def parse_text(self, text: str, on_progress: Optional[ProgressCallback] = None) -> ParseResult:
        """
        Parse one statement from already-extracted text.

        Args:
            text: Statement text.
            on_progress: Optional progress callback.

        Returns:
            ParseResult for the statement.
        """
        self._notify(on_progress, ParseStatus.PARSING, 50, "Parsing dividend details from text...")
        result = self._parse_isolated(text)
        self._notify(
            on_progress,
            ParseStatus.COMPLETE if result.success else ParseStatus.ERROR,
            100,
            _completion_message(result),
        )
        return result

    def parse_many(
        self,
        items: Iterable[StatementItem],
        on_progress: Optional[ProgressCallback] = None,
    ) -> BatchParseResult:
        """
        Parse several statements.

        Args:
            items: Statement texts or StatementInput values.
            on_progress: Optional progress callback, called per item.

        Returns:
            BatchParseResult in input order.
        """
        start = time.perf_counter()
        inputs = [
            item if isinstance(item, StatementInput) else StatementInput(filename=f"statement-{i}", text=item)
            for i, item in enumerate(items, start=1)
        ]

        results = []
        for index, item in enumerate(inputs, start=1):
            callback = _prefixed(on_progress, index, len(inputs), item.filename)
            results.append(self.parse_text(item.text, callback))

        batch = aggregate_results(results, _elapsed_ms(start))
        logger.info(
            "dividend_batch_parsed",
            total=batch.total,
            successful=batch.successful,
            failed=batch.failed,
            time_ms=batch.total_processing_time_ms,
        )
        return batch

    # =========================================================================
    # PDF input
    # =========================================================================

    async def parse_pdf(
        self,
        content: bytes,
        filename: str,
        on_progress: Optional[ProgressCallback] = None,
    ) -> ParseResult:
        """
        Parse one statement from PDF bytes.

        Validation and extraction failures become a failed ParseResult
        with a single document-level error; this method never raises.

        Args:
            content: PDF file bytes.
            filename: Name used in logs and progress messages.
            on_progress: Optional progress callback.

        Returns:
            ParseResult for the document.
        """
        start = time.perf_counter()

        is_valid, errors = validate_pdf_bytes(content, self._settings.max_pdf_size_bytes)
        if not is_valid:
            logger.warning("pdf_rejected", filename=filename, errors=errors)
            self._notify(on_progress, ParseStatus.ERROR, 0, errors[0])
            return self._failed(errors, start)

        self._notify(on_progress, ParseStatus.READING, 10, "Reading PDF file...")
        try:
            self._notify(on_progress, ParseStatus.EXTRACTING, 40, "Extracting text from PDF...")
            extracted = await self._extractor.extract_text(content)
        except Exception as e:
            message = f"PDF extraction failed: {e}"
            logger.warning("pdf_extraction_failed", filename=filename, error=str(e))
            self._notify(on_progress, ParseStatus.ERROR, 0, message)
            return self._failed([message], start)

        self._notify(
            on_progress,
            ParseStatus.EXTRACTING,
            80,
            f"Extracted text from {extracted.page_count} page(s)",
            page_count=extracted.page_count,
        )
        self._notify(
            on_progress, ParseStatus.PARSING, 85, "Parsing dividend details...", page_count=extracted.page_count
        )

        result = self._parse_isolated(extracted.text)

        self._notify(
            on_progress,
            ParseStatus.COMPLETE if result.success else ParseStatus.ERROR,
            100,
            _completion_message(result),
            page_count=extracted.page_count,
        )
        return ParseResult(
            success=result.success,
            provider=result.provider,
            dividend=result.dividend,
            errors=result.errors,
            warnings=result.warnings,
            processing_time_ms=_elapsed_ms(start),
        )

    async def parse_pdfs(
        self,
        files: Sequence[StatementFile],
        on_progress: Optional[ProgressCallback] = None,
    ) -> BatchParseResult:
        """
        Parse several PDF statements one after another.

        Args:
            files: PDF files with their names.
            on_progress: Optional progress callback, called per file.

        Returns:
            BatchParseResult in input order.
        """
        start = time.perf_counter()
        results = []
        for index, file in enumerate(files, start=1):
            callback = _prefixed(on_progress, index, len(files), file.filename)
            results.append(await self.parse_pdf(file.content, file.filename, callback))

        batch = aggregate_results(results, _elapsed_ms(start))
        logger.info(
            "dividend_pdf_batch_parsed",
            total=batch.total,
            successful=batch.successful,
            failed=batch.failed,
            time_ms=batch.total_processing_time_ms,
        )
        return batch

    async def extract_pdf_text(self, content: bytes) -> ExtractedText:
        """
        Validate PDF bytes and extract their text.

        Raises:
            DocumentValidationError: If the bytes fail PDF validation.
            TextExtractionError: If the extractor cannot read the PDF.
        """
        is_valid, errors = validate_pdf_bytes(content, self._settings.max_pdf_size_bytes)
        if not is_valid:
            raise DocumentValidationError(errors[0], errors=errors)
        return await self._extractor.extract_text(content)

    async def detect_provider_from_pdf(self, content: bytes) -> Optional[RegistryProvider]:
        """
        Detect the share registry of a PDF statement.

        Returns:
            The provider, or None when the PDF cannot be read.
        """
        try:
            extracted = await self._extractor.extract_text(content)
        except Exception as e:
            logger.warning("provider_detection_failed", error=str(e))
            return None
        return self._parser.detect_provider(extracted.text)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _parse_isolated(self, text: str) -> ParseResult:
        """Parse a statement, turning unexpected errors into a failed result."""
        try:
            return self._parser.parse(text)
        except Exception as e:
            logger.exception("dividend_parse_crashed", error=str(e))
            return ParseResult(
                success=False,
                provider=RegistryProvider.UNKNOWN,
                errors=[f"Unexpected parsing error: {e}"],
            )

    @staticmethod
    def _failed(errors: List[str], start: float) -> ParseResult:
        return ParseResult(
            success=False,
            provider=RegistryProvider.UNKNOWN,
            errors=list(errors),
            processing_time_ms=_elapsed_ms(start),
        )

    @staticmethod
    def _notify(
        on_progress: Optional[ProgressCallback],
        status: ParseStatus,
        progress: int,
        message: str,
        page_count: Optional[int] = None,
    ) -> None:
        if on_progress is not None:
            on_progress(ParserProgress(status=status, progress=progress, message=message, page_count=page_count))


def get_batch_processor(
    extractor: Optional[TextExtractor] = None,
    settings: Optional[Settings] = None,
) -> DividendBatchProcessor:
    """Get DividendBatchProcessor instance."""
    return DividendBatchProcessor(extractor=extractor, settings=settings)
