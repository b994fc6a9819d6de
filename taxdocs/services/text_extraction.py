"""
Text extraction boundary for PDF statements.

The parsing engine only ever sees plain text. Anything that can turn PDF
bytes into text satisfies the TextExtractor protocol; the default
implementation uses pdfplumber.
"""
import asyncio
import io
from typing import Optional, Protocol

import pdfplumber
import structlog

from taxdocs.config import get_settings
from taxdocs.exceptions import TaxDocsError, TextExtractionError
from taxdocs.models import ExtractedText
from taxdocs.validation.validators import require_valid_pdf

logger = structlog.get_logger(__name__)


class TextExtractor(Protocol):
    """Turns document bytes into plain text."""

    async def extract_text(self, content: bytes) -> ExtractedText:
        """
        Extract the text of a document.

        Raises:
            TextExtractionError: If the document cannot be read.
        """
        ...


class PdfPlumberTextExtractor:
    """
    Extract PDF text with pdfplumber.

    Extraction is blocking, so it runs in the default executor.
    Pages are joined with newlines; pages without a text layer contribute
    nothing.
    """

    def __init__(self, max_size: Optional[int] = None):
        """
        Initialize the extractor.

        Args:
            max_size: Maximum accepted PDF size in bytes. Defaults to the
                configured ``max_pdf_size_bytes``.
        """
        self._max_size = max_size or get_settings().max_pdf_size_bytes

    async def extract_text(self, content: bytes) -> ExtractedText:
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(None, self._extract, content)

    def _extract(self, content: bytes) -> ExtractedText:
        try:
            require_valid_pdf(content, self._max_size)
            with pdfplumber.open(io.BytesIO(content)) as pdf:
                pages = [page.extract_text() or "" for page in pdf.pages]
        except TaxDocsError as e:
            raise TextExtractionError(e.message, details=e.to_dict())
        except Exception as e:
            logger.error("pdf_text_extraction_failed", error=str(e))
            raise TextExtractionError(f"Could not read PDF: {e}", details={"error": str(e)})

        text = "\n".join(pages)
        logger.debug("pdf_text_extracted", page_count=len(pages), characters=len(text))
        return ExtractedText(text=text, page_count=len(pages))


def get_text_extractor() -> PdfPlumberTextExtractor:
    """Create the default PDF text extractor."""
    return PdfPlumberTextExtractor()
