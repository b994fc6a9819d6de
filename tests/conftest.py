"""
Pytest configuration and fixtures.
"""
import tempfile
from pathlib import Path
from typing import Generator

import pytest

from taxdocs.config import Settings
from taxdocs.exceptions import TextExtractionError
from taxdocs.services.dividend_parser import DividendStatementParser

from samples import COMPUTERSHARE_SAMPLE, FIXED_TODAY, FakeTextExtractor


@pytest.fixture
def settings() -> Settings:
    """Settings independent of the environment."""
    return Settings(max_pdf_size_mb=1, log_level="DEBUG", json_logs=False)


@pytest.fixture
def dividend_parser(settings: Settings) -> DividendStatementParser:
    """Parser with a fixed clock."""
    return DividendStatementParser(settings=settings, today=lambda: FIXED_TODAY)


@pytest.fixture
def fake_extractor() -> FakeTextExtractor:
    """Extractor that yields the Computershare sample from two pages."""
    return FakeTextExtractor(text=COMPUTERSHARE_SAMPLE, page_count=2)


@pytest.fixture
def failing_extractor() -> FakeTextExtractor:
    """Extractor that cannot read anything."""
    return FakeTextExtractor(error=TextExtractionError("Could not read PDF: corrupt xref"))


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_pdf_content() -> bytes:
    """Minimal PDF bytes that pass header validation."""
    return b"""%PDF-1.4
1 0 obj
<< /Type /Catalog /Pages 2 0 R >>
endobj
2 0 obj
<< /Type /Pages /Kids [3 0 R] /Count 1 >>
endobj
3 0 obj
<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] /Contents 4 0 R >>
endobj
4 0 obj
<< /Length 44 >>
stream
BT /F1 12 Tf 100 700 Td (Dividend: $100.00) Tj ET
endstream
endobj
trailer
<< /Size 5 /Root 1 0 R >>
%%EOF"""
