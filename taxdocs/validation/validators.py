"""
Input validation utilities.

Covers file-type checks by magic bytes, PDF size limits, and checksum
validation of Australian business identifiers (ABN/ACN).
"""
import re
from typing import List, Optional, Tuple

import structlog

from taxdocs.exceptions import EmptyDocumentError, FileTooLargeError, InvalidFileTypeError

logger = structlog.get_logger(__name__)


# File type magic bytes signatures
MAGIC_BYTES = {
    "pdf": [b"%PDF-"],
    "png": [b"\x89PNG\r\n\x1a\n"],
    "jpg": [b"\xff\xd8\xff"],
}

DEFAULT_MAX_PDF_SIZE = 50 * 1024 * 1024

# ABN: first digit reduced by one, weighted sum divisible by 89
ABN_WEIGHTS = (10, 1, 3, 5, 7, 9, 11, 13, 15, 17, 19)
# ACN: weighted sum of first eight digits gives the ninth as a check digit
ACN_WEIGHTS = (8, 7, 6, 5, 4, 3, 2, 1)

WHITESPACE_PATTERN = re.compile(r"\s+")


def validate_file_type(file_content: bytes, expected_types: list[str]) -> Tuple[bool, Optional[str]]:
    """
    Validate file type by checking magic bytes.

    Args:
        file_content: First few bytes of file
        expected_types: List of expected file types (e.g., ["pdf"])

    Returns:
        Tuple of (is_valid, detected_type or None)
    """
    for file_type in expected_types:
        if file_type.lower() in MAGIC_BYTES:
            for signature in MAGIC_BYTES[file_type.lower()]:
                if file_content.startswith(signature):
                    return (True, file_type)

    return (False, None)


def validate_pdf_bytes(content: bytes, max_size: int = DEFAULT_MAX_PDF_SIZE) -> Tuple[bool, List[str]]:
    """
    Validate that a byte buffer looks like a PDF worth extracting.

    Checks run in order and stop at the first failure: empty buffer,
    missing ``%PDF-`` header, size over the limit.

    Returns:
        Tuple of (is_valid, list of error messages)
    """
    errors: List[str] = []

    if not content:
        errors.append("PDF file is empty")
        return (False, errors)

    is_pdf, _ = validate_file_type(content[:8], ["pdf"])
    if not is_pdf:
        errors.append("File is not a valid PDF")
        return (False, errors)

    if len(content) > max_size:
        size_mb = len(content) / 1024 / 1024
        errors.append(
            f"PDF file is too large ({size_mb:.1f}MB, max {max_size // (1024 * 1024)}MB)"
        )
        logger.warning("pdf_too_large", size=len(content), max_size=max_size)
        return (False, errors)

    return (True, errors)


def require_valid_pdf(content: bytes, max_size: int = DEFAULT_MAX_PDF_SIZE) -> None:
    """
    Raise the matching DocumentValidationError if a buffer is not a usable PDF.

    Raises:
        EmptyDocumentError: Buffer is empty.
        InvalidFileTypeError: Buffer does not start with the PDF header.
        FileTooLargeError: Buffer exceeds ``max_size`` bytes.
    """
    if not content:
        raise EmptyDocumentError()
    if not validate_file_type(content[:8], ["pdf"])[0]:
        raise InvalidFileTypeError(expected_types=["pdf"])
    if len(content) > max_size:
        raise FileTooLargeError(size=len(content), max_size=max_size)


def normalize_identifier(value: str) -> str:
    """Strip whitespace from an ABN/ACN as printed on statements."""
    return WHITESPACE_PATTERN.sub("", value or "")


def validate_abn(abn: str) -> bool:
    """
    Validate an Australian Business Number.

    Subtract 1 from the first digit, weight the eleven digits by
    ``ABN_WEIGHTS`` and check the sum is divisible by 89.
    """
    digits = normalize_identifier(abn)
    if not re.fullmatch(r"\d{11}", digits):
        return False

    total = 0
    for index, (char, weight) in enumerate(zip(digits, ABN_WEIGHTS)):
        digit = int(char) - 1 if index == 0 else int(char)
        total += digit * weight

    return total % 89 == 0


def validate_acn(acn: str) -> bool:
    """
    Validate an Australian Company Number.

    The ninth digit must equal ``(10 - weighted_sum % 10) % 10`` of the
    first eight digits.
    """
    digits = normalize_identifier(acn)
    if not re.fullmatch(r"\d{9}", digits):
        return False

    total = sum(int(char) * weight for char, weight in zip(digits[:8], ACN_WEIGHTS))
    check_digit = (10 - total % 10) % 10
    return check_digit == int(digits[8])
