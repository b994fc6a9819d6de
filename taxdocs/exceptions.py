"""
Custom exceptions for taxdocs.

Provides a hierarchy of exceptions with error codes. The parsing engine
reports problems as plain error/warning strings on its results; these
exceptions only cross the text-extraction boundary and registry setup, and
are converted to result errors by the orchestrators.
"""
from typing import Any, Dict, List, Optional


class TaxDocsError(Exception):
    """
    Base exception for all taxdocs errors.

    Attributes:
        error_code: Unique error code (e.g., TXD-001)
        message: Human-readable error message
        details: Additional error context
    """
    error_code: str = "TXD-000"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None,
    ):
        self.message = message
        self.details = details or {}
        if error_code:
            self.error_code = error_code
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to a dictionary for reporting."""
        return {
            "error": True,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
        }


# Document Validation Errors (TXD-1XX)
class DocumentValidationError(TaxDocsError):
    """Input document failed basic validation."""
    error_code = "TXD-100"

    def __init__(self, message: str = "Document failed validation", errors: Optional[List[str]] = None, **kwargs):
        details = kwargs.pop("details", {})
        details["errors"] = errors or []
        super().__init__(message, details=details, **kwargs)


class EmptyDocumentError(DocumentValidationError):
    """Document has no content."""
    error_code = "TXD-101"

    def __init__(self, **kwargs):
        super().__init__("PDF file is empty", **kwargs)


class InvalidFileTypeError(DocumentValidationError):
    """Document is not of the expected file type."""
    error_code = "TXD-102"

    def __init__(self, expected_types: List[str], **kwargs):
        message = f"Invalid file type. Expected: {', '.join(expected_types)}"
        details = {"expected_types": expected_types}
        super().__init__(message, details=details, **kwargs)


class FileTooLargeError(DocumentValidationError):
    """Document exceeds the maximum size limit."""
    error_code = "TXD-103"

    def __init__(self, size: int, max_size: int, **kwargs):
        message = f"File too large. Maximum size: {max_size // (1024 * 1024)}MB"
        super().__init__(message, details={"size": size, "max_size": max_size}, **kwargs)


# Text Extraction Errors (TXD-2XX)
class TextExtractionError(TaxDocsError):
    """Error while extracting text from a document."""
    error_code = "TXD-200"

    def __init__(self, message: str = "Failed to extract text from document", **kwargs):
        super().__init__(message, **kwargs)


# Pattern Registry Errors (TXD-3XX)
class PatternRegistryError(TaxDocsError):
    """Invalid use of a classification or provider pattern registry."""
    error_code = "TXD-300"

    def __init__(self, message: str = "Invalid pattern registry operation", **kwargs):
        super().__init__(message, **kwargs)
