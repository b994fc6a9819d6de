"""Input validation package."""
from taxdocs.validation.validators import (
    MAGIC_BYTES,
    normalize_identifier,
    require_valid_pdf,
    validate_abn,
    validate_acn,
    validate_file_type,
    validate_pdf_bytes,
)

__all__ = [
    "MAGIC_BYTES",
    "normalize_identifier",
    "require_valid_pdf",
    "validate_abn",
    "validate_acn",
    "validate_file_type",
    "validate_pdf_bytes",
]
