"""
Application configuration using pydantic-settings.

Loads configuration from environment variables (prefix ``TAXDOCS_``) with
sensible defaults.
"""
from decimal import Decimal
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="TAXDOCS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Input limits
    max_pdf_size_mb: int = 50

    # Australian corporate tax rate used to gross up franked dividends
    company_tax_rate: Decimal = Field(default=Decimal("0.30"), gt=0, lt=1)

    # Characters of statement text kept on each parsed dividend
    raw_text_limit: int = 5000

    # Logging
    log_level: str = "INFO"
    json_logs: bool = False

    @property
    def max_pdf_size_bytes(self) -> int:
        """Get maximum PDF size in bytes."""
        return self.max_pdf_size_mb * 1024 * 1024


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
