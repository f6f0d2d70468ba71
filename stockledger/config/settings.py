"""
Application settings with Pydantic v2 validation.

Nested groups read their own env prefix (STORAGE_, LEDGER_, SUMMARY_, API_);
the top level also reads a .env file.
"""

import re
from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """SQLite ledger database."""

    model_config = SettingsConfigDict(env_prefix="STORAGE_")

    data_dir: Path = Path("data")
    db_name: str = "stockledger.db"

    pool_size: int = Field(default=5, ge=1)
    busy_timeout: int = Field(default=30000, ge=0, description="ms a writer waits for the lock")
    backup_before_migrate: bool = True

    @property
    def db_path(self) -> Path:
        return self.data_dir / self.db_name


class LedgerSettings(BaseSettings):
    """Ledger mutation configuration."""

    model_config = SettingsConfigDict(env_prefix="LEDGER_")

    # Extra FIFO attempts after a ConcurrencyConflictError
    conflict_retries: int = Field(default=1, ge=0, le=5)

    conversion_prefix: str = "CONV"
    production_prefix: str = "PROD"

    @field_validator("conversion_prefix", "production_prefix")
    @classmethod
    def check_prefix(cls, v: str) -> str:
        v = v.strip().upper()
        if not re.fullmatch(r"[A-Z]{2,8}", v):
            raise ValueError("reference prefix must be 2-8 letters")
        return v

    @model_validator(mode="after")
    def distinct_prefixes(self) -> "LedgerSettings":
        if self.conversion_prefix == self.production_prefix:
            raise ValueError("conversion and production prefixes must differ")
        return self


class SummarySettings(BaseSettings):
    """Monthly summary reconciliation configuration."""

    model_config = SettingsConfigDict(env_prefix="SUMMARY_")

    # Variants reconciled concurrently during bulk generation
    max_parallel: int = Field(default=4, ge=1, le=64)


class APISettings(BaseSettings):
    """API server configuration."""

    model_config = SettingsConfigDict(env_prefix="API_")

    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False
    cors_origins: list[str] = ["*"]


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "Stock Ledger"
    app_version: str = "1.0.0"
    environment: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Sub-settings
    storage: StorageSettings = Field(default_factory=StorageSettings)
    ledger: LedgerSettings = Field(default_factory=LedgerSettings)
    summary: SummarySettings = Field(default_factory=SummarySettings)
    api: APISettings = Field(default_factory=APISettings)

    @field_validator("storage", mode="before")
    @classmethod
    def ensure_data_dir(cls, v: Any) -> StorageSettings:
        if isinstance(v, dict):
            settings = StorageSettings(**v)
        else:
            settings = v or StorageSettings()
        settings.data_dir.mkdir(parents=True, exist_ok=True)
        return settings


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings (for testing)."""
    global _settings
    _settings = None
