"""
Configuration Management for BudgetPulse

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The storage backend, its location and the two storage keys are the only
knobs the ledger core has, and they are validated once at startup.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Durable key-value store configuration."""

    model_config = SettingsConfigDict(
        env_prefix="BUDGETPULSE_STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    backend: Literal["file", "memory"] = Field(
        default="file",
        description="Which key-value store to use"
    )
    data_dir: Path = Field(
        default=Path(".budgetpulse"),
        description="Directory holding one file per storage key (file backend)"
    )

    # Storage keys for the two logical collections
    transactions_key: str = Field(
        default="budgetpulse_transactions",
        min_length=1,
        description="Key holding the JSON array of transactions"
    )
    budgets_key: str = Field(
        default="budgetpulse_budgets",
        min_length=1,
        description="Key holding the JSON object of month key -> limit"
    )

    write_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="How many times a file write is attempted before failing"
    )
    quota_bytes: Optional[int] = Field(
        default=None,
        ge=1,
        description="Optional size limit for the in-memory backend"
    )

    @field_validator('transactions_key', 'budgets_key')
    @classmethod
    def validate_key(cls, v: str) -> str:
        """Keys become file names, so path separators are not allowed."""
        if "/" in v or "\\" in v:
            raise ValueError(f"Storage key must not contain path separators: {v!r}")
        return v


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="BUDGETPULSE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    log_level: Literal["debug", "info", "warning", "error"] = Field(
        default="info",
        description="Minimum level for structured log output"
    )


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()
