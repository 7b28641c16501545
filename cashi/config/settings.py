"""
Configuration Management for the Cashi ledger engine

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The core has no hard dependency on any of it - every component also accepts
its collaborators directly - but sessions built by the orchestrator read
their storage location, record keys and ledger behaviour from these classes.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Key-value storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="CASHI_STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    backend: Literal["json_file", "memory"] = Field(
        default="json_file",
        description="Key-value medium used to persist the ledger"
    )
    path: Path = Field(
        default=Path("data") / "ledger.json",
        description="Location of the JSON file when backend is json_file"
    )

    # Record keys within the medium
    entries_key: str = Field(
        default="budgetEntries",
        min_length=1,
        description="Key holding the serialized entry list"
    )
    goals_key: str = Field(
        default="budgetGoals",
        min_length=1,
        description="Key holding the serialized goal list"
    )

    @field_validator('goals_key')
    @classmethod
    def validate_distinct_keys(cls, v: str, info: ValidationInfo) -> str:
        """Entries and goals are independent records and cannot share a key."""
        if v == info.data.get("entries_key"):
            raise ValueError("entries_key and goals_key must differ")
        return v


class LedgerSettings(BaseSettings):
    """Ledger behaviour switches."""

    model_config = SettingsConfigDict(
        env_prefix="CASHI_LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    enforce_categories: bool = Field(
        default=False,
        description="Reject categories outside the kind's vocabulary"
    )
    year_aligned_monthly: bool = Field(
        default=True,
        description="Monthly series span whole calendar years"
    )
    future_date_tolerance_days: int = Field(
        default=365,
        ge=0,
        description="How far in the future an entry date can be before it is flagged"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
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

    # Sub-settings are built on access so a bad value in one
    # section does not prevent reading the others

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def ledger(self) -> LedgerSettings:
        return LedgerSettings()

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


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    for name in ("storage", "ledger", "app"):
        try:
            _ = getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
