"""
Configuration Management for BudgetBuddy

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Endpoints, the storage key and the rate freshness window are the only
knobs the ledger core has, and they are all validated at startup.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Local document storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="BUDGETBUDDY_STORAGE_",
        extra="ignore"
    )

    data_dir: Path = Field(
        default=Path.home() / ".budgetbuddy",
        description="Directory holding the persisted ledger document"
    )
    storage_key: str = Field(
        default="budgetbuddy-state-v1",
        min_length=1,
        description="Key the ledger document is stored under"
    )


class RatesSettings(BaseSettings):
    """Exchange-rate feed configuration."""

    model_config = SettingsConfigDict(
        env_prefix="BUDGETBUDDY_RATES_",
        extra="ignore"
    )

    endpoint: str = Field(
        default="https://api.exchangerate-api.com/v4/latest/",
        description="Latest-rates-by-base resource; the base code is appended"
    )
    ttl_hours: float = Field(
        default=12.0,
        gt=0,
        description="How long a fetched rate snapshot stays fresh"
    )
    default_base: str = Field(
        default="USD",
        min_length=3,
        max_length=3,
        description="Base currency used when the caller doesn't pick one"
    )
    timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        le=60,
        description="HTTP timeout for a single rate request"
    )
    retry_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts before a network failure is reported"
    )
    retry_backoff_seconds: float = Field(
        default=1.0,
        ge=0,
        description="Exponential backoff multiplier between attempts"
    )

    @field_validator('default_base')
    @classmethod
    def normalize_base(cls, v: str) -> str:
        """Currency codes are always upper case."""
        return v.strip().upper()


class AdviceSettings(BaseSettings):
    """Tip-of-the-day feed configuration."""

    model_config = SettingsConfigDict(
        env_prefix="BUDGETBUDDY_ADVICE_",
        extra="ignore"
    )

    endpoint: str = Field(
        default="https://api.adviceslip.com/advice",
        description="Advice slip resource"
    )
    timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        le=60,
    )
    retry_attempts: int = Field(
        default=2,
        ge=1,
        le=10,
    )
    fallback_text: str = Field(
        default="Keep spending aligned to what matters most.",
        description="Shown when the feed answers without any advice text"
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
    log_level: str = Field(
        default="INFO",
        description="Standard library log level for the structured log"
    )

    # Display
    recent_limit: int = Field(
        default=5,
        ge=1,
        le=100,
        description="How many expenses the 'recent' list shows"
    )

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


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
    def rates(self) -> RatesSettings:
        return RatesSettings()

    @property
    def advice(self) -> AdviceSettings:
        return AdviceSettings()

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


def validate_all_settings() -> dict[str, bool | str]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus a
    "<name>_error" entry for every section that failed.
    Useful for startup checks.
    """
    results: dict[str, bool | str] = {}
    settings = get_settings()

    for name in ("storage", "rates", "advice", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
