"""Configuration package."""

from budgetbuddy.config.settings import (
    AdviceSettings,
    AppSettings,
    RatesSettings,
    Settings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AdviceSettings",
    "AppSettings",
    "RatesSettings",
    "Settings",
    "StorageSettings",
    "get_settings",
    "validate_all_settings",
]
