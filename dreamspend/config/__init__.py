"""Configuration package."""

from dreamspend.config.settings import (
    AppSettings,
    GoogleSheetsSettings,
    LiveRatesSettings,
    Settings,
    StorageSettings,
    default_language_code,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "GoogleSheetsSettings",
    "LiveRatesSettings",
    "Settings",
    "StorageSettings",
    "default_language_code",
    "get_settings",
    "validate_all_settings",
]
