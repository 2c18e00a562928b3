"""
Configuration Management for DreamSpend

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration of the surroundings of the game engine
lives here (storage backend, live rate source, default language).
The game rules themselves (doubling, 5% overspend tolerance, achievement
thresholds) are NOT configurable - they are part of the game.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Snapshot storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="DREAMSPEND_STORAGE_",
        extra="ignore"
    )

    backend: str = Field(
        default="json",
        description="Snapshot backend: memory, json or google_sheets"
    )
    json_path: Path = Field(
        default=Path("data/dreamspend_snapshot.json"),
        description="Location of the snapshot file for the json backend"
    )

    @field_validator('backend')
    @classmethod
    def validate_backend(cls, v: str) -> str:
        allowed = {"memory", "json", "google_sheets"}
        value = v.strip().lower()
        if value not in allowed:
            raise ValueError(f"Unsupported storage backend '{v}'. Allowed: {allowed}")
        return value


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets snapshot storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: str = Field(
        ...,
        description="ID of the Google Sheets spreadsheet to use"
    )
    snapshot_sheet_name: str = Field(
        default="Snapshot",
        description="Name of the sheet holding the game snapshot"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v


class LiveRatesSettings(BaseSettings):
    """Live exchange rate source configuration."""

    model_config = SettingsConfigDict(
        env_prefix="LIVE_RATES_",
        extra="ignore"
    )

    base_url: str = Field(
        default="https://api.frankfurter.app",
        description="Base URL of the rate API (GET /latest?from=..&to=..)"
    )
    timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        le=120,
        description="HTTP timeout for one rate request"
    )
    max_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts per rate request on transport errors"
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

    # Game bootstrap
    default_language: str = Field(
        default="en",
        description="Language (and therefore currency) of a fresh game: ru, en or de"
    )

    @field_validator('default_language')
    @classmethod
    def validate_default_language(cls, v: str) -> str:
        value = v.strip().lower()
        # Same prefix matching as a system locale ("de_DE" -> de)
        for code in ("ru", "de", "en"):
            if value.startswith(code):
                return code
        return "en"


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

    # Note: These are loaded lazily to allow partial configuration

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def live_rates(self) -> LiveRatesSettings:
        return LiveRatesSettings()

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
    results: dict[str, bool] = {}

    settings = get_settings()

    sections = {
        "storage": lambda: settings.storage,
        "google_sheets": lambda: settings.google_sheets,
        "live_rates": lambda: settings.live_rates,
        "app": lambda: settings.app,
    }
    for name, load in sections.items():
        try:
            load()
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results


def default_language_code() -> str:
    """Language code a fresh game starts with."""
    return get_settings().app.default_language
