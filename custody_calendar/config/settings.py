"""
Configuration Management for Custody Calendar

Uses pydantic-settings for type-safe configuration from environment variables.

All configuration is centralized here so the external dependencies
(Google Sheets, the signed-in user) are visible in one place.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets record store configuration."""

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

    # One worksheet per remote collection
    events_sheet_name: str = Field(
        default="calendar_events",
        description="Name of the sheet holding scheduled activities"
    )
    schedules_sheet_name: str = Field(
        default="custody_schedules",
        description="Name of the sheet holding recurring custody assignments"
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


class AuthSettings(BaseSettings):
    """Identity of the signed-in user, stamped on every write."""

    model_config = SettingsConfigDict(
        env_prefix="CALENDAR_AUTH_",
        extra="ignore"
    )

    user_id: Optional[str] = Field(
        default=None,
        description="Opaque identifier of the current user"
    )


class CalendarSettings(BaseSettings):
    """
    Main calendar settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="CALENDAR_",
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
    storage_backend: str = Field(
        default="sheets",
        pattern="^(sheets|memory)$",
        description="Record store backend"
    )

    # Scheduled activities occupy a fixed local window
    activity_start_hour: int = Field(
        default=9,
        ge=0,
        le=23,
        description="Local hour a scheduled activity starts"
    )
    activity_end_hour: int = Field(
        default=17,
        ge=0,
        le=23,
        description="Local hour a scheduled activity ends"
    )
    max_activity_name_length: int = Field(
        default=200,
        ge=1,
        description="Longest accepted activity name"
    )
    upcoming_events_limit: int = Field(
        default=10,
        ge=1,
        le=100,
        description="How many entries the upcoming events list shows"
    )
    audit_history_limit: int = Field(
        default=200,
        ge=1,
        description="How many recent audit events a logger keeps in memory"
    )

    # Custody bar colors
    mom_color: str = Field(
        default="#ea4335",
        pattern="^#[0-9a-fA-F]{6}$",
        description="Default bar color for mom's days"
    )
    dad_color: str = Field(
        default="#4285f4",
        pattern="^#[0-9a-fA-F]{6}$",
        description="Default bar color for dad's days"
    )

    @field_validator('activity_end_hour')
    @classmethod
    def validate_window(cls, v: int, info: ValidationInfo) -> int:
        """The activity window must not be empty."""
        start = info.data.get('activity_start_hour')
        if start is not None and v <= start:
            raise ValueError("activity_end_hour must be after activity_start_hour")
        return v


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

    # Sub-settings are loaded lazily to allow partial configuration

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def auth(self) -> AuthSettings:
        return AuthSettings()

    @property
    def app(self) -> CalendarSettings:
        return CalendarSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

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

    try:
        _ = settings.google_sheets
        results["google_sheets"] = True
    except Exception as e:
        results["google_sheets"] = False
        results["google_sheets_error"] = str(e)

    try:
        auth = settings.auth
        results["auth"] = bool(auth.user_id and auth.user_id.strip())
        if not results["auth"]:
            results["auth_error"] = "CALENDAR_AUTH_USER_ID is not set"
    except Exception as e:
        results["auth"] = False
        results["auth_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results
