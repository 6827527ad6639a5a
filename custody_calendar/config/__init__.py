"""Configuration package."""

from custody_calendar.config.settings import (
    AuthSettings,
    CalendarSettings,
    GoogleSheetsSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AuthSettings",
    "CalendarSettings",
    "GoogleSheetsSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
