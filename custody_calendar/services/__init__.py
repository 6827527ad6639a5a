"""Services package."""

from custody_calendar.services.auth import (
    AuthError,
    AuthProviderInterface,
    SettingsAuthProvider,
    StaticAuthProvider,
)
from custody_calendar.services.events import CalendarEventStore, day_filter
from custody_calendar.services.storage import (
    ConnectionError,
    GoogleSheetsClient,
    GoogleSheetsRecordStore,
    InMemoryRecordStore,
    NotFoundError,
    RecordFilter,
    RecordStoreInterface,
    StorageError,
)

__all__ = [
    # Auth
    "AuthError",
    "AuthProviderInterface",
    "SettingsAuthProvider",
    "StaticAuthProvider",
    # Calendar adapter
    "CalendarEventStore",
    "day_filter",
    # Storage services
    "ConnectionError",
    "GoogleSheetsClient",
    "GoogleSheetsRecordStore",
    "InMemoryRecordStore",
    "NotFoundError",
    "RecordFilter",
    "RecordStoreInterface",
    "StorageError",
]
