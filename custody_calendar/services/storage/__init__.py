"""
Storage Services Package

Provides the abstract record store interface and its implementations.
Google Sheets is the production backend; the in-memory store backs tests.
"""

from custody_calendar.services.storage.interface import (
    CALENDAR_EVENTS,
    COLLECTION_COLUMNS,
    CUSTODY_SCHEDULES,
    ConnectionError,
    NotFoundError,
    RangeCondition,
    RecordFilter,
    RecordStoreInterface,
    StorageError,
)
from custody_calendar.services.storage.memory import InMemoryRecordStore
from custody_calendar.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsRecordStore,
)

__all__ = [
    # Interface
    "CALENDAR_EVENTS",
    "COLLECTION_COLUMNS",
    "CUSTODY_SCHEDULES",
    "RangeCondition",
    "RecordFilter",
    "RecordStoreInterface",
    # Exceptions
    "ConnectionError",
    "NotFoundError",
    "StorageError",
    # Implementations
    "GoogleSheetsClient",
    "GoogleSheetsRecordStore",
    "InMemoryRecordStore",
]
