"""Shared fixtures for the custody calendar tests."""

import asyncio
from typing import Any, Optional

import pytest

from custody_calendar.audit import AuditLogger
from custody_calendar.config import get_settings
from custody_calendar.models.calendar import CalendarDate
from custody_calendar.orchestrator import CalendarSession
from custody_calendar.services import (
    CalendarEventStore,
    InMemoryRecordStore,
    RecordFilter,
    StaticAuthProvider,
)
from custody_calendar.services.storage import CALENDAR_EVENTS


CHILD_ID = "child-1"
USER_ID = "user-1"


class RecordingStore(InMemoryRecordStore):
    """In-memory store that remembers every call made to it."""

    def __init__(self, records: Optional[dict[str, list[dict[str, Any]]]] = None):
        super().__init__(records)
        self.calls: list[tuple[str, str, Any]] = []

    def calls_of(self, operation: str) -> list[tuple[str, str, Any]]:
        return [call for call in self.calls if call[0] == operation]

    async def select(self, collection: str, where: Optional[RecordFilter] = None):
        self.calls.append(("select", collection, where))
        return await super().select(collection, where)

    async def insert(self, collection: str, records: list[dict[str, Any]]):
        self.calls.append(("insert", collection, records))
        return await super().insert(collection, records)

    async def update(self, collection: str, values: dict[str, Any], where: RecordFilter):
        self.calls.append(("update", collection, where))
        return await super().update(collection, values, where)

    async def delete(self, collection: str, where: RecordFilter):
        self.calls.append(("delete", collection, where))
        return await super().delete(collection, where)


class GatedStore(RecordingStore):
    """
    Holds selects on the gated collections until their gate is opened,
    to interleave loads. A set error is raised once a gate opens.
    """

    def __init__(self, records: Optional[dict[str, list[dict[str, Any]]]] = None):
        super().__init__(records)
        self.holding = False
        self.gated: tuple[str, ...] = (CALENDAR_EVENTS,)
        self.gates: list[asyncio.Event] = []
        self.error: Optional[Exception] = None

    async def select(self, collection: str, where: Optional[RecordFilter] = None):
        if self.holding and collection in self.gated:
            gate = asyncio.Event()
            self.gates.append(gate)
            await gate.wait()
            if self.error is not None:
                raise self.error
        return await super().select(collection, where)

    async def wait_for_gates(self, count: int) -> None:
        for _ in range(100):
            if len(self.gates) >= count:
                return
            await asyncio.sleep(0)
        raise AssertionError(f"expected {count} pending loads, got {len(self.gates)}")


class FailingStore(RecordingStore):
    """Fails the named operations with the given exception."""

    def __init__(self, error: Exception, operations: tuple[str, ...]):
        super().__init__()
        self.error = error
        self.operations = operations

    async def select(self, collection: str, where: Optional[RecordFilter] = None):
        if "select" in self.operations:
            raise self.error
        return await super().select(collection, where)

    async def insert(self, collection: str, records: list[dict[str, Any]]):
        if "insert" in self.operations:
            self.calls.append(("insert", collection, records))
            raise self.error
        return await super().insert(collection, records)

    async def update(self, collection: str, values: dict[str, Any], where: RecordFilter):
        if "update" in self.operations:
            raise self.error
        return await super().update(collection, values, where)

    async def delete(self, collection: str, where: RecordFilter):
        if "delete" in self.operations:
            raise self.error
        return await super().delete(collection, where)


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    """Every test starts from default settings."""
    for name in (
        "CALENDAR_STORAGE_BACKEND",
        "CALENDAR_ACTIVITY_START_HOUR",
        "CALENDAR_ACTIVITY_END_HOUR",
        "CALENDAR_MAX_ACTIVITY_NAME_LENGTH",
        "CALENDAR_UPCOMING_EVENTS_LIMIT",
        "CALENDAR_AUTH_USER_ID",
        "CALENDAR_AUDIT_HISTORY_LIMIT",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def store() -> RecordingStore:
    return RecordingStore()


@pytest.fixture
def auth() -> StaticAuthProvider:
    return StaticAuthProvider(USER_ID)


@pytest.fixture
def event_store(store, auth) -> CalendarEventStore:
    return CalendarEventStore(store, auth)


@pytest.fixture
def audit_logger() -> AuditLogger:
    return AuditLogger("custody_calendar.tests")


@pytest.fixture
def session(event_store, audit_logger) -> CalendarSession:
    return CalendarSession(event_store, audit_logger=audit_logger)


@pytest.fixture
async def march_session(session) -> CalendarSession:
    """A session showing March 2024 for CHILD_ID."""
    await session.load_child(CHILD_ID, "Sam", 2024, 3)
    return session


def day(year: int, month: int, value: int) -> CalendarDate:
    return CalendarDate(year=year, month=month, day=value)
