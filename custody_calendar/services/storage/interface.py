"""
Abstract Record Store Interface

The calendar talks to its remote store through four capabilities over
named collections: select, insert, update and delete, each scoped by a
RecordFilter (equality on some columns, inclusive ranges on others).

Keeping the interface this small lets us:
1. Use Google Sheets today and a real database later
2. Use in-memory storage for testing
3. Keep calendar logic decoupled from the storage implementation

It is intentionally not an ORM. Records are plain dicts.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from custody_calendar.models.calendar import parse_local_timestamp


# Logical collections the calendar uses
CALENDAR_EVENTS = "calendar_events"
CUSTODY_SCHEDULES = "custody_schedules"

COLLECTION_COLUMNS: dict[str, list[str]] = {
    CALENDAR_EVENTS: [
        "id",
        "child_id",
        "user_id",
        "start_time",
        "end_time",
        "event_type",
        "activity_name",
        "location",
        "notes",
    ],
    CUSTODY_SCHEDULES: [
        "id",
        "child_id",
        "user_id",
        "days_of_week",
        "parent_name",
        "parent_type",
        "color",
    ],
}


class RangeCondition(BaseModel):
    """Inclusive bounds on one column; either side may be open."""

    column: str
    gte: Optional[Any] = None
    lte: Optional[Any] = None


class RecordFilter(BaseModel):
    """
    Which records an operation applies to.

    Built fluently, in the style of the query builders remote stores expose:

        RecordFilter().eq("child_id", cid).between("start_time", lo, hi)
    """

    equals: dict[str, Any] = Field(default_factory=dict)
    ranges: list[RangeCondition] = Field(default_factory=list)

    def eq(self, column: str, value: Any) -> 'RecordFilter':
        return self.model_copy(update={"equals": {**self.equals, column: value}})

    def gte(self, column: str, value: Any) -> 'RecordFilter':
        return self._with_range(RangeCondition(column=column, gte=value))

    def lte(self, column: str, value: Any) -> 'RecordFilter':
        return self._with_range(RangeCondition(column=column, lte=value))

    def between(self, column: str, low: Any, high: Any) -> 'RecordFilter':
        return self._with_range(RangeCondition(column=column, gte=low, lte=high))

    def _with_range(self, condition: RangeCondition) -> 'RecordFilter':
        return self.model_copy(update={"ranges": [*self.ranges, condition]})

    @property
    def is_empty(self) -> bool:
        return not self.equals and not self.ranges

    def matches(self, record: dict[str, Any]) -> bool:
        """Whether a record satisfies every condition."""
        for column, expected in self.equals.items():
            if str(record.get(column)) != str(expected):
                return False

        for condition in self.ranges:
            raw = record.get(condition.column)
            if raw is None or raw == "":
                return False
            if condition.gte is not None and _coerce(raw, condition.gte) < condition.gte:
                return False
            if condition.lte is not None and _coerce(raw, condition.lte) > condition.lte:
                return False

        return True


def _coerce(value: Any, like: Any) -> Any:
    """Convert a stored value to the type of the bound it is compared with."""
    if isinstance(like, datetime):
        return parse_local_timestamp(value)
    if isinstance(like, date) and not isinstance(value, date):
        return date.fromisoformat(str(value))
    if isinstance(like, (int, float)) and not isinstance(value, (int, float)):
        return type(like)(value)
    return value


class RecordStoreInterface(ABC):
    """
    Abstract interface for the remote record store.

    Any implementation (Google Sheets, a SQL database, memory) must
    implement these methods. Implementations wrap backend failures in
    StorageError and never retry mutations on their own.
    """

    @abstractmethod
    async def select(
        self,
        collection: str,
        where: Optional[RecordFilter] = None,
    ) -> list[dict[str, Any]]:
        """
        Fetch records from a collection.

        Args:
            collection: Collection name
            where: Conditions to match; None selects everything

        Returns:
            Matching records in storage order

        Raises:
            StorageError: If the read fails
        """
        pass

    @abstractmethod
    async def insert(
        self,
        collection: str,
        records: list[dict[str, Any]],
    ) -> list[dict[str, Any]]:
        """
        Insert records as one batch.

        Records without an id are assigned one.

        Returns:
            The stored records, ids included

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def update(
        self,
        collection: str,
        values: dict[str, Any],
        where: RecordFilter,
    ) -> int:
        """
        Set columns on every matching record.

        Returns:
            Number of records updated

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def delete(
        self,
        collection: str,
        where: RecordFilter,
    ) -> int:
        """
        Delete every matching record.

        Returns:
            Number of records deleted

        Raises:
            StorageError: If the write fails
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Collection or entity not found in storage."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass


def check_collection(collection: str) -> list[str]:
    """Columns of a known collection."""
    try:
        return COLLECTION_COLUMNS[collection]
    except KeyError:
        raise NotFoundError(f"Unknown collection: {collection}")
