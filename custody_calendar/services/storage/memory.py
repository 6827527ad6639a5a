"""
In-Memory Record Store

Same semantics as the Google Sheets store, held in process memory.
Used by the test suite and by the Streamlit page when
CALENDAR_STORAGE_BACKEND=memory.
"""

import copy
from typing import Any, Optional
from uuid import uuid4

from custody_calendar.services.storage.interface import (
    COLLECTION_COLUMNS,
    RecordFilter,
    RecordStoreInterface,
    StorageError,
    check_collection,
)


class InMemoryRecordStore(RecordStoreInterface):
    """Records kept per collection in insertion order."""

    def __init__(self, records: Optional[dict[str, list[dict[str, Any]]]] = None):
        self._collections: dict[str, list[dict[str, Any]]] = {
            name: [] for name in COLLECTION_COLUMNS
        }
        for name, rows in (records or {}).items():
            check_collection(name)
            self._collections[name] = [self._with_id(row) for row in rows]

    @staticmethod
    def _with_id(record: dict[str, Any]) -> dict[str, Any]:
        stored = copy.deepcopy(record)
        if not stored.get("id"):
            stored["id"] = str(uuid4())
        return stored

    def _matches(self, collection: str, where: RecordFilter, row: dict[str, Any]) -> bool:
        try:
            return where.matches(row)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Unreadable value in {collection}: {e}")

    def records(self, collection: str) -> list[dict[str, Any]]:
        """Snapshot of a collection, for inspection."""
        check_collection(collection)
        return copy.deepcopy(self._collections[collection])

    async def select(
        self,
        collection: str,
        where: Optional[RecordFilter] = None,
    ) -> list[dict[str, Any]]:
        check_collection(collection)
        where = where or RecordFilter()
        return [
            copy.deepcopy(row)
            for row in self._collections[collection]
            if self._matches(collection, where, row)
        ]

    async def insert(
        self,
        collection: str,
        records: list[dict[str, Any]],
    ) -> list[dict[str, Any]]:
        columns = check_collection(collection)
        for record in records:
            unknown = set(record) - set(columns)
            if unknown:
                raise StorageError(
                    f"Unknown columns for {collection}: {sorted(unknown)}"
                )
        stored = [self._with_id(record) for record in records]
        self._collections[collection].extend(stored)
        return copy.deepcopy(stored)

    async def update(
        self,
        collection: str,
        values: dict[str, Any],
        where: RecordFilter,
    ) -> int:
        check_collection(collection)
        if where.is_empty:
            raise StorageError("Refusing to update without a filter")
        count = 0
        for row in self._collections[collection]:
            if self._matches(collection, where, row):
                row.update(copy.deepcopy(values))
                count += 1
        return count

    async def delete(
        self,
        collection: str,
        where: RecordFilter,
    ) -> int:
        check_collection(collection)
        if where.is_empty:
            raise StorageError("Refusing to delete without a filter")
        rows = self._collections[collection]
        kept = [row for row in rows if not self._matches(collection, where, row)]
        self._collections[collection] = kept
        return len(rows) - len(kept)
