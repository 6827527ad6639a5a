"""Tests for the record store implementations."""

import json
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from custody_calendar.services.storage import (
    CALENDAR_EVENTS,
    COLLECTION_COLUMNS,
    CUSTODY_SCHEDULES,
    GoogleSheetsRecordStore,
    InMemoryRecordStore,
    NotFoundError,
    RecordFilter,
    StorageError,
)


def event_record(record_id, child_id, start, name="Soccer"):
    return {
        "id": record_id,
        "child_id": child_id,
        "user_id": "u1",
        "start_time": start,
        "end_time": start,
        "event_type": "scheduled",
        "activity_name": name,
        "location": "",
        "notes": "",
    }


MARCH_10 = RecordFilter().eq("child_id", "c1").between(
    "start_time",
    datetime(2024, 3, 10, 0, 0, 0),
    datetime(2024, 3, 10, 23, 59, 59),
)

MARCH = RecordFilter().eq("child_id", "c1").between(
    "start_time",
    datetime(2024, 3, 1, 0, 0, 0),
    datetime(2024, 3, 31, 23, 59, 59),
)


class TestRecordFilter:
    """Tests for filter matching."""

    def test_empty_filter_matches_everything(self):
        assert RecordFilter().is_empty
        assert RecordFilter().matches({"anything": 1})

    def test_equality_compares_as_text(self):
        """Test that a sheet's string cell equals an int filter value."""
        assert RecordFilter().eq("child_id", 7).matches({"child_id": "7"})
        assert not RecordFilter().eq("child_id", 7).matches({"child_id": "8"})

    def test_inclusive_datetime_range(self):
        """Test both day bounds are inclusive on ISO strings."""
        assert MARCH_10.matches({"child_id": "c1", "start_time": "2024-03-10T00:00:00"})
        assert MARCH_10.matches({"child_id": "c1", "start_time": "2024-03-10T23:59:59"})
        assert not MARCH_10.matches({"child_id": "c1", "start_time": "2024-03-11T00:00:00"})
        assert not MARCH_10.matches({"child_id": "c1", "start_time": "2024-03-09T23:59:59"})

    def test_missing_range_value_never_matches(self):
        assert not MARCH_10.matches({"child_id": "c1", "start_time": ""})

    def test_offset_timestamps_compare_as_local_time(self):
        """Test that UTC and offset stamps written by other clients are compared, not rejected."""
        assert MARCH.matches({"child_id": "c1", "start_time": "2024-03-15T12:00:00Z"})
        assert MARCH.matches({"child_id": "c1", "start_time": "2024-03-15T12:00:00+02:00"})
        assert not MARCH.matches({"child_id": "c1", "start_time": "2024-05-15T12:00:00Z"})

    def test_aware_datetime_values_compare_as_local_time(self):
        stamp = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)
        assert MARCH.matches({"child_id": "c1", "start_time": stamp})

    def test_builder_does_not_mutate(self):
        """Test that each fluent call returns a new filter."""
        base = RecordFilter().eq("child_id", "c1")
        narrowed = base.gte("start_time", datetime(2024, 1, 1))
        assert base.ranges == []
        assert len(narrowed.ranges) == 1


class TestInMemoryRecordStore:
    """Tests for the in-memory backend."""

    async def test_insert_assigns_ids(self):
        store = InMemoryRecordStore()
        stored = await store.insert(CALENDAR_EVENTS, [
            event_record(None, "c1", "2024-03-10T09:00:00"),
        ])
        assert stored[0]["id"]
        assert store.records(CALENDAR_EVENTS)[0]["id"] == stored[0]["id"]

    async def test_select_with_filter(self):
        store = InMemoryRecordStore({CALENDAR_EVENTS: [
            event_record("1", "c1", "2024-03-10T09:00:00"),
            event_record("2", "c1", "2024-03-11T09:00:00"),
            event_record("3", "c2", "2024-03-10T09:00:00"),
        ]})
        rows = await store.select(CALENDAR_EVENTS, MARCH_10)
        assert [row["id"] for row in rows] == ["1"]

    async def test_update_and_delete_scoped_by_filter(self):
        store = InMemoryRecordStore({CALENDAR_EVENTS: [
            event_record("1", "c1", "2024-03-10T09:00:00"),
            event_record("2", "c1", "2024-03-11T09:00:00"),
        ]})
        assert await store.update(CALENDAR_EVENTS, {"activity_name": "Chess"}, MARCH_10) == 1
        assert await store.delete(CALENDAR_EVENTS, MARCH_10) == 1
        remaining = store.records(CALENDAR_EVENTS)
        assert [row["id"] for row in remaining] == ["2"]
        assert remaining[0]["activity_name"] == "Soccer"

    async def test_select_reads_offset_stamped_rows(self):
        store = InMemoryRecordStore({CALENDAR_EVENTS: [
            event_record("1", "c1", "2024-03-15T09:00:00+00:00"),
            event_record("2", "c1", "2024-03-16T09:00:00"),
        ]})
        rows = await store.select(CALENDAR_EVENTS, MARCH)
        assert sorted(row["id"] for row in rows) == ["1", "2"]

    async def test_unreadable_value_is_a_storage_error(self):
        """Test that a malformed timestamp surfaces as StorageError, not ValueError."""
        store = InMemoryRecordStore({CALENDAR_EVENTS: [
            event_record("1", "c1", "next tuesday"),
        ]})
        with pytest.raises(StorageError):
            await store.select(CALENDAR_EVENTS, MARCH)
        with pytest.raises(StorageError):
            await store.delete(CALENDAR_EVENTS, MARCH)

    async def test_refuses_unfiltered_writes(self):
        store = InMemoryRecordStore()
        with pytest.raises(StorageError):
            await store.delete(CALENDAR_EVENTS, RecordFilter())
        with pytest.raises(StorageError):
            await store.update(CALENDAR_EVENTS, {"notes": "x"}, RecordFilter())

    async def test_rejects_unknown_columns(self):
        with pytest.raises(StorageError):
            await InMemoryRecordStore().insert(CALENDAR_EVENTS, [{"child_id": "c1", "color": "red"}])

    async def test_unknown_collection(self):
        with pytest.raises(NotFoundError):
            await InMemoryRecordStore().select("expenses")

    async def test_returned_records_are_copies(self):
        store = InMemoryRecordStore({CALENDAR_EVENTS: [event_record("1", "c1", "2024-03-10T09:00:00")]})
        rows = await store.select(CALENDAR_EVENTS)
        rows[0]["activity_name"] = "changed"
        assert store.records(CALENDAR_EVENTS)[0]["activity_name"] == "Soccer"


def make_sheet(collection, records):
    """A mocked worksheet holding a header row plus the given records."""
    columns = COLLECTION_COLUMNS[collection]
    values = [list(columns)]
    for record in records:
        row = []
        for column in columns:
            value = record.get(column)
            if isinstance(value, list):
                row.append(json.dumps(value))
            else:
                row.append("" if value is None else str(value))
        values.append(row)
    sheet = MagicMock()
    sheet.get_all_values.return_value = values
    return sheet


def make_store(sheet):
    client = MagicMock()
    client.get_worksheet.return_value = sheet
    return GoogleSheetsRecordStore(client)


class TestGoogleSheetsRecordStore:
    """Tests for the Google Sheets backend against a mocked worksheet."""

    async def test_select_filters_rows(self):
        sheet = make_sheet(CALENDAR_EVENTS, [
            event_record("1", "c1", "2024-03-10T09:00:00"),
            event_record("2", "c1", "2024-03-12T09:00:00"),
        ])
        rows = await make_store(sheet).select(CALENDAR_EVENTS, MARCH_10)
        assert [row["id"] for row in rows] == ["1"]
        assert rows[0]["activity_name"] == "Soccer"

    async def test_select_decodes_days_of_week(self):
        sheet = make_sheet(CUSTODY_SCHEDULES, [{
            "id": "s1",
            "child_id": "c1",
            "days_of_week": [0, 1, 2],
            "parent_name": "Dad",
            "parent_type": "dad",
            "color": "#4285f4",
        }])
        rows = await make_store(sheet).select(CUSTODY_SCHEDULES)
        assert rows[0]["days_of_week"] == [0, 1, 2]
        assert rows[0]["user_id"] is None

    async def test_insert_appends_one_batch(self):
        sheet = make_sheet(CALENDAR_EVENTS, [])
        stored = await make_store(sheet).insert(CALENDAR_EVENTS, [
            event_record(None, "c1", "2024-03-10T09:00:00"),
            event_record(None, "c1", "2024-03-11T09:00:00"),
        ])
        sheet.append_rows.assert_called_once()
        rows = sheet.append_rows.call_args[0][0]
        assert len(rows) == 2
        assert all(record["id"] for record in stored)
        assert rows[0][0] == stored[0]["id"]

    async def test_delete_runs_bottom_up(self):
        sheet = make_sheet(CALENDAR_EVENTS, [
            event_record("1", "c1", "2024-03-10T09:00:00"),
            event_record("2", "c1", "2024-03-11T09:00:00"),
            event_record("3", "c1", "2024-03-10T18:00:00"),
        ])
        count = await make_store(sheet).delete(CALENDAR_EVENTS, MARCH_10)
        assert count == 2
        assert [c[0][0] for c in sheet.delete_rows.call_args_list] == [4, 2]

    async def test_update_rewrites_changed_cells(self):
        sheet = make_sheet(CALENDAR_EVENTS, [event_record("1", "c1", "2024-03-10T09:00:00")])
        count = await make_store(sheet).update(CALENDAR_EVENTS, {"activity_name": "Chess"}, MARCH_10)
        column = COLLECTION_COLUMNS[CALENDAR_EVENTS].index("activity_name") + 1
        assert count == 1
        sheet.update_cell.assert_called_once_with(2, column, "Chess")

    async def test_backend_errors_are_wrapped(self):
        sheet = MagicMock()
        sheet.get_all_values.side_effect = RuntimeError("quota exceeded")
        with pytest.raises(StorageError, match="quota exceeded"):
            await make_store(sheet).select(CALENDAR_EVENTS)

    async def test_refuses_unfiltered_delete(self):
        sheet = make_sheet(CALENDAR_EVENTS, [])
        with pytest.raises(StorageError):
            await make_store(sheet).delete(CALENDAR_EVENTS, RecordFilter())
        sheet.delete_rows.assert_not_called()
