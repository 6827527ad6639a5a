"""
Google Sheets Record Store

Google Sheets is the remote store because:
1. Parents can look at the schedule directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

TRADEOFFS:
- No transactions: multi-step writes (delete-then-insert) can partially apply
- No server-side filtering: rows are filtered in Python
- Row numbers shift on delete, so deletes run bottom-up

Each collection is one worksheet whose first row holds the column names.
List-valued columns (days_of_week) are JSON-encoded in their cell.
"""

import json
from typing import Any, Optional
from uuid import uuid4

import gspread
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from custody_calendar.config import get_settings
from custody_calendar.services.storage.interface import (
    CALENDAR_EVENTS,
    CUSTODY_SCHEDULES,
    ConnectionError,
    NotFoundError,
    RecordFilter,
    RecordStoreInterface,
    StorageError,
    check_collection,
)

JSON_COLUMNS = {"days_of_week"}


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and maps collection names to worksheets.
    Only connection establishment is retried; reads and writes are not.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def sheet_name_for(self, collection: str) -> str:
        names = {
            CALENDAR_EVENTS: self._settings.events_sheet_name,
            CUSTODY_SCHEDULES: self._settings.schedules_sheet_name,
        }
        try:
            return names[collection]
        except KeyError:
            raise NotFoundError(f"Unknown collection: {collection}")

    def get_worksheet(self, collection: str) -> gspread.Worksheet:
        """Get or create the worksheet backing a collection."""
        columns = check_collection(collection)
        title = self.sheet_name_for(collection)
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=1000,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet


class GoogleSheetsRecordStore(RecordStoreInterface):
    """
    Google Sheets implementation of the record store.

    One record per row, columns in COLLECTION_COLUMNS order.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _record_to_row(self, collection: str, record: dict[str, Any]) -> list:
        """Convert a record to a spreadsheet row."""
        row = []
        for column in check_collection(collection):
            value = record.get(column)
            if column in JSON_COLUMNS:
                row.append(json.dumps(list(value or [])))
            elif value is None:
                row.append("")
            else:
                row.append(str(value))
        return row

    def _row_to_record(self, collection: str, row: list) -> dict[str, Any]:
        """Convert a spreadsheet row to a record."""
        # Handle missing trailing cells gracefully
        def safe_get(index: int, default: str = "") -> str:
            try:
                return row[index] if row[index] else default
            except IndexError:
                return default

        record: dict[str, Any] = {}
        for index, column in enumerate(check_collection(collection)):
            cell = safe_get(index)
            if column in JSON_COLUMNS:
                record[column] = json.loads(cell) if cell else []
            else:
                record[column] = cell or None
        return record

    def _matching_rows(
        self,
        collection: str,
        sheet: gspread.Worksheet,
        where: Optional[RecordFilter],
    ) -> list[tuple[int, dict[str, Any]]]:
        """(sheet row number, record) for every matching data row."""
        where = where or RecordFilter()
        matches = []
        all_rows = sheet.get_all_values()
        for idx, row in enumerate(all_rows[1:], start=2):  # Row 1 is the header
            if not row or not row[0]:  # Skip empty rows
                continue
            record = self._row_to_record(collection, row)
            if where.matches(record):
                matches.append((idx, record))
        return matches

    async def select(
        self,
        collection: str,
        where: Optional[RecordFilter] = None,
    ) -> list[dict[str, Any]]:
        """Fetch matching records in sheet order."""
        try:
            sheet = self._client.get_worksheet(collection)
            return [record for _, record in self._matching_rows(collection, sheet, where)]
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to read {collection}: {e}")

    async def insert(
        self,
        collection: str,
        records: list[dict[str, Any]],
    ) -> list[dict[str, Any]]:
        """Append all records in a single API call."""
        if not records:
            return []
        try:
            sheet = self._client.get_worksheet(collection)
            stored = []
            for record in records:
                row_record = dict(record)
                if not row_record.get("id"):
                    row_record["id"] = str(uuid4())
                stored.append(row_record)
            rows = [self._record_to_row(collection, record) for record in stored]
            sheet.append_rows(rows, value_input_option="RAW")
            return stored
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to insert into {collection}: {e}")

    async def update(
        self,
        collection: str,
        values: dict[str, Any],
        where: RecordFilter,
    ) -> int:
        """Rewrite the changed cells of every matching row."""
        if where.is_empty:
            raise StorageError("Refusing to update without a filter")
        try:
            columns = check_collection(collection)
            sheet = self._client.get_worksheet(collection)
            matches = self._matching_rows(collection, sheet, where)

            for idx, record in matches:
                record.update(values)
                new_row = self._record_to_row(collection, record)
                for column in values:
                    col_idx = columns.index(column) + 1
                    sheet.update_cell(idx, col_idx, new_row[col_idx - 1])

            return len(matches)
        except StorageError:
            raise
        except ValueError as e:
            raise StorageError(f"Unknown column for {collection}: {e}")
        except Exception as e:
            raise StorageError(f"Failed to update {collection}: {e}")

    async def delete(
        self,
        collection: str,
        where: RecordFilter,
    ) -> int:
        """Delete every matching row, bottom-up so row numbers stay valid."""
        if where.is_empty:
            raise StorageError("Refusing to delete without a filter")
        try:
            sheet = self._client.get_worksheet(collection)
            matches = self._matching_rows(collection, sheet, where)
            for idx, _ in reversed(matches):
                sheet.delete_rows(idx)
            return len(matches)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to delete from {collection}: {e}")
