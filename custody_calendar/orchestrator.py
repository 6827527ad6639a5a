"""
Calendar Session Orchestrator

This module ties the components together and defines the flows behind
every calendar interaction:
1. Hydrate (month change or child change -> fetch -> replace selection)
2. Tap (date -> detail view, or a pending create input)
3. Add / Edit / Remove a single day's activity
4. Bulk confirm of the whole selection
5. Weekly custody assignments

DESIGN DECISION: The session enforces the boundaries:
- Persist first, then touch the in-memory selection
- Validate before any network call
- Only the latest month load may write the selection (last request wins)
- Every step is audited, every failure is re-raised

TRADEOFFS:
- Bulk confirm is not atomic; a failure part-way leaves earlier days
  written. Re-confirming converges, so the caller may simply retry.
- No operation is retried automatically.
"""

from datetime import date
from typing import Optional, Sequence, Union
from uuid import UUID

import structlog

from custody_calendar.audit import AuditLogger, create_correlation_id
from custody_calendar.config import get_settings
from custody_calendar.grid import build_month_grid, shift_month
from custody_calendar.models.calendar import CalendarDate, MonthGrid, coerce_calendar_date
from custody_calendar.models.schedule import (
    InputKind,
    ParentType,
    PendingInput,
    RecurringAssignment,
    SelectionEntry,
)
from custody_calendar.presentation import MonthView, build_month_view, upcoming_events
from custody_calendar.recurrence import find_overlaps
from custody_calendar.selection import SelectionMap
from custody_calendar.services import (
    CalendarEventStore,
    GoogleSheetsClient,
    GoogleSheetsRecordStore,
    InMemoryRecordStore,
    RecordStoreInterface,
    SettingsAuthProvider,
)
from custody_calendar.services.auth import AuthProviderInterface
from custody_calendar.validation import ScheduleValidator, ValidationError


logger = structlog.get_logger(__name__)

DateLike = Union[CalendarDate, date, str]


class CalendarSession:
    """
    State of one calendar screen: the child, the visible month, the
    selection map mirroring persisted activities, and the custody
    assignments.

    Flow for a single day:
    1. select_date() -> PendingInput (or opens the detail view)
    2. commit(pending, name) -> persisted, then written to the selection
       or cancel(pending) -> nothing changes

    The selection invariant: a date is in the selection iff a persisted
    activity is believed to exist for it.
    """

    def __init__(
        self,
        event_store: CalendarEventStore,
        audit_logger: Optional[AuditLogger] = None,
        validator: Optional[ScheduleValidator] = None,
    ):
        self._events = event_store
        self._audit_logger = audit_logger or AuditLogger()
        self._validator = validator or ScheduleValidator()

        self._child_id: Optional[str] = None
        self._child_name: Optional[str] = None

        today = date.today()
        self._year = today.year
        self._month = today.month
        self._grid = build_month_grid(self._year, self._month)

        self._selection = SelectionMap()
        self._assignments: list[RecurringAssignment] = []
        self._open_detail: Optional[CalendarDate] = None

        self._pending: Optional[PendingInput] = None
        self._next_token = 0

        self._generation = 0
        self._loading = False
        self._load_generation = 0

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def child_id(self) -> Optional[str]:
        return self._child_id

    @property
    def child_name(self) -> Optional[str]:
        return self._child_name

    @property
    def year(self) -> int:
        return self._year

    @property
    def month(self) -> int:
        return self._month

    @property
    def grid(self) -> MonthGrid:
        return self._grid

    @property
    def selection(self) -> SelectionMap:
        return self._selection

    @property
    def assignments(self) -> list[RecurringAssignment]:
        return list(self._assignments)

    @property
    def open_detail(self) -> Optional[CalendarDate]:
        """Date whose detail view is open, if any."""
        return self._open_detail

    @property
    def pending_input(self) -> Optional[PendingInput]:
        return self._pending

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def is_loading(self) -> bool:
        """True while the most recent month load is still outstanding."""
        return self._loading

    def month_view(self, today: Optional[CalendarDate] = None) -> MonthView:
        return build_month_view(self._grid, self._selection, self._assignments, today=today)

    def upcoming(self, limit: Optional[int] = None) -> list[SelectionEntry]:
        if limit is None:
            limit = get_settings().app.upcoming_events_limit
        return upcoming_events(self._selection, limit)

    def _require_child(self) -> str:
        if not self._child_id:
            raise ValidationError.single(
                "child_id",
                "missing",
                "Choose a child before editing the calendar.",
            )
        return self._child_id

    async def _report_failure(
        self,
        operation: str,
        error: Exception,
        value: Optional[CalendarDate] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        date_key = value.key if value is not None else None
        if isinstance(error, ValidationError):
            await self._audit_logger.log_validation_failed(
                child_id=self._child_id,
                issues=error.to_dicts(),
                date_key=date_key,
                correlation_id=correlation_id,
            )
        else:
            await self._audit_logger.log_operation_failed(
                operation=operation,
                error_message=str(error),
                child_id=self._child_id,
                date_key=date_key,
                correlation_id=correlation_id,
            )

    # -------------------------------------------------------------------------
    # Hydration
    # -------------------------------------------------------------------------

    async def load_child(
        self,
        child_id: str,
        child_name: Optional[str] = None,
        year: Optional[int] = None,
        month: Optional[int] = None,
    ) -> bool:
        """
        Switch to a child: load their custody assignments, then hydrate
        the given month (the current one by default).

        Returns:
            Whether the month load was applied (False if superseded)
        """
        if not child_id or not child_id.strip():
            raise ValidationError.single("child_id", "missing", "A child id is required.")

        self._load_generation += 1
        load = self._load_generation
        self._child_id = child_id
        self._child_name = child_name
        self._selection.clear()
        self._assignments = []
        self._open_detail = None
        self._pending = None

        await self.reload_assignments()
        if load != self._load_generation:
            return False

        today = date.today()
        return await self.show_month(year or today.year, month or today.month)

    async def reload_assignments(self) -> list[RecurringAssignment]:
        """
        Fetch the child's custody assignments and report any overlaps.

        A result that arrives after another child was loaded is dropped
        and the current assignments are returned unchanged.
        """
        child_id = self._require_child()
        load = self._load_generation
        try:
            assignments = await self._events.fetch_recurring_assignments(child_id)
        except Exception as e:
            if self._is_superseded(load, child_id):
                await self._audit_logger.log_assignments_discarded(child_id)
                return self.assignments
            await self._report_failure("fetch_recurring_assignments", e)
            raise

        if self._is_superseded(load, child_id):
            await self._audit_logger.log_assignments_discarded(child_id)
            return self.assignments

        self._assignments = assignments
        overlaps = find_overlaps(assignments)
        await self._audit_logger.log_assignments_loaded(
            child_id=child_id,
            count=len(assignments),
            overlapping_weekdays=sorted(overlaps),
        )
        return self.assignments

    def _is_superseded(self, load: int, child_id: str) -> bool:
        return load != self._load_generation or child_id != self._child_id

    async def show_month(self, year: int, month: int) -> bool:
        """Make (year, month) visible and hydrate it."""
        self._grid = build_month_grid(year, month)
        self._year = year
        self._month = month
        self._open_detail = None
        self._pending = None
        return await self.hydrate()

    async def next_month(self) -> bool:
        year, month = shift_month(self._year, self._month, 1)
        return await self.show_month(year, month)

    async def previous_month(self) -> bool:
        year, month = shift_month(self._year, self._month, -1)
        return await self.show_month(year, month)

    async def hydrate(self) -> bool:
        """
        Replace the selection with the persisted activities of the
        visible month.

        Each call takes a new generation number. A result whose
        generation is no longer the latest is discarded, so a slow load
        of a month the user already navigated away from never overwrites
        the newer one. A superseded load that fails is discarded the
        same way instead of raising.

        Returns:
            True if the result was applied, False if it was discarded
        """
        child_id = self._require_child()
        self._generation += 1
        generation = self._generation
        year, month = self._year, self._month
        self._loading = True

        try:
            activities = await self._events.fetch_month(child_id, year, month)
        except Exception as e:
            if generation != self._generation or child_id != self._child_id:
                return await self._discard_hydration(child_id, year, month, generation)
            self._loading = False
            await self._report_failure("hydrate", e)
            raise

        if generation != self._generation or child_id != self._child_id:
            return await self._discard_hydration(child_id, year, month, generation)

        self._selection = SelectionMap.from_activities(activities)
        self._loading = False
        await self._audit_logger.log_month_hydrated(
            child_id=child_id,
            year=year,
            month=month,
            activity_count=len(self._selection),
            generation=generation,
        )
        return True

    async def _discard_hydration(self, child_id: str, year: int, month: int, generation: int) -> bool:
        await self._audit_logger.log_hydration_discarded(
            child_id=child_id,
            year=year,
            month=month,
            generation=generation,
            latest_generation=self._generation,
        )
        return False

    # -------------------------------------------------------------------------
    # Two-phase input
    # -------------------------------------------------------------------------

    async def request_input(
        self,
        kind: InputKind,
        value: DateLike,
        correlation_id: Optional[UUID] = None,
    ) -> PendingInput:
        """
        Ask for a value from the user. Supersedes any earlier pending input.

        For a rename, the current activity name is offered as the
        initial value.
        """
        child_id = self._require_child()
        day = coerce_calendar_date(value)
        kind = InputKind(kind)

        initial_value = ""
        if kind == InputKind.RENAME_ACTIVITY:
            entry = self._selection.get(day)
            initial_value = entry.activity if entry else ""

        self._next_token += 1
        self._pending = PendingInput(
            token=self._next_token,
            kind=kind,
            date=day,
            initial_value=initial_value,
        )
        await self._audit_logger.log_input_requested(
            child_id=child_id,
            date_key=day.key,
            kind=kind.value,
            correlation_id=correlation_id,
        )
        return self._pending

    async def commit(
        self,
        pending: PendingInput,
        value: Optional[str],
        correlation_id: Optional[UUID] = None,
    ) -> SelectionEntry:
        """
        Complete a pending input with the user's value.

        The pending input stays open if the operation fails, so the user
        can correct the value and commit again.

        Raises:
            ValidationError: If the input was cancelled or superseded, or
                             the value is rejected
        """
        if self._pending is None or self._pending != pending:
            error = ValidationError.single(
                "input",
                "stale",
                "This input is no longer active.",
            )
            await self._report_failure("commit", error, pending.date, correlation_id)
            raise error

        if pending.kind == InputKind.CREATE_ACTIVITY:
            entry = await self.add_activity(pending.date, value, correlation_id)
        else:
            entry = await self.rename_activity(pending.date, value, correlation_id)

        if self._pending == pending:
            self._pending = None
        return entry

    async def cancel(
        self,
        pending: PendingInput,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Drop a pending input. Never touches the selection or the store."""
        if self._pending == pending:
            self._pending = None
        await self._audit_logger.log_input_cancelled(
            child_id=self._child_id,
            date_key=pending.date.key,
            kind=pending.kind.value,
            correlation_id=correlation_id,
        )

    # -------------------------------------------------------------------------
    # Single-day flows
    # -------------------------------------------------------------------------

    async def select_date(self, value: DateLike) -> Optional[PendingInput]:
        """
        Handle a tap on a grid cell.

        - Outside the visible month: nothing happens, returns None
        - Already selected: opens its detail view, returns None
        - Otherwise: returns a pending create input
        """
        day = coerce_calendar_date(value)
        if not self._grid.contains(day):
            return None
        if day in self._selection:
            self._open_detail = day
            return None
        return await self.request_input(InputKind.CREATE_ACTIVITY, day)

    def close_detail(self) -> None:
        self._open_detail = None

    async def add_activity(
        self,
        value: DateLike,
        name: Optional[str],
        correlation_id: Optional[UUID] = None,
    ) -> SelectionEntry:
        """Persist a new activity for a day, then select the day."""
        correlation_id = correlation_id or create_correlation_id()
        day = coerce_calendar_date(value)

        try:
            child_id = self._require_child()
            cleaned = self._validator.validate_activity_name(name)
            await self._events.upsert_activity(child_id, day, cleaned, self._child_name)
        except Exception as e:
            await self._report_failure("add_activity", e, day, correlation_id)
            raise

        entry = self._selection.set(day, cleaned)
        await self._audit_logger.log_activity_created(
            child_id=child_id,
            date_key=day.key,
            activity=cleaned,
            correlation_id=correlation_id,
        )
        return entry

    async def rename_activity(
        self,
        value: DateLike,
        name: Optional[str],
        correlation_id: Optional[UUID] = None,
    ) -> SelectionEntry:
        """Rename a selected day's activity. The selection changes only on success."""
        correlation_id = correlation_id or create_correlation_id()
        day = coerce_calendar_date(value)

        try:
            child_id = self._require_child()
            current = self._selection.get(day)
            if current is None:
                raise ValidationError.single(
                    "date",
                    "not_selected",
                    f"Nothing is scheduled on {day.key}.",
                )
            cleaned = self._validator.validate_activity_name(name)
            await self._events.rename_activity(child_id, day, cleaned, self._child_name)
        except Exception as e:
            await self._report_failure("rename_activity", e, day, correlation_id)
            raise

        entry = self._selection.set(day, cleaned)
        await self._audit_logger.log_activity_renamed(
            child_id=child_id,
            date_key=day.key,
            old_activity=current.activity,
            new_activity=cleaned,
            correlation_id=correlation_id,
        )
        return entry

    async def remove_activity(
        self,
        value: DateLike,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Delete a day's persisted activity, unselect it and close its detail view."""
        correlation_id = correlation_id or create_correlation_id()
        day = coerce_calendar_date(value)

        try:
            child_id = self._require_child()
            await self._events.delete_activity(child_id, day)
        except Exception as e:
            await self._report_failure("remove_activity", e, day, correlation_id)
            raise

        self._selection.remove(day)
        if self._open_detail == day:
            self._open_detail = None
        await self._audit_logger.log_activity_removed(
            child_id=child_id,
            date_key=day.key,
            correlation_id=correlation_id,
        )

    # -------------------------------------------------------------------------
    # Bulk confirm
    # -------------------------------------------------------------------------

    async def confirm_selection(
        self,
        correlation_id: Optional[UUID] = None,
    ) -> list[CalendarDate]:
        """
        Persist every selected day: one day-scoped delete per date, then
        one batch insert.

        Returns:
            The confirmed dates, sorted

        Raises:
            ValidationError: If nothing is selected
        """
        correlation_id = correlation_id or create_correlation_id()

        try:
            child_id = self._require_child()
            entries = self._selection.upcoming()
            if not entries:
                raise ValidationError.single(
                    "selection",
                    "empty",
                    "Select at least one day before confirming.",
                )
            await self._events.replace_activities(child_id, entries, self._child_name)
        except Exception as e:
            await self._report_failure("confirm_selection", e, correlation_id=correlation_id)
            raise

        dates = [entry.date for entry in entries]
        await self._audit_logger.log_selection_confirmed(
            child_id=child_id,
            date_keys=[value.key for value in dates],
            correlation_id=correlation_id,
        )
        return dates

    # -------------------------------------------------------------------------
    # Custody assignments
    # -------------------------------------------------------------------------

    async def add_recurring_assignment(
        self,
        days_of_week: Sequence[int],
        parent_name: Optional[str],
        parent_type: Union[ParentType, str],
        color: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> RecurringAssignment:
        """Validate and persist a weekly assignment, then reload all assignments."""
        correlation_id = correlation_id or create_correlation_id()

        try:
            child_id = self._require_child()
            created = await self._events.create_recurring_assignment(
                child_id=child_id,
                days_of_week=days_of_week,
                parent_name=parent_name,
                parent_type=parent_type,
                color=color,
                existing=self._assignments,
            )
        except Exception as e:
            await self._report_failure("add_recurring_assignment", e, correlation_id=correlation_id)
            raise

        await self._audit_logger.log_assignment_created(
            child_id=child_id,
            parent_name=created.parent_name,
            days_of_week=list(created.days_of_week),
            correlation_id=correlation_id,
        )
        await self.reload_assignments()
        return created


def create_app_components(
    use_storage: bool = True,
    auth: Optional[AuthProviderInterface] = None,
) -> tuple[CalendarSession, Optional[GoogleSheetsClient]]:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to use the configured remote backend.
                    Set to False to run against an in-memory store.
        auth: Current-user provider; reads CALENDAR_AUTH_USER_ID by default

    Returns:
        (calendar_session, sheets_client)
    """
    settings = get_settings()
    sheets_client = None
    store: Optional[RecordStoreInterface] = None

    if use_storage and settings.app.storage_backend == "sheets":
        try:
            sheets_client = GoogleSheetsClient()
            store = GoogleSheetsRecordStore(sheets_client)
        except Exception as e:
            # Storage not configured - continue without it
            logger.warning("storage_not_configured", error=str(e))
            sheets_client = None
            store = None

    if store is None:
        store = InMemoryRecordStore()

    event_store = CalendarEventStore(store, auth or SettingsAuthProvider())
    session = CalendarSession(event_store, audit_logger=AuditLogger())
    return session, sheets_client
