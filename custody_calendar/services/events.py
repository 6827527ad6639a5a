"""
Calendar Event Store

Adapter between the calendar and the two remote collections:
- calendar_events: one-off scheduled activities, scoped by child and day
- custody_schedules: weekly custody assignments, scoped by child only

A single calendar day is addressed by its day-range bounds
[00:00:00, 23:59:59] on start_time, never by record id. Create and
update of a day's activity share one replace path: delete whatever is
in the day's bounds, then insert a fresh record.

Every method can fail with StorageError (or AuthError for writes that
stamp the current user). Failures propagate unchanged and are never
retried here.
"""

from datetime import datetime
from typing import Optional, Sequence, Union

from custody_calendar.config import get_settings
from custody_calendar.grid import month_bounds
from custody_calendar.models.calendar import CalendarDate
from custody_calendar.models.schedule import (
    ParentType,
    RecurringAssignment,
    ScheduledActivity,
    SelectionEntry,
    describe_activity,
)
from custody_calendar.services.auth import AuthProviderInterface
from custody_calendar.services.storage import (
    CALENDAR_EVENTS,
    CUSTODY_SCHEDULES,
    RecordFilter,
    RecordStoreInterface,
)
from custody_calendar.validation import ScheduleValidator


def day_filter(child_id: str, day: CalendarDate) -> RecordFilter:
    """Records of one child whose start_time falls on the given day."""
    start_of_day, end_of_day = day.day_bounds()
    return (
        RecordFilter()
        .eq("child_id", child_id)
        .between("start_time", start_of_day, end_of_day)
    )


class CalendarEventStore:
    """
    CRUD for scheduled activities and custody assignments.

    Stateless apart from its collaborators; the calendar session owns
    all in-memory state.
    """

    def __init__(
        self,
        store: RecordStoreInterface,
        auth: AuthProviderInterface,
        validator: Optional[ScheduleValidator] = None,
    ):
        self._store = store
        self._auth = auth
        self._validator = validator or ScheduleValidator()
        self._settings = get_settings().app

    # -------------------------------------------------------------------------
    # Scheduled activities
    # -------------------------------------------------------------------------

    async def fetch_scheduled_activities(
        self,
        child_id: str,
        month_start: datetime,
        month_end: datetime,
    ) -> list[ScheduledActivity]:
        """Activities whose start_time lies in [month_start, month_end]."""
        where = (
            RecordFilter()
            .eq("child_id", child_id)
            .between("start_time", month_start, month_end)
        )
        records = await self._store.select(CALENDAR_EVENTS, where)
        return [ScheduledActivity.from_record(record) for record in records]

    async def fetch_month(
        self,
        child_id: str,
        year: int,
        month: int,
    ) -> list[ScheduledActivity]:
        """Activities of one calendar month."""
        month_start, month_end = month_bounds(year, month)
        return await self.fetch_scheduled_activities(child_id, month_start, month_end)

    def _new_activity(
        self,
        child_id: str,
        day: CalendarDate,
        name: str,
        user_id: str,
        child_name: Optional[str],
    ) -> ScheduledActivity:
        return ScheduledActivity.for_day(
            child_id=child_id,
            day=day,
            activity_name=name,
            start_hour=self._settings.activity_start_hour,
            end_hour=self._settings.activity_end_hour,
            child_name=child_name,
            user_id=user_id,
        )

    async def upsert_activity(
        self,
        child_id: str,
        day: CalendarDate,
        name: str,
        child_name: Optional[str] = None,
    ) -> ScheduledActivity:
        """
        Make `name` the only activity on `day`.

        Deletes anything already in the day's bounds, then inserts one
        fresh record.
        """
        user_id = await self._auth.get_current_user_id()
        activity = self._new_activity(child_id, day, name, user_id, child_name)

        await self._store.delete(CALENDAR_EVENTS, day_filter(child_id, day))
        stored = await self._store.insert(CALENDAR_EVENTS, [activity.to_record()])
        return ScheduledActivity.from_record(stored[0])

    async def rename_activity(
        self,
        child_id: str,
        day: CalendarDate,
        name: str,
        child_name: Optional[str] = None,
    ) -> int:
        """
        Rename the activity on `day` in place.

        Returns:
            Number of records updated
        """
        values = {
            "activity_name": name,
            "notes": describe_activity(name, child_name),
        }
        return await self._store.update(CALENDAR_EVENTS, values, day_filter(child_id, day))

    async def delete_activity(self, child_id: str, day: CalendarDate) -> int:
        """Delete whatever is scheduled on `day`."""
        return await self._store.delete(CALENDAR_EVENTS, day_filter(child_id, day))

    async def replace_activities(
        self,
        child_id: str,
        entries: Sequence[SelectionEntry],
        child_name: Optional[str] = None,
    ) -> list[ScheduledActivity]:
        """
        Persist a whole selection: one day-range delete per entry, then
        one batch insert.

        NOT atomic. A failure part-way leaves the earlier days deleted
        (and, if the insert fails, nothing re-inserted). Re-running the
        same call converges to the intended state, so callers can retry
        the whole batch by hand.
        """
        if not entries:
            return []
        user_id = await self._auth.get_current_user_id()

        for entry in entries:
            await self._store.delete(CALENDAR_EVENTS, day_filter(child_id, entry.date))

        records = [
            self._new_activity(child_id, entry.date, entry.activity, user_id, child_name).to_record()
            for entry in entries
        ]
        stored = await self._store.insert(CALENDAR_EVENTS, records)
        return [ScheduledActivity.from_record(record) for record in stored]

    # -------------------------------------------------------------------------
    # Custody assignments
    # -------------------------------------------------------------------------

    async def fetch_recurring_assignments(self, child_id: str) -> list[RecurringAssignment]:
        """All custody assignments of a child, in storage order."""
        records = await self._store.select(
            CUSTODY_SCHEDULES,
            RecordFilter().eq("child_id", child_id),
        )
        return [RecurringAssignment.from_record(record) for record in records]

    async def create_recurring_assignment(
        self,
        child_id: str,
        days_of_week: Sequence[int],
        parent_name: Optional[str],
        parent_type: Union[ParentType, str],
        color: Optional[str] = None,
        existing: Optional[Sequence[RecurringAssignment]] = None,
    ) -> RecurringAssignment:
        """
        Create a weekly custody assignment.

        Args:
            existing: The child's current assignments, if already loaded.
                      Fetched from the store otherwise.

        Raises:
            ValidationError: Empty days, blank name, or days that overlap
                             an existing assignment
        """
        # Field checks first: these must fail before any network call
        self._validator.validate_assignment(days_of_week, parent_name, parent_type, color)

        if existing is None:
            existing = await self.fetch_recurring_assignments(child_id)
        self._validator.validate_assignment(
            days_of_week, parent_name, parent_type, color, existing=existing
        )

        parent = ParentType(parent_type)
        if color is None:
            color = self._settings.mom_color if parent == ParentType.MOM else self._settings.dad_color

        user_id = await self._auth.get_current_user_id()
        assignment = RecurringAssignment(
            child_id=child_id,
            user_id=user_id,
            days_of_week=days_of_week,
            parent_name=parent_name,
            parent_type=parent,
            color=color,
        )
        stored = await self._store.insert(CUSTODY_SCHEDULES, [assignment.to_record()])
        return RecurringAssignment.from_record(stored[0])
