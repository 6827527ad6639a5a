"""
Recurrence Resolver

Projects weekly custody assignments onto calendar dates.

PRECEDENCE: when several assignments claim the same weekday, the first
one in input order wins. New assignments that would overlap an existing
one are rejected by ScheduleValidator, so overlaps can only come from
data written before that check existed; find_overlaps() lets the caller
detect and report them.

Runs are computed over weekday indices, not calendar dates: Sunday (6)
and the following Monday (0) are never part of the same run.
"""

from datetime import date
from typing import Iterable, Optional, Sequence, Union

from custody_calendar.models.calendar import CalendarDate, RunPosition
from custody_calendar.models.schedule import RecurringAssignment


def _weekday(value: Union[CalendarDate, date]) -> int:
    if isinstance(value, CalendarDate):
        return value.weekday_index
    return value.weekday()


def recurring_for(
    value: Union[CalendarDate, date],
    assignments: Iterable[RecurringAssignment],
) -> Optional[RecurringAssignment]:
    """The custody assignment active on a date's weekday, if any."""
    weekday = _weekday(value)
    for assignment in assignments:
        if weekday in assignment.days_of_week:
            return assignment
    return None


def run_position(
    value: Union[CalendarDate, date],
    assignment: RecurringAssignment,
) -> Optional[RunPosition]:
    """
    Position of a date within its run of consecutive assigned weekdays.

    Returns None when the assignment does not cover the date's weekday.
    """
    weekday = _weekday(value)
    days = sorted(assignment.days_of_week)
    if weekday not in days:
        return None

    index = days.index(weekday)
    is_first = index == 0 or days[index - 1] != weekday - 1
    is_last = index == len(days) - 1 or days[index + 1] != weekday + 1
    return RunPosition(is_first=is_first, is_last=is_last)


def find_overlaps(
    assignments: Sequence[RecurringAssignment],
) -> dict[int, list[RecurringAssignment]]:
    """Weekdays claimed by more than one assignment, with the claimants in input order."""
    claims: dict[int, list[RecurringAssignment]] = {}
    for assignment in assignments:
        for weekday in assignment.days_of_week:
            claims.setdefault(weekday, []).append(assignment)
    return {
        weekday: claimants
        for weekday, claimants in sorted(claims.items())
        if len(claimants) > 1
    }


class RecurrenceResolver:
    """
    Read-only view over one child's assignments for a grid render.

    Resolves each weekday once, since a month grid asks for every
    weekday four or more times.
    """

    def __init__(self, assignments: Sequence[RecurringAssignment]):
        self._assignments = tuple(assignments)
        self._by_weekday: dict[int, Optional[RecurringAssignment]] = {}

    @property
    def assignments(self) -> tuple[RecurringAssignment, ...]:
        return self._assignments

    def assignment_for(self, value: Union[CalendarDate, date]) -> Optional[RecurringAssignment]:
        weekday = _weekday(value)
        if weekday not in self._by_weekday:
            self._by_weekday[weekday] = recurring_for(value, self._assignments)
        return self._by_weekday[weekday]

    def resolve(
        self,
        value: Union[CalendarDate, date],
    ) -> tuple[Optional[RecurringAssignment], Optional[RunPosition]]:
        """Assignment and run position for a date (both None if unassigned)."""
        assignment = self.assignment_for(value)
        if assignment is None:
            return None, None
        return assignment, run_position(value, assignment)

    def overlaps(self) -> dict[int, list[RecurringAssignment]]:
        return find_overlaps(self._assignments)
