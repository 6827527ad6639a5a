"""
Selection Map

The in-memory mirror of what is persisted for the visible month:
one SelectionEntry per calendar date, keyed by CalendarDate.

A date is present iff a persisted activity is believed to exist for it.
The map never talks to the store; CalendarSession keeps the two in step.
"""

from typing import Iterable, Iterator, Optional

from custody_calendar.models.calendar import CalendarDate
from custody_calendar.models.schedule import ScheduledActivity, SelectionEntry


class SelectionMap:
    """Insertion-ordered map of CalendarDate -> SelectionEntry."""

    def __init__(self, entries: Optional[Iterable[SelectionEntry]] = None):
        self._entries: dict[CalendarDate, SelectionEntry] = {}
        for entry in entries or ():
            self._entries[entry.date] = entry

    @classmethod
    def from_activities(cls, activities: Iterable[ScheduledActivity]) -> 'SelectionMap':
        """Build from fetched activities; a later activity on the same day wins."""
        return cls(
            SelectionEntry(date=activity.date, activity=activity.activity_name)
            for activity in activities
        )

    def get(self, value: CalendarDate) -> Optional[SelectionEntry]:
        return self._entries.get(value)

    def set(self, value: CalendarDate, activity: str) -> SelectionEntry:
        entry = SelectionEntry(date=value, activity=activity)
        self._entries[value] = entry
        return entry

    def remove(self, value: CalendarDate) -> Optional[SelectionEntry]:
        return self._entries.pop(value, None)

    def replace_all(self, entries: Iterable[SelectionEntry]) -> None:
        """Full replace, used by hydration."""
        self._entries = {entry.date: entry for entry in entries}

    def clear(self) -> None:
        self._entries = {}

    def entries(self) -> list[SelectionEntry]:
        return list(self._entries.values())

    def dates(self) -> list[CalendarDate]:
        """Selected dates in chronological order."""
        return sorted(self._entries)

    def as_key_dict(self) -> dict[str, str]:
        """ISO date key -> activity name."""
        return {value.key: entry.activity for value, entry in self._entries.items()}

    def upcoming(
        self,
        limit: Optional[int] = None,
        since: Optional[CalendarDate] = None,
    ) -> list[SelectionEntry]:
        """
        Entries sorted by date, optionally only those on or after `since`.

        Args:
            limit: Maximum number of entries, or None for all
            since: Earliest date to include
        """
        ordered = [self._entries[value] for value in sorted(self._entries)]
        if since is not None:
            ordered = [entry for entry in ordered if since <= entry.date]
        if limit is not None:
            ordered = ordered[:limit]
        return ordered

    def __contains__(self, value: object) -> bool:
        return value in self._entries

    def __iter__(self) -> Iterator[CalendarDate]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)
