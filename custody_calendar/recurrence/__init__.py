"""Projection of weekly custody assignments onto calendar dates."""

from custody_calendar.recurrence.resolver import (
    RecurrenceResolver,
    find_overlaps,
    recurring_for,
    run_position,
)

__all__ = [
    "RecurrenceResolver",
    "find_overlaps",
    "recurring_for",
    "run_position",
]
