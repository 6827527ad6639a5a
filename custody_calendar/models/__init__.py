"""
Data Models Package

Pydantic models for the calendar grid, schedules, and audit events.
"""

from custody_calendar.models.calendar import (
    CalendarDate,
    Cell,
    MonthGrid,
    RunPosition,
    WeekRow,
    coerce_calendar_date,
    parse_local_timestamp,
)
from custody_calendar.models.schedule import (
    WEEKDAY_NAMES,
    EventType,
    InputKind,
    ParentType,
    PendingInput,
    RecurringAssignment,
    ScheduledActivity,
    SelectionEntry,
    ValidationIssue,
    describe_activity,
)
from custody_calendar.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Calendar grid models
    "CalendarDate",
    "Cell",
    "MonthGrid",
    "RunPosition",
    "WeekRow",
    "coerce_calendar_date",
    "parse_local_timestamp",
    # Schedule models
    "WEEKDAY_NAMES",
    "EventType",
    "InputKind",
    "ParentType",
    "PendingInput",
    "RecurringAssignment",
    "ScheduledActivity",
    "SelectionEntry",
    "ValidationIssue",
    "describe_activity",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
