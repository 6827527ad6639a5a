"""
Schedule Models

The two kinds of calendar content:
1. ScheduledActivity - a one-off activity on a single day
2. RecurringAssignment - a weekly custody rule ("Dad has Mon-Wed")

Plus the selection entries the calendar session keeps in memory and
the validation issues reported for rejected input.

Records cross the store boundary as plain dicts; to_record()/from_record()
are the only conversions between those dicts and these models.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from custody_calendar.models.calendar import CalendarDate, parse_local_timestamp


# =============================================================================
# ENUMS
# =============================================================================

class ParentType(str, Enum):
    """Which parent a custody assignment belongs to."""
    MOM = "mom"
    DAD = "dad"

    @property
    def default_name(self) -> str:
        return self.value.capitalize()


class EventType(str, Enum):
    """Kinds of rows in the calendar_events collection."""
    SCHEDULED = "scheduled"


class InputKind(str, Enum):
    """What a pending user input will be used for."""
    CREATE_ACTIVITY = "create_activity"
    RENAME_ACTIVITY = "rename_activity"


WEEKDAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


# =============================================================================
# ONE-OFF ACTIVITIES
# =============================================================================

class ScheduledActivity(BaseModel):
    """
    A one-off activity for a child on one calendar day.

    Persisted 1:1 with a calendar_events record; the day is recovered
    from the record's start_time.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: Optional[str] = None
    child_id: str = Field(..., min_length=1)
    user_id: Optional[str] = None
    date: CalendarDate
    activity_name: str = Field(default="", max_length=200)
    start_time: datetime
    end_time: datetime
    event_type: EventType = EventType.SCHEDULED
    location: str = ""
    notes: str = ""

    @classmethod
    def for_day(
        cls,
        child_id: str,
        day: CalendarDate,
        activity_name: str,
        start_hour: int = 9,
        end_hour: int = 17,
        child_name: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> 'ScheduledActivity':
        """Build a new activity occupying the standard daytime window."""
        return cls(
            child_id=child_id,
            user_id=user_id,
            date=day,
            activity_name=activity_name,
            start_time=day.at(start_hour),
            end_time=day.at(end_hour),
            notes=describe_activity(activity_name, child_name),
        )

    def to_record(self) -> dict[str, Any]:
        """Convert to a calendar_events record."""
        record = {
            "child_id": self.child_id,
            "user_id": self.user_id,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
            "event_type": self.event_type.value,
            "activity_name": self.activity_name,
            "location": self.location,
            "notes": self.notes,
        }
        if self.id:
            record["id"] = self.id
        return record

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> 'ScheduledActivity':
        """Convert a calendar_events record back to an activity."""
        start = parse_local_timestamp(record["start_time"])
        end = parse_local_timestamp(record.get("end_time") or record["start_time"])
        return cls(
            id=str(record["id"]) if record.get("id") else None,
            child_id=str(record["child_id"]),
            user_id=record.get("user_id") or None,
            date=CalendarDate.from_datetime(start),
            activity_name=record.get("activity_name") or "",
            start_time=start,
            end_time=end,
            event_type=EventType(record.get("event_type") or EventType.SCHEDULED.value),
            location=record.get("location") or "",
            notes=record.get("notes") or "",
        )


# =============================================================================
# RECURRING CUSTODY ASSIGNMENTS
# =============================================================================

class RecurringAssignment(BaseModel):
    """
    A weekly custody rule: on these weekdays the child is with this parent.

    days_of_week uses Monday-indexed weekdays (0=Mon ... 6=Sun) and is
    kept sorted and de-duplicated.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: Optional[str] = None
    child_id: str = Field(..., min_length=1)
    user_id: Optional[str] = None
    days_of_week: tuple[int, ...] = Field(..., min_length=1)
    parent_name: str = Field(..., min_length=1, max_length=100)
    parent_type: ParentType
    color: str = Field(..., pattern="^#[0-9a-fA-F]{6}$")

    @field_validator('days_of_week', mode='before')
    @classmethod
    def normalize_days(cls, v: Any) -> tuple[int, ...]:
        """Sort and de-duplicate; every entry must be a weekday index."""
        days = sorted({int(d) for d in v})
        for d in days:
            if d < 0 or d > 6:
                raise ValueError(f"Weekday index out of range 0-6: {d}")
        return tuple(days)

    @property
    def day_labels(self) -> list[str]:
        return [WEEKDAY_NAMES[d] for d in self.days_of_week]

    def covers(self, weekday_index: int) -> bool:
        return weekday_index in self.days_of_week

    def to_record(self) -> dict[str, Any]:
        """Convert to a custody_schedules record."""
        record = {
            "child_id": self.child_id,
            "user_id": self.user_id,
            "days_of_week": list(self.days_of_week),
            "parent_name": self.parent_name,
            "parent_type": self.parent_type.value,
            "color": self.color,
        }
        if self.id:
            record["id"] = self.id
        return record

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> 'RecurringAssignment':
        return cls(
            id=str(record["id"]) if record.get("id") else None,
            child_id=str(record["child_id"]),
            user_id=record.get("user_id") or None,
            days_of_week=record.get("days_of_week") or [],
            parent_name=record["parent_name"],
            parent_type=ParentType(record["parent_type"]),
            color=record["color"],
        )


# =============================================================================
# SELECTION
# =============================================================================

class SelectionEntry(BaseModel):
    """What the calendar shows for one selected day."""
    model_config = ConfigDict(frozen=True)

    date: CalendarDate
    activity: str = ""


class PendingInput(BaseModel):
    """
    First half of a two-phase user input.

    The session hands one out when it needs a value from the user
    (an activity name) and only acts once it is committed.
    """
    model_config = ConfigDict(frozen=True)

    token: int
    kind: InputKind
    date: CalendarDate
    initial_value: str = ""


# =============================================================================
# VALIDATION
# =============================================================================

class ValidationIssue(BaseModel):
    """A single problem with user input."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'out_of_range', 'overlap')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )


def describe_activity(activity_name: str, child_name: Optional[str] = None) -> str:
    """Notes text stored alongside an activity."""
    if child_name:
        return f"{activity_name} scheduled for {child_name}"
    return f"{activity_name} scheduled"
