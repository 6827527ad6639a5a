"""
Calendar Grid Models

Value types for the month grid: the semantic calendar date, the cells
and week rows the grid builder produces, and the derived run position
used to merge adjacent custody days into one bar.

CalendarDate is the ONLY place where the "YYYY-MM-DD" key is derived.
Nothing else in the package builds date keys by hand.
"""

from datetime import date, datetime, time
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class CalendarDate(BaseModel):
    """
    A (year, month, day) value with no time-of-day significance.

    Frozen and hashable, so it is used directly as a map key.
    """
    model_config = ConfigDict(frozen=True)

    year: int = Field(..., ge=1, le=9999)
    month: int = Field(..., ge=1, le=12)
    day: int = Field(..., ge=1, le=31)

    @model_validator(mode='after')
    def validate_real_date(self) -> 'CalendarDate':
        """Reject impossible dates such as February 30th."""
        date(self.year, self.month, self.day)
        return self

    @classmethod
    def from_date(cls, value: date) -> 'CalendarDate':
        return cls(year=value.year, month=value.month, day=value.day)

    @classmethod
    def from_datetime(cls, value: datetime) -> 'CalendarDate':
        """Local calendar day of a timestamp; the time part is dropped."""
        return cls(year=value.year, month=value.month, day=value.day)

    @classmethod
    def from_key(cls, key: str) -> 'CalendarDate':
        return cls.from_date(date.fromisoformat(key))

    @classmethod
    def today(cls) -> 'CalendarDate':
        return cls.from_date(date.today())

    @property
    def key(self) -> str:
        """ISO date key, e.g. '2024-03-10'."""
        return f"{self.year:04d}-{self.month:02d}-{self.day:02d}"

    @property
    def weekday_index(self) -> int:
        """Monday-indexed weekday: 0=Mon ... 6=Sun."""
        return self.to_date().weekday()

    def to_date(self) -> date:
        return date(self.year, self.month, self.day)

    def at(self, hour: int, minute: int = 0, second: int = 0) -> datetime:
        """Naive local datetime on this day."""
        return datetime.combine(self.to_date(), time(hour, minute, second))

    def day_bounds(self) -> tuple[datetime, datetime]:
        """The [00:00:00, 23:59:59] local window scoping single-day operations."""
        return self.at(0, 0, 0), self.at(23, 59, 59)

    def __lt__(self, other: 'CalendarDate') -> bool:
        if not isinstance(other, CalendarDate):
            return NotImplemented
        return (self.year, self.month, self.day) < (other.year, other.month, other.day)

    def __le__(self, other: 'CalendarDate') -> bool:
        if not isinstance(other, CalendarDate):
            return NotImplemented
        return self == other or self < other

    def __str__(self) -> str:
        return self.key


class Cell(BaseModel):
    """One day slot in the month grid."""
    model_config = ConfigDict(frozen=True)

    date: CalendarDate
    in_current_month: bool


class WeekRow(BaseModel):
    """Seven cells, Monday first. Padding days from neighbouring months are allowed."""
    model_config = ConfigDict(frozen=True)

    cells: tuple[Cell, ...]

    @field_validator('cells')
    @classmethod
    def validate_full_week(cls, v: tuple[Cell, ...]) -> tuple[Cell, ...]:
        if len(v) != 7:
            raise ValueError(f"A week row must have exactly 7 cells, got {len(v)}")
        if v[0].date.weekday_index != 0:
            raise ValueError("A week row must start on a Monday")
        return v

    @property
    def first(self) -> Cell:
        return self.cells[0]

    def __iter__(self):
        return iter(self.cells)

    def __len__(self) -> int:
        return len(self.cells)


class MonthGrid(BaseModel):
    """All week rows covering one month, with no partial weeks."""
    model_config = ConfigDict(frozen=True)

    year: int
    month: int = Field(..., ge=1, le=12)
    weeks: tuple[WeekRow, ...]

    @property
    def cells(self) -> list[Cell]:
        return [cell for week in self.weeks for cell in week]

    def contains(self, value: CalendarDate) -> bool:
        """Whether a date belongs to this grid's month (not merely its padding)."""
        return value.year == self.year and value.month == self.month

    def __iter__(self):
        return iter(self.weeks)

    def __len__(self) -> int:
        return len(self.weeks)


class RunPosition(BaseModel):
    """
    Where a day sits in a run of consecutive weekdays of one custody assignment.

    Derived only; used to round the ends of a merged custody bar.
    """
    model_config = ConfigDict(frozen=True)

    is_first: bool
    is_last: bool

    @property
    def is_isolated(self) -> bool:
        """A single-day bar, rounded on both ends."""
        return self.is_first and self.is_last

    @property
    def is_interior(self) -> bool:
        """A middle segment with no rounding."""
        return not self.is_first and not self.is_last


def coerce_calendar_date(value: Optional[object]) -> Optional[CalendarDate]:
    """Accept a CalendarDate, date, datetime or ISO key."""
    if value is None or isinstance(value, CalendarDate):
        return value
    if isinstance(value, datetime):
        return CalendarDate.from_datetime(value)
    if isinstance(value, date):
        return CalendarDate.from_date(value)
    if isinstance(value, str):
        return CalendarDate.from_key(value)
    raise TypeError(f"Cannot interpret {value!r} as a calendar date")


def parse_local_timestamp(value: Any) -> datetime:
    """
    Read a stored timestamp as a naive local datetime.

    Accepts datetimes and ISO-8601 strings. A trailing 'Z' or an explicit
    offset is converted to local wall-clock time, so stored values always
    compare against naive local day and month bounds.
    """
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value)
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed
