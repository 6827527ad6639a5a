"""
Presentation Adapter

Turns a MonthGrid, the selection and the custody assignments into plain
view models a UI can draw without further logic. Pure functions only.

Cells outside the visible month are drawn muted: they are never
tappable and carry neither an activity label nor a custody bar.
"""

import calendar
from typing import Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from custody_calendar.grid import week_number
from custody_calendar.models.calendar import CalendarDate, MonthGrid, RunPosition
from custody_calendar.models.schedule import RecurringAssignment, SelectionEntry
from custody_calendar.recurrence import RecurrenceResolver
from custody_calendar.selection import SelectionMap


MONTH_NAMES = tuple(calendar.month_name[1:])
DAY_NAMES = ("M", "T", "W", "Th", "F", "Sa", "Su")

BAR_RADIUS = 6
BAR_MARGIN = 2


class CustodyBar(BaseModel):
    """One cell's segment of a merged custody bar."""
    model_config = ConfigDict(frozen=True)

    parent_name: str
    color: str
    run_position: RunPosition
    left_radius: int = Field(..., description="Corner radius on the left end")
    right_radius: int = Field(..., description="Corner radius on the right end")
    left_margin: int = Field(..., description="Gap before the segment")
    right_margin: int = Field(..., description="Gap after the segment")

    @classmethod
    def for_run(cls, assignment: RecurringAssignment, position: RunPosition) -> 'CustodyBar':
        return cls(
            parent_name=assignment.parent_name,
            color=assignment.color,
            run_position=position,
            left_radius=BAR_RADIUS if position.is_first else 0,
            right_radius=BAR_RADIUS if position.is_last else 0,
            left_margin=BAR_MARGIN if position.is_first else 0,
            right_margin=BAR_MARGIN if position.is_last else 0,
        )


class CellDescriptor(BaseModel):
    """Everything needed to draw one grid cell."""
    model_config = ConfigDict(frozen=True)

    date: CalendarDate
    day_number: int
    in_current_month: bool
    tappable: bool
    is_selected: bool = False
    activity: Optional[str] = None
    is_today: bool = False
    custody: Optional[CustodyBar] = None


class WeekRowView(BaseModel):
    model_config = ConfigDict(frozen=True)

    week_number: int
    cells: tuple[CellDescriptor, ...]


class MonthView(BaseModel):
    model_config = ConfigDict(frozen=True)

    year: int
    month: int
    title: str
    day_names: tuple[str, ...] = DAY_NAMES
    rows: tuple[WeekRowView, ...]

    @property
    def cells(self) -> list[CellDescriptor]:
        return [cell for row in self.rows for cell in row.cells]


def month_title(year: int, month: int) -> str:
    """E.g. 'March 2024'."""
    return f"{MONTH_NAMES[month - 1]} {year}"


def build_month_view(
    grid: MonthGrid,
    selection: SelectionMap,
    assignments: Sequence[RecurringAssignment],
    today: Optional[CalendarDate] = None,
) -> MonthView:
    """Describe every cell of a month grid for drawing."""
    today = today or CalendarDate.today()
    resolver = RecurrenceResolver(assignments)

    rows = []
    for week in grid:
        cells = []
        for cell in week:
            value = cell.date
            in_month = cell.in_current_month
            entry = selection.get(value) if in_month else None

            custody = None
            if in_month:
                assignment, position = resolver.resolve(value)
                if assignment is not None:
                    custody = CustodyBar.for_run(assignment, position)

            cells.append(CellDescriptor(
                date=value,
                day_number=value.day,
                in_current_month=in_month,
                tappable=in_month,
                is_selected=entry is not None,
                activity=entry.activity if entry is not None else None,
                is_today=value == today,
                custody=custody,
            ))
        rows.append(WeekRowView(
            week_number=week_number(week.first.date),
            cells=tuple(cells),
        ))

    return MonthView(
        year=grid.year,
        month=grid.month,
        title=month_title(grid.year, grid.month),
        rows=tuple(rows),
    )


def upcoming_events(selection: SelectionMap, limit: int = 10) -> list[SelectionEntry]:
    """The first `limit` selected days in date order."""
    return selection.upcoming(limit)
