"""
Month Grid Builder

Turns a (year, month) into Monday-first week rows of exactly seven cells.

The first row is padded with the trailing days of the previous month and
the last row with the leading days of the next month. A month that starts
on Monday gets no leading padding; a month that ends on Sunday gets no
trailing padding row.
"""

import calendar
from datetime import date, datetime, timedelta

from custody_calendar.models.calendar import CalendarDate, Cell, MonthGrid, WeekRow

DAYS_PER_WEEK = 7


def monday_index(native_day: int) -> int:
    """Convert a Sunday-based weekday (0=Sun ... 6=Sat) to 0=Mon ... 6=Sun."""
    return (native_day + 6) % 7


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def _check_month(month: int) -> None:
    if month < 1 or month > 12:
        raise ValueError(f"Month must be between 1 and 12, got {month}")


def build_month_grid(year: int, month: int) -> MonthGrid:
    """Build the week-partitioned grid for a month."""
    _check_month(month)

    first_day = date(year, month, 1)
    last_day = date(year, month, days_in_month(year, month))
    # isoweekday() is 1=Mon..7=Sun, so % 7 gives the Sunday-based index
    starting_day_of_week = monday_index(first_day.isoweekday() % 7)

    cells: list[Cell] = []

    # Trailing days of the previous month, oldest first
    for offset in range(starting_day_of_week, 0, -1):
        padding = first_day - timedelta(days=offset)
        cells.append(Cell(date=CalendarDate.from_date(padding), in_current_month=False))

    for day in range(1, last_day.day + 1):
        cells.append(Cell(
            date=CalendarDate(year=year, month=month, day=day),
            in_current_month=True,
        ))

    # Leading days of the next month until the last row is full
    next_day = last_day
    while len(cells) % DAYS_PER_WEEK:
        next_day += timedelta(days=1)
        cells.append(Cell(date=CalendarDate.from_date(next_day), in_current_month=False))

    weeks = tuple(
        WeekRow(cells=tuple(cells[i:i + DAYS_PER_WEEK]))
        for i in range(0, len(cells), DAYS_PER_WEEK)
    )
    return MonthGrid(year=year, month=month, weeks=weeks)


def shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    """Move delta months forward (or back, if negative)."""
    _check_month(month)
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def month_bounds(year: int, month: int) -> tuple[datetime, datetime]:
    """Inclusive local window [first day 00:00:00, last day 23:59:59]."""
    _check_month(month)
    first = CalendarDate(year=year, month=month, day=1)
    last = CalendarDate(year=year, month=month, day=days_in_month(year, month))
    return first.day_bounds()[0], last.day_bounds()[1]
