"""Month grid construction and week numbering."""

from custody_calendar.grid.builder import (
    build_month_grid,
    days_in_month,
    monday_index,
    month_bounds,
    shift_month,
)
from custody_calendar.grid.weeks import week_number

__all__ = [
    "build_month_grid",
    "days_in_month",
    "monday_index",
    "month_bounds",
    "shift_month",
    "week_number",
]
