"""
Week Numbering

A simple week-of-year count: days elapsed since January 1st, shifted by
the weekday January 1st falls on (Sunday-based), divided by seven and
rounded up.

This is NOT ISO-8601. Weeks are counted from January 1st and restart at
1 every year, so late-December dates never belong to week 1 of the next
year and early-January dates never belong to week 52/53 of the previous
one. Callers that need ISO weeks should use date.isocalendar() instead.
"""

import math
from datetime import date
from typing import Union

from custody_calendar.models.calendar import CalendarDate


def week_number(value: Union[CalendarDate, date]) -> int:
    """Week of the year for a date, starting at 1 in the week of January 1st."""
    day = value.to_date() if isinstance(value, CalendarDate) else value
    first_of_year = date(day.year, 1, 1)
    elapsed = (day - first_of_year).days
    jan1_offset = first_of_year.isoweekday() % 7  # 0=Sun ... 6=Sat
    return math.ceil((elapsed + jan1_offset + 1) / 7)
