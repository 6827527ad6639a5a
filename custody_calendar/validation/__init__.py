"""Input validation package."""

from custody_calendar.validation.validator import ScheduleValidator, ValidationError

__all__ = ["ScheduleValidator", "ValidationError"]
