"""
Input Validation

Validation runs at the point of user input, BEFORE any network call.
A rejected input raises ValidationError carrying every issue found, so
the UI can show them all at once.

Validation NEVER silently fixes input beyond trimming whitespace.
"""

from typing import Iterable, Optional, Sequence, Union

from custody_calendar.config import get_settings
from custody_calendar.models.schedule import (
    WEEKDAY_NAMES,
    ParentType,
    RecurringAssignment,
    ValidationIssue,
)


class ValidationError(Exception):
    """User input was rejected before anything was persisted."""

    def __init__(self, issues: list[ValidationIssue]):
        self.issues = issues
        super().__init__("; ".join(issue.message for issue in issues))

    @classmethod
    def single(cls, field: str, issue_type: str, message: str) -> 'ValidationError':
        return cls([ValidationIssue(field=field, issue_type=issue_type, message=message)])

    def to_dicts(self) -> list[dict]:
        return [issue.model_dump() for issue in self.issues]


class ScheduleValidator:
    """Checks activity names and new custody assignments."""

    def __init__(self, max_name_length: Optional[int] = None):
        self._max_name_length = (
            max_name_length or get_settings().app.max_activity_name_length
        )

    def validate_activity_name(self, name: Optional[str]) -> str:
        """
        Check an activity name and return it trimmed.

        Raises:
            ValidationError: If the name is blank or too long
        """
        cleaned = (name or "").strip()
        if not cleaned:
            raise ValidationError.single(
                "activity_name",
                "missing",
                "Please enter a name for this activity.",
            )
        if len(cleaned) > self._max_name_length:
            raise ValidationError.single(
                "activity_name",
                "too_long",
                f"Activity names can be at most {self._max_name_length} characters.",
            )
        return cleaned

    def validate_assignment(
        self,
        days_of_week: Iterable[int],
        parent_name: Optional[str],
        parent_type: Union[ParentType, str],
        color: Optional[str] = None,
        existing: Sequence[RecurringAssignment] = (),
    ) -> None:
        """
        Check a new custody assignment against the child's existing ones.

        Raises:
            ValidationError: With every issue found
        """
        issues: list[ValidationIssue] = []
        days = list(days_of_week or [])

        if not days:
            issues.append(ValidationIssue(
                field="days_of_week",
                issue_type="missing",
                message="Please select at least one day.",
            ))

        out_of_range = sorted({d for d in days if not isinstance(d, int) or d < 0 or d > 6})
        if out_of_range:
            issues.append(ValidationIssue(
                field="days_of_week",
                issue_type="out_of_range",
                message=f"Weekdays must be between 0 (Mon) and 6 (Sun), got {out_of_range}.",
            ))

        if not parent_name or not parent_name.strip():
            issues.append(ValidationIssue(
                field="parent_name",
                issue_type="missing",
                message="Please enter the parent's name.",
            ))

        try:
            ParentType(parent_type)
        except ValueError:
            issues.append(ValidationIssue(
                field="parent_type",
                issue_type="invalid_value",
                message=f"Parent type must be 'mom' or 'dad', got {parent_type!r}.",
            ))

        if color is not None and not _is_hex_color(color):
            issues.append(ValidationIssue(
                field="color",
                issue_type="invalid_format",
                message=f"Color must look like #RRGGBB, got {color!r}.",
            ))

        # Non-overlap with existing assignments is enforced here, at write time
        wanted = {d for d in days if isinstance(d, int) and 0 <= d <= 6}
        for assignment in existing:
            taken = sorted(wanted & set(assignment.days_of_week))
            if taken:
                labels = ", ".join(WEEKDAY_NAMES[d] for d in taken)
                issues.append(ValidationIssue(
                    field="days_of_week",
                    issue_type="overlap",
                    message=f"{labels} already belong to {assignment.parent_name}.",
                ))

        if issues:
            raise ValidationError(issues)


def _is_hex_color(value: str) -> bool:
    if len(value) != 7 or not value.startswith("#"):
        return False
    return all(c in "0123456789abcdefABCDEF" for c in value[1:])
