"""
Audit Models for Custody Calendar

Every calendar mutation and every load of persisted state produces an
audit event. Events are emitted to the structured log so a failed or
partially applied operation can be reconstructed afterwards.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Hydration
    MONTH_HYDRATED = "month_hydrated"
    HYDRATION_DISCARDED = "hydration_discarded"
    ASSIGNMENTS_LOADED = "assignments_loaded"
    ASSIGNMENTS_OVERLAP = "assignments_overlap"
    ASSIGNMENTS_DISCARDED = "assignments_discarded"

    # User input
    INPUT_REQUESTED = "input_requested"
    INPUT_CANCELLED = "input_cancelled"

    # Persistence of activities
    ACTIVITY_CREATED = "activity_created"
    ACTIVITY_RENAMED = "activity_renamed"
    ACTIVITY_REMOVED = "activity_removed"
    SELECTION_CONFIRMED = "selection_confirmed"

    # Custody schedules
    ASSIGNMENT_CREATED = "assignment_created"

    # Failures
    VALIDATION_FAILED = "validation_failed"
    OPERATION_FAILED = "operation_failed"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """A single audit event."""

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.now,
        description="When the event occurred (local time)"
    )

    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # The child whose calendar the event concerns
    child_id: Optional[str] = Field(
        default=None,
        description="Child the event relates to"
    )
    date_key: Optional[str] = Field(
        default=None,
        description="Calendar day the event relates to, if any"
    )

    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate the events of one user action"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )
    error_message: Optional[str] = None
    is_user_action: bool = Field(
        default=False,
        description="Whether a user action triggered this event"
    )

    def to_log_dict(self) -> dict[str, Any]:
        """Flatten for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "child_id": self.child_id,
            "date_key": self.date_key,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """Factory methods for the calendar's audit events."""

    @staticmethod
    def month_hydrated(
        child_id: str,
        year: int,
        month: int,
        activity_count: int,
        generation: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MONTH_HYDRATED,
            child_id=child_id,
            description=f"Loaded {activity_count} activities for {year:04d}-{month:02d}",
            details={
                "year": year,
                "month": month,
                "activity_count": activity_count,
                "generation": generation,
            },
        )

    @staticmethod
    def hydration_discarded(
        child_id: str,
        year: int,
        month: int,
        generation: int,
        latest_generation: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.HYDRATION_DISCARDED,
            severity=AuditSeverity.DEBUG,
            child_id=child_id,
            description=f"Discarded stale load for {year:04d}-{month:02d}",
            details={
                "generation": generation,
                "latest_generation": latest_generation,
            },
        )

    @staticmethod
    def assignments_loaded(child_id: str, count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ASSIGNMENTS_LOADED,
            child_id=child_id,
            description=f"Loaded {count} custody assignments",
            details={"count": count},
        )

    @staticmethod
    def assignments_overlap(child_id: str, weekdays: list[int]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ASSIGNMENTS_OVERLAP,
            severity=AuditSeverity.WARNING,
            child_id=child_id,
            description="Several custody assignments claim the same weekday; first match wins",
            details={"weekdays": weekdays},
        )

    @staticmethod
    def assignments_discarded(child_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ASSIGNMENTS_DISCARDED,
            severity=AuditSeverity.DEBUG,
            child_id=child_id,
            description="Discarded custody assignments of a superseded child load",
        )

    @staticmethod
    def input_requested(
        child_id: str,
        date_key: str,
        kind: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INPUT_REQUESTED,
            severity=AuditSeverity.DEBUG,
            child_id=child_id,
            date_key=date_key,
            correlation_id=correlation_id,
            description=f"Asked user for input: {kind}",
            details={"kind": kind},
            is_user_action=True,
        )

    @staticmethod
    def input_cancelled(
        child_id: str,
        date_key: str,
        kind: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INPUT_CANCELLED,
            child_id=child_id,
            date_key=date_key,
            correlation_id=correlation_id,
            description=f"User cancelled input: {kind}",
            details={"kind": kind},
            is_user_action=True,
        )

    @staticmethod
    def activity_created(
        child_id: str,
        date_key: str,
        activity: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACTIVITY_CREATED,
            child_id=child_id,
            date_key=date_key,
            correlation_id=correlation_id,
            description=f"Activity '{activity}' scheduled",
            details={"activity": activity},
            is_user_action=True,
        )

    @staticmethod
    def activity_renamed(
        child_id: str,
        date_key: str,
        old_activity: str,
        new_activity: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACTIVITY_RENAMED,
            child_id=child_id,
            date_key=date_key,
            correlation_id=correlation_id,
            description=f"Activity renamed to '{new_activity}'",
            details={"old_activity": old_activity, "new_activity": new_activity},
            is_user_action=True,
        )

    @staticmethod
    def activity_removed(
        child_id: str,
        date_key: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACTIVITY_REMOVED,
            child_id=child_id,
            date_key=date_key,
            correlation_id=correlation_id,
            description="Activity removed",
            is_user_action=True,
        )

    @staticmethod
    def selection_confirmed(
        child_id: str,
        date_keys: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SELECTION_CONFIRMED,
            child_id=child_id,
            correlation_id=correlation_id,
            description=f"Confirmed {len(date_keys)} selected days",
            details={"dates": date_keys},
            is_user_action=True,
        )

    @staticmethod
    def assignment_created(
        child_id: str,
        parent_name: str,
        days_of_week: list[int],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ASSIGNMENT_CREATED,
            child_id=child_id,
            correlation_id=correlation_id,
            description=f"Custody assignment created for {parent_name}",
            details={"parent_name": parent_name, "days_of_week": days_of_week},
            is_user_action=True,
        )

    @staticmethod
    def validation_failed(
        child_id: Optional[str],
        issues: list[dict],
        date_key: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            child_id=child_id,
            date_key=date_key,
            correlation_id=correlation_id,
            description=f"Input rejected with {len(issues)} issue(s)",
            details={"issues": issues},
            is_user_action=True,
        )

    @staticmethod
    def operation_failed(
        operation: str,
        error_message: str,
        child_id: Optional[str] = None,
        date_key: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.OPERATION_FAILED,
            severity=AuditSeverity.ERROR,
            child_id=child_id,
            date_key=date_key,
            correlation_id=correlation_id,
            description=f"{operation} failed",
            details={"operation": operation},
            error_message=error_message,
        )
