"""
Audit Logger

Every calendar mutation, every hydration, and every failure is logged
as a structured audit event. This gives:
1. Traceability of what was written to the remote store and when
2. A record of partially applied bulk confirms
3. Visibility into discarded (stale) month loads

The audit logger:
- Is async so it can sit on the same await path as store calls
- Logs locally through structlog
- Keeps only the most recent events in memory (audit_history_limit)
- Supports correlation IDs to tie together the events of one user action
"""

from collections import deque
from typing import Optional
from uuid import UUID, uuid4

import structlog

from custody_calendar.config import get_settings
from custody_calendar.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """Central audit logging service for the calendar."""

    def __init__(
        self,
        logger_name: str = "custody_calendar.audit",
        history_limit: Optional[int] = None,
    ):
        self._logger = structlog.get_logger(logger_name)
        limit = history_limit or get_settings().app.audit_history_limit
        self._events: deque[AuditEvent] = deque(maxlen=limit)

    @property
    def events(self) -> list[AuditEvent]:
        """Most recent events logged by this instance, oldest first."""
        return list(self._events)

    async def log(self, event: AuditEvent) -> None:
        """Log an audit event at the level matching its severity."""
        self._events.append(event)
        log_dict = event.to_log_dict()

        if event.severity == AuditSeverity.ERROR:
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

    async def log_month_hydrated(
        self,
        child_id: str,
        year: int,
        month: int,
        activity_count: int,
        generation: int,
    ) -> None:
        await self.log(AuditEventBuilder.month_hydrated(
            child_id=child_id,
            year=year,
            month=month,
            activity_count=activity_count,
            generation=generation,
        ))

    async def log_hydration_discarded(
        self,
        child_id: str,
        year: int,
        month: int,
        generation: int,
        latest_generation: int,
    ) -> None:
        await self.log(AuditEventBuilder.hydration_discarded(
            child_id=child_id,
            year=year,
            month=month,
            generation=generation,
            latest_generation=latest_generation,
        ))

    async def log_assignments_loaded(
        self,
        child_id: str,
        count: int,
        overlapping_weekdays: Optional[list[int]] = None,
    ) -> None:
        await self.log(AuditEventBuilder.assignments_loaded(child_id=child_id, count=count))
        if overlapping_weekdays:
            await self.log(AuditEventBuilder.assignments_overlap(
                child_id=child_id,
                weekdays=overlapping_weekdays,
            ))

    async def log_assignments_discarded(self, child_id: str) -> None:
        await self.log(AuditEventBuilder.assignments_discarded(child_id=child_id))

    async def log_input_requested(
        self,
        child_id: str,
        date_key: str,
        kind: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.input_requested(
            child_id=child_id,
            date_key=date_key,
            kind=kind,
            correlation_id=correlation_id,
        ))

    async def log_input_cancelled(
        self,
        child_id: str,
        date_key: str,
        kind: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.input_cancelled(
            child_id=child_id,
            date_key=date_key,
            kind=kind,
            correlation_id=correlation_id,
        ))

    async def log_activity_created(
        self,
        child_id: str,
        date_key: str,
        activity: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.activity_created(
            child_id=child_id,
            date_key=date_key,
            activity=activity,
            correlation_id=correlation_id,
        ))

    async def log_activity_renamed(
        self,
        child_id: str,
        date_key: str,
        old_activity: str,
        new_activity: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.activity_renamed(
            child_id=child_id,
            date_key=date_key,
            old_activity=old_activity,
            new_activity=new_activity,
            correlation_id=correlation_id,
        ))

    async def log_activity_removed(
        self,
        child_id: str,
        date_key: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.activity_removed(
            child_id=child_id,
            date_key=date_key,
            correlation_id=correlation_id,
        ))

    async def log_selection_confirmed(
        self,
        child_id: str,
        date_keys: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.selection_confirmed(
            child_id=child_id,
            date_keys=date_keys,
            correlation_id=correlation_id,
        ))

    async def log_assignment_created(
        self,
        child_id: str,
        parent_name: str,
        days_of_week: list[int],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.assignment_created(
            child_id=child_id,
            parent_name=parent_name,
            days_of_week=days_of_week,
            correlation_id=correlation_id,
        ))

    async def log_validation_failed(
        self,
        child_id: Optional[str],
        issues: list[dict],
        date_key: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.validation_failed(
            child_id=child_id,
            issues=issues,
            date_key=date_key,
            correlation_id=correlation_id,
        ))

    async def log_operation_failed(
        self,
        operation: str,
        error_message: str,
        child_id: Optional[str] = None,
        date_key: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.operation_failed(
            operation=operation,
            error_message=error_message,
            child_id=child_id,
            date_key=date_key,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a user action (a tap, a confirm) and pass
    it through all subsequent operations.
    """
    return uuid4()
