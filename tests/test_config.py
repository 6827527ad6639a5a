"""Tests for settings, current-user resolution and audit logging."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from custody_calendar.audit import AuditLogger, create_correlation_id
from custody_calendar.config import CalendarSettings, get_settings, validate_all_settings
from custody_calendar.models.audit import AuditEventBuilder, AuditEventType
from custody_calendar.services import AuthError, SettingsAuthProvider, StaticAuthProvider


class TestSettings:
    """Tests for pydantic-settings configuration."""

    def test_defaults(self):
        app = get_settings().app
        assert app.activity_start_hour == 9
        assert app.activity_end_hour == 17
        assert app.upcoming_events_limit == 10
        assert app.max_activity_name_length == 200
        assert app.audit_history_limit == 200

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("CALENDAR_UPCOMING_EVENTS_LIMIT", "3")
        assert get_settings().app.upcoming_events_limit == 3

    def test_empty_activity_window_rejected(self):
        with pytest.raises(PydanticValidationError):
            CalendarSettings(activity_start_hour=17, activity_end_hour=9)

    def test_unknown_backend_rejected(self):
        with pytest.raises(PydanticValidationError):
            CalendarSettings(storage_backend="postgres")

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()

    def test_validate_all_reports_missing_user(self):
        status = validate_all_settings()
        assert status["app"] is True
        assert status["auth"] is False
        assert "auth_error" in status


class TestAuth:
    """Tests for current-user providers."""

    async def test_static_provider(self):
        assert await StaticAuthProvider("u1").get_current_user_id() == "u1"

    @pytest.mark.parametrize("user_id", [None, "", "  "])
    async def test_static_provider_without_user(self, user_id):
        with pytest.raises(AuthError):
            await StaticAuthProvider(user_id).get_current_user_id()

    async def test_settings_provider(self, monkeypatch):
        monkeypatch.setenv("CALENDAR_AUTH_USER_ID", " parent-7 ")
        assert await SettingsAuthProvider().get_current_user_id() == "parent-7"

    async def test_settings_provider_without_user(self):
        with pytest.raises(AuthError):
            await SettingsAuthProvider().get_current_user_id()


class TestAuditLogger:
    """Tests for the structlog audit logger."""

    async def test_keeps_logged_events(self):
        logger = AuditLogger("custody_calendar.tests")
        correlation_id = create_correlation_id()

        await logger.log_activity_created("c1", "2024-03-10", "Soccer", correlation_id)
        await logger.log(AuditEventBuilder.operation_failed("hydrate", "offline"))

        assert [e.event_type for e in logger.events] == [
            AuditEventType.ACTIVITY_CREATED,
            AuditEventType.OPERATION_FAILED,
        ]
        assert logger.events[0].correlation_id == correlation_id

    async def test_overlap_logged_only_when_present(self):
        logger = AuditLogger("custody_calendar.tests")
        await logger.log_assignments_loaded("c1", 2, overlapping_weekdays=[])
        await logger.log_assignments_loaded("c1", 2, overlapping_weekdays=[3])

        assert [e.event_type for e in logger.events] == [
            AuditEventType.ASSIGNMENTS_LOADED,
            AuditEventType.ASSIGNMENTS_LOADED,
            AuditEventType.ASSIGNMENTS_OVERLAP,
        ]

    async def test_history_keeps_only_the_latest_events(self):
        logger = AuditLogger("custody_calendar.tests", history_limit=2)
        for key in ("2024-03-01", "2024-03-02", "2024-03-03"):
            await logger.log_activity_removed("c1", key)

        assert [e.date_key for e in logger.events] == ["2024-03-02", "2024-03-03"]

    async def test_history_limit_follows_settings(self, monkeypatch):
        monkeypatch.setenv("CALENDAR_AUDIT_HISTORY_LIMIT", "1")
        logger = AuditLogger("custody_calendar.tests")
        await logger.log_activity_removed("c1", "2024-03-01")
        await logger.log_activity_removed("c1", "2024-03-02")

        assert [e.date_key for e in logger.events] == ["2024-03-02"]
