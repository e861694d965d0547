"""
Tests for the core module: clock and exception hierarchy.
"""

from datetime import datetime, timedelta, timezone

import pytest

from core.clock import (
    ClockFactory,
    MockClock,
    SystemClock,
    ensure_utc,
    from_iso8601,
    resolve_clock,
)
from core.exceptions import (
    AccountLockedError,
    ConfigurationError,
    DeploymentNotFoundError,
    InvalidMetricError,
    InvalidStatusError,
    MonitorException,
    NotFoundError,
    ProbeTimeoutError,
    Severity,
    UnknownServiceError,
    ValidationError,
)


T0 = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


# ============================================================
# CLOCK
# ============================================================

class TestMockClock:
    """Tests for MockClock."""

    def test_starts_at_initial_time(self):
        clock = MockClock(T0)
        assert clock.now() == T0

    def test_advance(self):
        clock = MockClock(T0)
        clock.advance(seconds=30)
        clock.advance(hours=1)
        assert clock.now() == T0 + timedelta(hours=1, seconds=30)

    def test_set_time_normalises_to_utc(self):
        clock = MockClock(T0)
        clock.set_time(datetime(2026, 3, 2, 8, 0))
        assert clock.now().tzinfo == timezone.utc


class TestClockFactory:
    """Tests for the global clock holder."""

    def test_use_mock_restores_previous_clock(self):
        ClockFactory.reset()
        before = ClockFactory.get_clock()
        with ClockFactory.use_mock(T0) as mock:
            assert ClockFactory.get_clock() is mock
            assert resolve_clock(None) is mock
        assert ClockFactory.get_clock() is before

    def test_resolve_clock_prefers_explicit(self):
        explicit = MockClock(T0)
        assert resolve_clock(explicit) is explicit

    def test_system_clock_is_utc(self):
        assert SystemClock().now().tzinfo == timezone.utc


class TestTimestampHelpers:
    """Tests for ISO 8601 helpers."""

    def test_from_iso8601_normalises_to_utc(self):
        assert from_iso8601("2026-03-01T14:00:00+02:00") == T0
        assert from_iso8601("2026-03-01T12:00:00").tzinfo == timezone.utc

    def test_ensure_utc_converts_offsets(self):
        plus_two = timezone(timedelta(hours=2))
        local = datetime(2026, 3, 1, 14, 0, tzinfo=plus_two)
        assert ensure_utc(local) == T0
        assert ensure_utc(local).tzinfo == timezone.utc


# ============================================================
# EXCEPTIONS
# ============================================================

class TestExceptions:
    """Tests for the exception hierarchy."""

    def test_validation_subclasses(self):
        assert issubclass(UnknownServiceError, ValidationError)
        assert issubclass(InvalidStatusError, ValidationError)
        assert issubclass(InvalidMetricError, ValidationError)
        assert issubclass(ValidationError, MonitorException)
        assert issubclass(DeploymentNotFoundError, NotFoundError)

    def test_unknown_service_context(self):
        error = UnknownServiceError("cache", ["frontend", "backend", "database"])
        assert error.message == "Service cache not found"
        assert error.context["field"] == "service"
        assert error.context["allowed"] == ["backend", "database", "frontend"]
        assert error.severity == Severity.LOW

    def test_to_dict(self):
        error = InvalidMetricError("unknown type 'foo'", field_name="type", value="foo")
        data = error.to_dict()
        assert data["type"] == "InvalidMetricError"
        assert data["message"] == "Invalid metric: unknown type 'foo'"
        assert data["context"]["value"] == "foo"

    def test_to_log_format(self):
        error = ConfigurationError("bad", config_key="timeout_ms", actual_value=-1)
        line = error.to_log_format()
        assert line.startswith("[HIGH] ConfigurationError: bad")
        assert "config_key=timeout_ms" in line

    def test_deployment_not_found_retired(self):
        error = DeploymentNotFoundError("abc", retired=True)
        assert "has been deleted" in error.message
        assert error.retired is True

    def test_account_locked_carries_deadline(self):
        error = AccountLockedError("alice", T0)
        assert error.locked_until == T0
        assert error.context["principal"] == "alice"

    def test_probe_timeout(self):
        error = ProbeTimeoutError("http://x", 5000)
        assert "5000ms" in error.message
        assert error.timeout_ms == 5000

    def test_cause_recorded(self):
        error = MonitorException("wrapped", cause=ValueError("boom"))
        assert error.context["cause_type"] == "ValueError"
        assert error.to_dict()["cause"] == "boom"
