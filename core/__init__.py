"""
Core Module Package.

This package contains the infrastructure every other package
depends on.

Components:
- clock: Unified, injectable time abstraction
- exceptions: Exception hierarchy
- constants: Shared defaults
"""

from .clock import (
    ClockProtocol,
    SystemClock,
    MockClock,
    ClockFactory,
    ensure_utc,
    resolve_clock,
)
from .exceptions import (
    MonitorException,
    ConfigurationError,
    ValidationError,
    UnknownServiceError,
    InvalidStatusError,
    InvalidMetricError,
    InvalidTimeRangeError,
    InvalidGroupByError,
    NotFoundError,
    DeploymentNotFoundError,
    StateTransitionError,
    AccountLockedError,
    ProbeTimeoutError,
)


__all__ = [
    "ClockProtocol",
    "SystemClock",
    "MockClock",
    "ClockFactory",
    "ensure_utc",
    "resolve_clock",
    "MonitorException",
    "ConfigurationError",
    "ValidationError",
    "UnknownServiceError",
    "InvalidStatusError",
    "InvalidMetricError",
    "InvalidTimeRangeError",
    "InvalidGroupByError",
    "NotFoundError",
    "DeploymentNotFoundError",
    "StateTransitionError",
    "AccountLockedError",
    "ProbeTimeoutError",
]
