"""
Core Module - Exceptions.

============================================================
RESPONSIBILITY
============================================================
Defines the exception hierarchy for the deployment monitor.

- Validation failures are always surfaced to the caller
- Lookups of unknown deployments are surfaced
- Probe timeouts are absorbed into unhealthy results
- Nothing in the core retries on its own

============================================================
EXCEPTION HIERARCHY
============================================================
MonitorException (base)
├── ConfigurationError
├── ValidationError
│   ├── UnknownServiceError
│   ├── InvalidStatusError
│   ├── InvalidMetricError
│   ├── InvalidTimeRangeError
│   └── InvalidGroupByError
├── NotFoundError
│   └── DeploymentNotFoundError
├── StateTransitionError
├── AccountLockedError
└── ProbeTimeoutError

============================================================
"""

from enum import Enum
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional


# ============================================================
# SEVERITY LEVELS
# ============================================================

class Severity(Enum):
    """Exception severity levels for alerting."""

    LOW = "low"
    """Minor issue, informational."""

    MEDIUM = "medium"
    """Moderate issue, requires attention."""

    HIGH = "high"
    """Serious issue, may impact operations."""


# ============================================================
# BASE EXCEPTION
# ============================================================

class MonitorException(Exception):
    """
    Base exception for all deployment monitor errors.

    All exceptions carry:
    - severity: for alerting
    - context: for debugging
    - timestamp: when the error occurred
    """

    default_severity: Severity = Severity.MEDIUM

    def __init__(
        self,
        message: str,
        severity: Optional[Severity] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message)

        self.message = message
        self.severity = severity or self.default_severity
        self.context = context or {}
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc)

        if cause:
            self.context["cause_type"] = type(cause).__name__
            self.context["cause_message"] = str(cause)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception for logging/API responses."""
        return {
            "type": type(self).__name__,
            "message": self.message,
            "severity": self.severity.value,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "cause": str(self.cause) if self.cause else None,
        }

    def to_log_format(self) -> str:
        """Format exception for log lines."""
        ctx_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
        line = f"[{self.severity.value.upper()}] {type(self).__name__}: {self.message}"
        return f"{line} | {ctx_str}" if ctx_str else line


# ============================================================
# CONFIGURATION ERRORS
# ============================================================

class ConfigurationError(MonitorException):
    """Error in configuration."""

    default_severity = Severity.HIGH

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        actual_value: Optional[Any] = None,
        **kwargs,
    ):
        context = kwargs.pop("context", {})

        if config_key:
            context["config_key"] = config_key
        if actual_value is not None:
            context["actual_value"] = str(actual_value)[:100]

        super().__init__(message, context=context, **kwargs)


# ============================================================
# VALIDATION ERRORS
# ============================================================

class ValidationError(MonitorException):
    """Caller supplied a value outside its allowed domain."""

    default_severity = Severity.LOW

    def __init__(
        self,
        message: str,
        field_name: Optional[str] = None,
        value: Optional[Any] = None,
        allowed: Optional[Iterable[str]] = None,
        **kwargs,
    ):
        context = kwargs.pop("context", {})

        if field_name:
            context["field"] = field_name
        if value is not None:
            context["value"] = str(value)[:100]
        if allowed is not None:
            context["allowed"] = sorted(allowed)

        super().__init__(message, context=context, **kwargs)
        self.field_name = field_name
        self.value = value


class UnknownServiceError(ValidationError):
    """Service name is not one of frontend/backend/database."""

    def __init__(self, service: Any, allowed: Iterable[str]):
        super().__init__(
            message=f"Service {service} not found",
            field_name="service",
            value=service,
            allowed=allowed,
        )


class InvalidStatusError(ValidationError):
    """Status value is not valid for the target service."""

    def __init__(self, service: str, status: Any, allowed: Iterable[str]):
        super().__init__(
            message=f"Invalid status '{status}' for service {service}",
            field_name="status",
            value=status,
            allowed=allowed,
            context={"service": service},
        )


class InvalidMetricError(ValidationError):
    """Metric sample failed validation (type, unit, service or value)."""

    def __init__(
        self,
        reason: str,
        field_name: Optional[str] = None,
        value: Optional[Any] = None,
        allowed: Optional[Iterable[str]] = None,
    ):
        super().__init__(
            message=f"Invalid metric: {reason}",
            field_name=field_name,
            value=value,
            allowed=allowed,
        )


class InvalidTimeRangeError(ValidationError):
    """Query window is not supported."""

    def __init__(self, field_name: str, value: Any, allowed: Iterable[str]):
        super().__init__(
            message=f"Invalid {field_name} '{value}'",
            field_name=field_name,
            value=value,
            allowed=allowed,
        )


class InvalidGroupByError(ValidationError):
    """Aggregation interval is not a GroupBy value."""

    def __init__(self, value: Any, allowed: Iterable[str]):
        super().__init__(
            message=f"Invalid groupBy '{value}'",
            field_name="groupBy",
            value=value,
            allowed=allowed,
        )


# ============================================================
# LOOKUP ERRORS
# ============================================================

class NotFoundError(MonitorException):
    """Requested entity does not exist."""


class DeploymentNotFoundError(NotFoundError):
    """Deployment id is unknown or has been deleted."""

    def __init__(self, deployment_id: str, retired: bool = False):
        reason = "has been deleted" if retired else "not found"
        super().__init__(
            message=f"Deployment {deployment_id} {reason}",
            context={"deployment_id": deployment_id, "retired": retired},
        )
        self.deployment_id = deployment_id
        self.retired = retired


# ============================================================
# STATE ERRORS
# ============================================================

class StateTransitionError(MonitorException):
    """Requested transition is not allowed from the current state."""

    default_severity = Severity.MEDIUM

    def __init__(
        self,
        message: str,
        from_state: Optional[str] = None,
        to_state: Optional[str] = None,
        **kwargs,
    ):
        context = kwargs.pop("context", {})

        if from_state:
            context["from_state"] = from_state
        if to_state:
            context["to_state"] = to_state

        super().__init__(message, context=context, **kwargs)


class AccountLockedError(MonitorException):
    """Authentication attempt rejected while the principal is locked."""

    default_severity = Severity.LOW

    def __init__(self, principal: str, locked_until: datetime):
        super().__init__(
            message=f"Account {principal} is locked until {locked_until.isoformat()}",
            context={"principal": principal, "locked_until": locked_until.isoformat()},
        )
        self.principal = principal
        self.locked_until = locked_until


# ============================================================
# PROBE ERRORS
# ============================================================

class ProbeTimeoutError(MonitorException):
    """
    Health probe exceeded its timeout.

    Raised inside the probe only; HealthProbe converts it into an
    unhealthy result and never lets it reach callers.
    """

    default_severity = Severity.LOW

    def __init__(self, url: str, timeout_ms: int):
        super().__init__(
            message=f"Probe of {url} timed out after {timeout_ms}ms",
            context={"url": url, "timeout_ms": timeout_ms},
        )
        self.url = url
        self.timeout_ms = timeout_ms


__all__ = [
    "Severity",
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
