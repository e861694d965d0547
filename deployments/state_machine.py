"""
Deployments - State Machine.

============================================================
RESPONSIBILITY
============================================================
Holds the state of one deployment and enforces its invariants.

- Overall status is a pure function of the three service
  statuses, except for the explicit cancel transition
- Service statuses are validated against their own domain
- The audit log is bounded; oldest entries drop first
- Health-check results are replaced wholesale

============================================================
OVERALL STATUS PRIORITY
============================================================
1. any service failed                             -> failed
2. frontend + backend deployed, database connected -> deployed
3. frontend or backend building                   -> building
4. otherwise                                      -> pending

============================================================
"""

from collections import deque
from dataclasses import replace
from datetime import timedelta
from enum import Enum
from typing import Any, Deque, Dict, List, Mapping, Optional, Sequence, Tuple, Union
import logging
import threading

from core.clock import ClockProtocol, from_iso8601, resolve_clock
from core.exceptions import (
    InvalidStatusError,
    StateTransitionError,
    UnknownServiceError,
    ValidationError,
)
from health_probe.models import HealthCheckResult

from .config import DeploymentConfig, get_config
from .models import DeploymentInfo, LogEntry, ServiceState
from .types import (
    BuildStatus,
    ConnectionStatus,
    Environment,
    LogLevel,
    OverallStatus,
    SERVICE_STATUS_TYPES,
    ServiceName,
)


logger = logging.getLogger(__name__)


UPDATABLE_FIELDS = ("url", "build_time_ms")


# ============================================================
# DERIVATION
# ============================================================

def derive_overall_status(
    frontend: BuildStatus,
    backend: BuildStatus,
    database: ConnectionStatus,
) -> OverallStatus:
    """Derive the deployment status from its service statuses."""
    if (
        frontend == BuildStatus.FAILED
        or backend == BuildStatus.FAILED
        or database == ConnectionStatus.FAILED
    ):
        return OverallStatus.FAILED

    if (
        frontend == BuildStatus.DEPLOYED
        and backend == BuildStatus.DEPLOYED
        and database == ConnectionStatus.CONNECTED
    ):
        return OverallStatus.DEPLOYED

    if frontend == BuildStatus.BUILDING or backend == BuildStatus.BUILDING:
        return OverallStatus.BUILDING

    return OverallStatus.PENDING


def parse_service(service: Union[ServiceName, str]) -> ServiceName:
    try:
        return ServiceName(service)
    except ValueError:
        raise UnknownServiceError(service, [s.value for s in ServiceName]) from None


def parse_service_status(service: ServiceName, status: Union[Enum, str]) -> Enum:
    """Resolve a status value against the enum of the given service."""
    status_type = SERVICE_STATUS_TYPES[service]
    if isinstance(status, Enum) and not isinstance(status, status_type):
        status = status.value
    try:
        return status_type(status)
    except ValueError:
        raise InvalidStatusError(
            service.value, status, [s.value for s in status_type]
        ) from None


def parse_log_level(level: Union[LogLevel, str]) -> LogLevel:
    try:
        return LogLevel(level)
    except ValueError:
        raise ValidationError(
            f"Invalid log level '{level}'",
            field_name="level",
            value=level,
            allowed=[lv.value for lv in LogLevel],
        ) from None


def _validate_extra(extra: Mapping[str, Any]) -> Dict[str, Any]:
    unknown = set(extra) - set(UPDATABLE_FIELDS)
    if unknown:
        raise ValidationError(
            f"Unsupported service fields: {', '.join(sorted(unknown))}",
            field_name="extra",
            value=sorted(unknown),
            allowed=UPDATABLE_FIELDS,
        )

    url = extra.get("url")
    if url is not None and not isinstance(url, str):
        raise ValidationError("url must be a string", field_name="url", value=url)

    build_time = extra.get("build_time_ms")
    if build_time is not None and (
        isinstance(build_time, bool) or not isinstance(build_time, int) or build_time < 0
    ):
        raise ValidationError(
            "build_time_ms must be a non-negative integer",
            field_name="build_time_ms",
            value=build_time,
        )

    return dict(extra)


# ============================================================
# STATE MACHINE
# ============================================================

class DeploymentStateMachine:
    """
    State of one deployment.

    Every mutation runs under a per-deployment lock and validates
    all of its input before touching state, so a rejected call
    leaves the deployment unchanged.
    """

    def __init__(
        self,
        info: DeploymentInfo,
        config: Optional[DeploymentConfig] = None,
        clock: Optional[ClockProtocol] = None,
    ) -> None:
        self._info = info
        self._config = config or get_config()
        self._clock = resolve_clock(clock)
        self._lock = threading.RLock()

        self._services: Dict[ServiceName, ServiceState] = {
            service: ServiceState.initial(service) for service in ServiceName
        }
        self._logs: Deque[LogEntry] = deque(maxlen=self._config.max_log_entries)
        self._health_checks: Tuple[HealthCheckResult, ...] = ()
        self._overall_status = OverallStatus.PENDING

    # --------------------------------------------------------
    # Read side
    # --------------------------------------------------------

    @property
    def info(self) -> DeploymentInfo:
        return self._info

    @property
    def deployment_id(self) -> str:
        return self._info.deployment_id

    @property
    def overall_status(self) -> OverallStatus:
        with self._lock:
            return self._overall_status

    @property
    def is_cancelled(self) -> bool:
        return self.overall_status == OverallStatus.CANCELLED

    @property
    def services(self) -> Dict[ServiceName, ServiceState]:
        with self._lock:
            return dict(self._services)

    def service(self, service: Union[ServiceName, str]) -> ServiceState:
        name = parse_service(service)
        with self._lock:
            return self._services[name]

    @property
    def logs(self) -> List[LogEntry]:
        """Log entries, oldest first."""
        with self._lock:
            return list(self._logs)

    @property
    def health_checks(self) -> Tuple[HealthCheckResult, ...]:
        with self._lock:
            return self._health_checks

    @property
    def health_percentage(self) -> int:
        """Share of services in their healthy state, 0-100."""
        with self._lock:
            healthy = sum(
                1 for state in self._services.values()
                if state.status in (BuildStatus.DEPLOYED, ConnectionStatus.CONNECTED)
            )
        return int(round(healthy / len(ServiceName) * 100))

    @property
    def deployment_duration(self) -> Optional[timedelta]:
        """Time since creation, once the deployment is deployed."""
        if self.overall_status != OverallStatus.DEPLOYED:
            return None
        return self._clock.now() - self._info.created_at

    def get_logs(
        self,
        level: Optional[Union[LogLevel, str]] = None,
        limit: Optional[int] = None,
    ) -> List[LogEntry]:
        """
        Get log entries, newest first.

        Args:
            level: Only entries of this level
            limit: Maximum entries (defaults to config.default_log_limit)
        """
        wanted = parse_log_level(level) if level is not None else None
        limit = self._config.default_log_limit if limit is None else limit
        if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
            raise ValidationError(
                "limit must be a positive integer", field_name="limit", value=limit
            )

        with self._lock:
            entries = list(self._logs)

        result: List[LogEntry] = []
        for entry in reversed(entries):
            if wanted is not None and entry.level != wanted:
                continue
            result.append(entry)
            if len(result) >= limit:
                break
        return result

    # --------------------------------------------------------
    # Mutations
    # --------------------------------------------------------

    def update_service_status(
        self,
        service: Union[ServiceName, str],
        new_status: Union[Enum, str],
        **extra: Any,
    ) -> OverallStatus:
        """
        Set the status of one service and re-derive the overall status.

        Args:
            service: frontend, backend or database
            new_status: A status of that service's domain
            **extra: Optional url / build_time_ms

        Returns:
            The overall status after the update

        Raises:
            UnknownServiceError, InvalidStatusError, ValidationError,
            StateTransitionError (deployment cancelled)
        """
        name = parse_service(service)
        status = parse_service_status(name, new_status)
        fields = _validate_extra(extra)

        with self._lock:
            if self._overall_status == OverallStatus.CANCELLED:
                raise StateTransitionError(
                    f"Deployment {self.deployment_id} is cancelled",
                    from_state=OverallStatus.CANCELLED.value,
                    to_state=f"{name.value}:{status.value}",
                )

            self._services[name] = replace(
                self._services[name],
                status=status,
                last_deployment_time=self._clock.now(),
                **fields,
            )

            previous = self._overall_status
            current = derive_overall_status(
                self._services[ServiceName.FRONTEND].status,
                self._services[ServiceName.BACKEND].status,
                self._services[ServiceName.DATABASE].status,
            )
            self._overall_status = current

        if previous != current:
            logger.info(
                f"Deployment {self.deployment_id}: {previous.value} -> "
                f"{current.value} ({name.value}={status.value})"
            )
        return current

    def append_log(
        self,
        level: Union[LogLevel, str],
        message: str,
        service: Optional[Union[ServiceName, str]] = None,
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> LogEntry:
        """Append an audit log entry, dropping the oldest past the cap."""
        entry = LogEntry(
            level=parse_log_level(level),
            message=message,
            timestamp=self._clock.now(),
            service=service.value if isinstance(service, Enum) else service,
            metadata=dict(metadata or {}),
        )
        with self._lock:
            self._logs.append(entry)
        logger.debug(f"Deployment {self.deployment_id} log [{entry.level.value}] {message}")
        return entry

    def record_health_check(self, results: Sequence[HealthCheckResult]) -> None:
        """Replace the latest health-check results."""
        snapshot = tuple(results)
        with self._lock:
            self._health_checks = snapshot

    def cancel(self) -> bool:
        """
        Move the deployment to cancelled.

        Returns:
            False if it was already cancelled
        """
        with self._lock:
            if self._overall_status == OverallStatus.CANCELLED:
                return False
            previous = self._overall_status
            self._overall_status = OverallStatus.CANCELLED

        logger.info(f"Deployment {self.deployment_id}: {previous.value} -> cancelled")
        return True

    # --------------------------------------------------------
    # Snapshot
    # --------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "deployment_id": self._info.deployment_id,
                "owner_id": self._info.owner_id,
                "name": self._info.name,
                "environment": self._info.environment.value,
                "created_at": self._info.created_at.isoformat(),
                "overall_status": self._overall_status.value,
                "services": {
                    name.value: state.to_dict() for name, state in self._services.items()
                },
                "logs": [entry.to_dict() for entry in self._logs],
                "health_checks": [result.to_dict() for result in self._health_checks],
            }

    @classmethod
    def restore(
        cls,
        snapshot: Mapping[str, Any],
        config: Optional[DeploymentConfig] = None,
        clock: Optional[ClockProtocol] = None,
    ) -> "DeploymentStateMachine":
        """Rebuild a state machine from a to_dict() snapshot."""
        info = DeploymentInfo(
            deployment_id=snapshot["deployment_id"],
            owner_id=snapshot["owner_id"],
            name=snapshot["name"],
            environment=Environment(snapshot["environment"]),
            created_at=from_iso8601(snapshot["created_at"]),
        )
        machine = cls(info, config=config, clock=clock)

        services = snapshot.get("services") or {}
        for name in ServiceName:
            if name.value in services:
                machine._services[name] = ServiceState.from_dict(name, services[name.value])

        for entry in snapshot.get("logs") or []:
            machine._logs.append(LogEntry.from_dict(entry))

        machine._health_checks = tuple(
            HealthCheckResult.from_dict(r) for r in snapshot.get("health_checks") or []
        )

        if snapshot.get("overall_status") == OverallStatus.CANCELLED.value:
            machine._overall_status = OverallStatus.CANCELLED
        else:
            machine._overall_status = derive_overall_status(
                machine._services[ServiceName.FRONTEND].status,
                machine._services[ServiceName.BACKEND].status,
                machine._services[ServiceName.DATABASE].status,
            )
        return machine

    def __repr__(self) -> str:
        return (
            f"DeploymentStateMachine(id={self.deployment_id!r}, "
            f"status={self.overall_status.value!r})"
        )
