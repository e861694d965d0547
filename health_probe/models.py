"""
Health Probe - Data Models.

============================================================
CORE DATA STRUCTURES
============================================================

- HealthStatus: healthy / unhealthy
- ProbeEndpoint: what to probe (service label + URL)
- HttpResponse: what the HTTP capability reports back
- HealthCheckResult: classified outcome of one probe

============================================================
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict

from core.clock import from_iso8601


class HealthStatus(str, Enum):
    """Liveness classification of a probed service."""
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"

    def is_healthy(self) -> bool:
        return self == HealthStatus.HEALTHY


@dataclass(frozen=True)
class ProbeEndpoint:
    """A service URL to probe."""
    service: str
    url: str


@dataclass(frozen=True)
class HttpResponse:
    """Status and elapsed time of one GET request."""
    status: int
    elapsed_ms: float

    @property
    def is_success(self) -> bool:
        return 200 <= self.status < 300


@dataclass(frozen=True)
class HealthCheckResult:
    """
    Outcome of one liveness probe.

    Unhealthy results always carry response_time_ms=0 and uptime=0.
    Healthy results report the measured time and a constant
    uptime of 100; no rolling uptime is computed.
    """
    service: str
    status: HealthStatus
    response_time_ms: int
    last_check: datetime
    uptime: float

    @property
    def is_healthy(self) -> bool:
        return self.status.is_healthy()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "service": self.service,
            "status": self.status.value,
            "response_time_ms": self.response_time_ms,
            "last_check": self.last_check.isoformat(),
            "uptime": self.uptime,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HealthCheckResult":
        return cls(
            service=data["service"],
            status=HealthStatus(data["status"]),
            response_time_ms=int(data["response_time_ms"]),
            last_check=from_iso8601(data["last_check"]),
            uptime=float(data["uptime"]),
        )
