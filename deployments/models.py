"""
Deployments - Data Models.

============================================================
CORE DATA STRUCTURES
============================================================

- DeploymentInfo: identity of a deployment
- ServiceState: current state of one tier (replaced, not mutated)
- LogEntry: one immutable audit log record

State (ServiceState) and event history (LogEntry) are kept as
separate collections with separate lifecycle rules.

============================================================
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from core.clock import from_iso8601

from .types import Environment, LogLevel, SERVICE_STATUS_TYPES, ServiceName


@dataclass(frozen=True)
class DeploymentInfo:
    """Identity and ownership of a deployment."""
    deployment_id: str
    owner_id: str
    name: str
    environment: Environment
    created_at: datetime


@dataclass(frozen=True)
class ServiceState:
    """State of one tier of a deployment."""
    status: Enum  # BuildStatus or ConnectionStatus, per SERVICE_STATUS_TYPES
    url: Optional[str] = None
    build_time_ms: Optional[int] = None
    last_deployment_time: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "url": self.url,
            "build_time_ms": self.build_time_ms,
            "last_deployment_time": (
                self.last_deployment_time.isoformat() if self.last_deployment_time else None
            ),
        }

    @classmethod
    def from_dict(cls, service: ServiceName, data: Dict[str, Any]) -> "ServiceState":
        last = data.get("last_deployment_time")
        return cls(
            status=SERVICE_STATUS_TYPES[service](data["status"]),
            url=data.get("url"),
            build_time_ms=data.get("build_time_ms"),
            last_deployment_time=from_iso8601(last) if last else None,
        )

    @classmethod
    def initial(cls, service: ServiceName) -> "ServiceState":
        return cls(status=SERVICE_STATUS_TYPES[service]("pending"))


@dataclass(frozen=True)
class LogEntry:
    """One audit log record of a deployment."""
    level: LogLevel
    message: str
    timestamp: datetime
    service: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level.value,
            "message": self.message,
            "timestamp": self.timestamp.isoformat(),
            "service": self.service,
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LogEntry":
        return cls(
            level=LogLevel(data["level"]),
            message=data["message"],
            timestamp=from_iso8601(data["timestamp"]),
            service=data.get("service"),
            metadata=dict(data.get("metadata") or {}),
        )
