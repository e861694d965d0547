"""
Deployments - Types.

============================================================
STATUS DOMAINS
============================================================

Each status domain is its own enum so a database status can
never be assigned to the frontend and vice versa:

- OverallStatus: deployment-level lifecycle
- BuildStatus: frontend / backend tiers
- ConnectionStatus: database tier
- ServiceName: the three tiers
- Environment: target environment
- LogLevel: audit log severity

============================================================
"""

from enum import Enum
from typing import Dict, Type


class OverallStatus(str, Enum):
    """
    Deployment-level status.

    Derived from the service statuses, except CANCELLED which is
    only reached through an explicit cancel.
    """
    PENDING = "pending"
    BUILDING = "building"
    DEPLOYED = "deployed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    def is_terminal(self) -> bool:
        return self == OverallStatus.CANCELLED


class BuildStatus(str, Enum):
    """Status of a built tier (frontend, backend)."""
    PENDING = "pending"
    BUILDING = "building"
    DEPLOYED = "deployed"
    FAILED = "failed"


class ConnectionStatus(str, Enum):
    """Status of the database tier."""
    PENDING = "pending"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    FAILED = "failed"


class ServiceName(str, Enum):
    """The three tiers of a deployment."""
    FRONTEND = "frontend"
    BACKEND = "backend"
    DATABASE = "database"


class Environment(str, Enum):
    """Target environment of a deployment."""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class LogLevel(str, Enum):
    """Audit log severity."""
    INFO = "info"
    WARN = "warn"
    ERROR = "error"
    DEBUG = "debug"


SERVICE_STATUS_TYPES: Dict[ServiceName, Type[Enum]] = {
    ServiceName.FRONTEND: BuildStatus,
    ServiceName.BACKEND: BuildStatus,
    ServiceName.DATABASE: ConnectionStatus,
}
