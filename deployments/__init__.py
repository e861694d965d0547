"""
Deployments Module.

============================================================
DEPLOYMENT STATE
============================================================

Tracks the lifecycle of multi-service deployments (frontend,
backend, database) and their bounded audit log.

- DeploymentStateMachine: one deployment, lock-protected
- DeploymentManager: registry, cascade delete, health checks
- derive_overall_status: pure status derivation

============================================================
"""

from .types import (
    BuildStatus,
    ConnectionStatus,
    Environment,
    LogLevel,
    OverallStatus,
    SERVICE_STATUS_TYPES,
    ServiceName,
)
from .models import DeploymentInfo, LogEntry, ServiceState
from .config import DeploymentConfig, get_config, set_config
from .state_machine import (
    DeploymentStateMachine,
    derive_overall_status,
    parse_service,
    parse_service_status,
)
from .manager import DeploymentManager


__all__ = [
    "BuildStatus",
    "ConnectionStatus",
    "Environment",
    "LogLevel",
    "OverallStatus",
    "SERVICE_STATUS_TYPES",
    "ServiceName",
    "DeploymentInfo",
    "LogEntry",
    "ServiceState",
    "DeploymentConfig",
    "get_config",
    "set_config",
    "DeploymentStateMachine",
    "derive_overall_status",
    "parse_service",
    "parse_service_status",
    "DeploymentManager",
]
