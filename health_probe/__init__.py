"""
Health Probe Module.

============================================================
SERVICE LIVENESS CHECKS
============================================================

Bounded-timeout GET probes against deployment services. Every
failure mode collapses into an `unhealthy` HealthCheckResult;
nothing is raised to the caller.

- frontend: probed at its own URL
- backend:  probed at <url> + backend health path ("/health")

============================================================
"""

from .models import (
    HealthStatus,
    HealthCheckResult,
    HttpResponse,
    ProbeEndpoint,
)
from .config import ProbeConfig, get_config, set_config
from .client import HttpClientProtocol, AiohttpClient
from .probe import HealthProbe, build_endpoints


__all__ = [
    "HealthStatus",
    "HealthCheckResult",
    "HttpResponse",
    "ProbeEndpoint",
    "ProbeConfig",
    "get_config",
    "set_config",
    "HttpClientProtocol",
    "AiohttpClient",
    "HealthProbe",
    "build_endpoints",
]
