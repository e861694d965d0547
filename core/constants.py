"""
Core Module - Constants.

============================================================
RESPONSIBILITY
============================================================
Defines the fixed values shared across packages.

- Single source of truth for defaults that configs start from
- No business logic here

============================================================
"""

from datetime import timedelta
from typing import Dict


# ============================================================
# SYSTEM IDENTIFICATION
# ============================================================

SYSTEM_NAME = "deployment-monitor"
SYSTEM_VERSION = "0.1.0"


# ============================================================
# DEPLOYMENT STATE
# ============================================================

MAX_LOG_ENTRIES = 100
"""Audit log entries kept per deployment (oldest dropped first)."""

DEFAULT_LOG_LIMIT = 100
"""Entries returned by a log read when no limit is given."""


# ============================================================
# HEALTH PROBING
# ============================================================

PROBE_TIMEOUT_MS = 5000
BACKEND_HEALTH_PATH = "/health"
HEALTHY_UPTIME = 100.0
UNHEALTHY_UPTIME = 0.0


# ============================================================
# METRICS
# ============================================================

METRIC_RETENTION_DAYS = 30
RETENTION_SWEEP_INTERVAL_SECONDS = 300
TREND_THRESHOLD_PCT = 5.0
DEFAULT_TIME_RANGE = "24h"

TIME_RANGE_WINDOWS: Dict[str, timedelta] = {
    "1h": timedelta(hours=1),
    "24h": timedelta(hours=24),
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
}


# ============================================================
# LOCKOUT
# ============================================================

LOCKOUT_MAX_ATTEMPTS = 5
LOCKOUT_DURATION_SECONDS = 2 * 60 * 60
