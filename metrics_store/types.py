"""
Metrics Store - Types.

============================================================
ENUMERATIONS
============================================================

Closed value domains for metric samples and queries:
- MetricType: the 10 recorded kinds
- MetricUnit: the 7 accepted units
- MetricService: tier a sample belongs to
- TimeRange: fixed lookback windows
- GroupBy: aggregation bucket widths
- TrendDirection: trend classification

============================================================
"""

from datetime import timedelta
from enum import Enum
from typing import Any, List, Type, TypeVar

from core.constants import TIME_RANGE_WINDOWS


E = TypeVar("E", bound=Enum)


class MetricType(str, Enum):
    """Kinds of performance metrics a deployment reports."""
    RESPONSE_TIME = "response_time"
    ERROR_RATE = "error_rate"
    REQUEST_COUNT = "request_count"
    CPU_USAGE = "cpu_usage"
    MEMORY_USAGE = "memory_usage"
    DISK_USAGE = "disk_usage"
    NETWORK_IO = "network_io"
    UPTIME = "uptime"
    THROUGHPUT = "throughput"
    LATENCY = "latency"


class MetricUnit(str, Enum):
    """Units a metric value may be expressed in."""
    MS = "ms"
    PERCENT = "percent"
    COUNT = "count"
    BYTES = "bytes"
    REQUESTS_PER_MIN = "requests/min"
    MB = "mb"
    GB = "gb"


class MetricService(str, Enum):
    """Tier a sample was taken from."""
    FRONTEND = "frontend"
    BACKEND = "backend"
    DATABASE = "database"
    OVERALL = "overall"


class TimeRange(str, Enum):
    """Fixed query lookback windows."""
    HOUR = "1h"
    DAY = "24h"
    WEEK = "7d"
    MONTH = "30d"

    @property
    def window(self) -> timedelta:
        """Lookback length of this range."""
        return TIME_RANGE_WINDOWS[self.value]


class GroupBy(str, Enum):
    """Aggregation bucket widths."""
    HOUR = "hour"
    DAY = "day"
    WEEK = "week"


class TrendDirection(str, Enum):
    """Coarse classification of recent change."""
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


def enum_values(enum_cls: Type[Enum]) -> List[str]:
    """List the string values of an enum."""
    return [member.value for member in enum_cls]


def coerce_enum(enum_cls: Type[E], value: Any) -> E:
    """
    Convert a raw value into a member of `enum_cls`.

    Raises:
        ValueError: If the value is not a member value
    """
    if isinstance(value, enum_cls):
        return value
    return enum_cls(value)
