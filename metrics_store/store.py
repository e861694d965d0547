"""
Metrics Store - Time-Series Storage.

============================================================
APPEND-ONLY METRIC STORAGE
============================================================

Stores metric samples per deployment, split into series keyed
by (metric type, service). Each series is kept sorted by
timestamp so range scans are a bisect plus a slice, and queries
filtered by type or service only touch the matching series.

============================================================
RETENTION
============================================================

Samples older than the retention period (30 days by default)
expire. Expiry is lazy: `record` runs a sweep at most once per
sweep interval, and `expire` may be called by a scheduler. Every
query also clamps its lower bound to the retention cutoff, so an
expired sample is never observed.

============================================================
THREAD SAFETY
============================================================

All state sits behind one re-entrant lock. A sample is inserted
whole or not at all, and `delete_all` removes a deployment's
series and retires its id in a single critical section.

============================================================
"""

import heapq
import logging
import math
import threading
from bisect import bisect_left, bisect_right
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Set, Tuple

from core.clock import ClockProtocol, ensure_utc, resolve_clock
from core.exceptions import (
    DeploymentNotFoundError,
    InvalidMetricError,
    InvalidTimeRangeError,
)

from .config import MetricsConfig, get_config
from .models import MetricSample
from .types import (
    MetricService,
    MetricType,
    MetricUnit,
    TimeRange,
    coerce_enum,
    enum_values,
)


logger = logging.getLogger(__name__)


SeriesKey = Tuple[MetricType, MetricService]


# =============================================================
# VALIDATION HELPERS
# =============================================================


def parse_metric_type(value: Any) -> MetricType:
    """Validate a metric type against the fixed enum."""
    try:
        return coerce_enum(MetricType, value)
    except ValueError:
        raise InvalidMetricError(
            f"unknown type '{value}'",
            field_name="type",
            value=value,
            allowed=enum_values(MetricType),
        )


def parse_metric_unit(value: Any) -> MetricUnit:
    """Validate a unit against the fixed enum."""
    try:
        return coerce_enum(MetricUnit, value)
    except ValueError:
        raise InvalidMetricError(
            f"unknown unit '{value}'",
            field_name="unit",
            value=value,
            allowed=enum_values(MetricUnit),
        )


def parse_metric_service(value: Any) -> MetricService:
    """Validate a sample's service tier."""
    try:
        return coerce_enum(MetricService, value)
    except ValueError:
        raise InvalidMetricError(
            f"unknown service '{value}'",
            field_name="service",
            value=value,
            allowed=enum_values(MetricService),
        )


def parse_metric_value(value: Any) -> float:
    """Validate that a sample value is a finite number."""
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal, str)):
        raise InvalidMetricError("value must be a number", field_name="value", value=value)
    try:
        numeric = float(value)
    except (ValueError, OverflowError):
        raise InvalidMetricError("value must be a number", field_name="value", value=value)
    if not math.isfinite(numeric):
        raise InvalidMetricError("value must be finite", field_name="value", value=value)
    return numeric


def parse_time_range(value: Any) -> TimeRange:
    """Validate a query window."""
    try:
        return coerce_enum(TimeRange, value)
    except ValueError:
        raise InvalidTimeRangeError("timeRange", value, enum_values(TimeRange))


# =============================================================
# SERIES
# =============================================================


class _Series:
    """Samples of one (type, service) for one deployment, oldest first."""

    __slots__ = ("timestamps", "samples")

    def __init__(self) -> None:
        self.timestamps: List[datetime] = []
        self.samples: List[MetricSample] = []

    def __len__(self) -> int:
        return len(self.samples)

    def insert(self, sample: MetricSample) -> None:
        # bisect_right keeps equal timestamps in arrival order
        idx = bisect_right(self.timestamps, sample.timestamp)
        self.timestamps.insert(idx, sample.timestamp)
        self.samples.insert(idx, sample)

    def since(self, start: datetime) -> List[MetricSample]:
        idx = bisect_left(self.timestamps, start)
        return self.samples[idx:]

    def expire_before(self, cutoff: datetime) -> int:
        idx = bisect_left(self.timestamps, cutoff)
        if idx:
            del self.timestamps[:idx]
            del self.samples[:idx]
        return idx


# =============================================================
# METRIC STORE
# =============================================================


class MetricStore:
    """
    Bounded-retention time-series store for deployment metrics.

    ============================================================
    OPERATIONS
    ============================================================
    - record / record_sample: validate and append a sample
    - query: newest-first range scan over a fixed window
    - delete_all: cascade delete when a deployment is removed
    - expire: retention sweep
    ============================================================
    """

    def __init__(
        self,
        config: Optional[MetricsConfig] = None,
        clock: Optional[ClockProtocol] = None,
    ) -> None:
        self._config = config or get_config()
        self._clock = resolve_clock(clock)
        self._series: Dict[str, Dict[SeriesKey, _Series]] = {}
        # one entry per deleted deployment, kept for the process lifetime;
        # dropping an entry would let late samples resurrect the id
        self._retired: Set[str] = set()
        self._last_sweep: Optional[datetime] = None
        self._lock = threading.RLock()

    @property
    def config(self) -> MetricsConfig:
        return self._config

    @property
    def clock(self) -> ClockProtocol:
        return self._clock

    # =========================================================
    # WRITE
    # =========================================================

    def record(
        self,
        deployment_id: str,
        metric_type: Any,
        value: Any,
        unit: Any,
        service: Any = MetricService.OVERALL,
        timestamp: Optional[datetime] = None,
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> MetricSample:
        """
        Validate and append one sample.

        Raises:
            InvalidMetricError: Type, unit, service or value is invalid
            DeploymentNotFoundError: The deployment id was deleted
        """
        sample = MetricSample(
            deployment_id=deployment_id,
            type=parse_metric_type(metric_type),
            value=parse_metric_value(value),
            unit=parse_metric_unit(unit),
            service=parse_metric_service(service),
            timestamp=ensure_utc(timestamp) if timestamp else self._clock.now(),
            metadata=dict(metadata or {}),
        )
        self._append(sample)
        return sample

    def record_sample(self, sample: MetricSample) -> MetricSample:
        """Validate and append a pre-built sample."""
        return self.record(
            deployment_id=sample.deployment_id,
            metric_type=sample.type,
            value=sample.value,
            unit=sample.unit,
            service=sample.service,
            timestamp=sample.timestamp,
            metadata=sample.metadata,
        )

    def _append(self, sample: MetricSample) -> None:
        if not sample.deployment_id:
            raise InvalidMetricError(
                "deployment id is required", field_name="deployment_id"
            )

        with self._lock:
            if sample.deployment_id in self._retired:
                raise DeploymentNotFoundError(sample.deployment_id, retired=True)

            series_by_key = self._series.setdefault(sample.deployment_id, {})
            series = series_by_key.get((sample.type, sample.service))
            if series is None:
                series = series_by_key[(sample.type, sample.service)] = _Series()
            series.insert(sample)

            self._maybe_sweep()

        logger.debug(
            f"Recorded {sample.type.value}={sample.value}{sample.unit.value} "
            f"for {sample.deployment_id}/{sample.service.value}"
        )

    # =========================================================
    # READ
    # =========================================================

    def query(
        self,
        deployment_id: str,
        metric_type: Any = None,
        service: Any = None,
        time_range: Any = None,
    ) -> List[MetricSample]:
        """
        Return samples within the window, newest first.

        Args:
            deployment_id: Deployment whose samples to read
            metric_type: Optional type filter
            service: Optional service filter
            time_range: One of 1h, 24h, 7d, 30d (default from config)

        Raises:
            InvalidMetricError: Unknown type or service filter
            InvalidTimeRangeError: Unknown time range
        """
        window = parse_time_range(time_range or self._config.default_time_range)
        type_filter = parse_metric_type(metric_type) if metric_type is not None else None
        service_filter = parse_metric_service(service) if service is not None else None

        now = self._clock.now()
        start = max(now - window.window, now - self._config.retention)

        with self._lock:
            series_by_key = self._series.get(deployment_id, {})
            runs = [
                list(reversed(series.since(start)))
                for (series_type, series_service), series in series_by_key.items()
                if (type_filter is None or series_type == type_filter)
                and (service_filter is None or series_service == service_filter)
            ]

        return list(heapq.merge(*runs, key=lambda s: s.timestamp, reverse=True))

    def count(self, deployment_id: Optional[str] = None) -> int:
        """Number of stored samples, for one deployment or overall."""
        with self._lock:
            if deployment_id is not None:
                return sum(len(s) for s in self._series.get(deployment_id, {}).values())
            return sum(
                len(s) for by_key in self._series.values() for s in by_key.values()
            )

    def deployment_ids(self) -> List[str]:
        """Deployments that currently hold samples."""
        with self._lock:
            return sorted(self._series.keys())

    def is_retired(self, deployment_id: str) -> bool:
        with self._lock:
            return deployment_id in self._retired

    # =========================================================
    # DELETE / RETENTION
    # =========================================================

    def delete_all(self, deployment_id: str) -> int:
        """
        Delete every sample of a deployment and retire its id.

        Any record() for the id that arrives afterwards is rejected,
        so no orphan sample can appear under the deleted id.

        Returns:
            Number of samples removed
        """
        with self._lock:
            series_by_key = self._series.pop(deployment_id, {})
            self._retired.add(deployment_id)
            removed = sum(len(s) for s in series_by_key.values())

        logger.info(f"Deleted {removed} metric samples for deployment {deployment_id}")
        return removed

    def expire(self, now: Optional[datetime] = None) -> int:
        """
        Remove samples older than the retention period.

        Returns:
            Number of samples removed
        """
        now = ensure_utc(now) if now else self._clock.now()
        cutoff = now - self._config.retention
        removed = 0

        with self._lock:
            for deployment_id in list(self._series.keys()):
                series_by_key = self._series[deployment_id]
                for key in list(series_by_key.keys()):
                    removed += series_by_key[key].expire_before(cutoff)
                    if not series_by_key[key]:
                        del series_by_key[key]
                if not series_by_key:
                    del self._series[deployment_id]
            self._last_sweep = now

        if removed:
            logger.info(f"Retention sweep removed {removed} samples older than {cutoff.isoformat()}")
        return removed

    def _maybe_sweep(self) -> None:
        now = self._clock.now()
        if (
            self._last_sweep is None
            or (now - self._last_sweep).total_seconds() >= self._config.sweep_interval_seconds
        ):
            self.expire(now)
