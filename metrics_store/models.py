"""
Metrics Store - Data Models.

============================================================
CORE DATA STRUCTURES
============================================================

- MetricSample: one immutable timestamped observation
- MetricBucket: windowed statistics for one (type, service, interval)
- MetricSummary: statistics over a whole query window
- TrendResult: direction and magnitude of recent change

============================================================
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional
from uuid import uuid4

from .types import MetricService, MetricType, MetricUnit, TrendDirection


@dataclass(frozen=True)
class MetricSample:
    """
    Single metric observation.

    Created by a producer through MetricStore.record and never
    mutated; removed only by retention expiry or deployment deletion.
    """
    deployment_id: str
    type: MetricType
    value: float
    unit: MetricUnit
    timestamp: datetime
    service: MetricService = MetricService.OVERALL
    metadata: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)
    sample_id: str = field(default_factory=lambda: uuid4().hex, compare=False)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "sample_id": self.sample_id,
            "deployment_id": self.deployment_id,
            "type": self.type.value,
            "value": self.value,
            "unit": self.unit.value,
            "timestamp": self.timestamp.isoformat(),
            "service": self.service.value,
            "metadata": dict(self.metadata),
        }


@dataclass(frozen=True)
class MetricBucket:
    """Statistics for the samples of one (type, service, interval)."""
    type: MetricType
    service: MetricService
    interval: str  # e.g. "2026-10-19 14:00"
    bucket_start: datetime
    avg: float
    min: float
    max: float
    count: int
    latest: float  # chronologically last value, not the largest

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "service": self.service.value,
            "interval": self.interval,
            "bucket_start": self.bucket_start.isoformat(),
            "avg": self.avg,
            "min": self.min,
            "max": self.max,
            "count": self.count,
            "latest": self.latest,
        }


@dataclass(frozen=True)
class MetricSummary:
    """Statistics of one metric type over a whole window."""
    type: MetricType
    avg: float
    min: float
    max: float
    count: int
    latest: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "avg": self.avg,
            "min": self.min,
            "max": self.max,
            "count": self.count,
            "latest": self.latest,
        }


@dataclass(frozen=True)
class TrendResult:
    """
    Trend of a metric type over a window.

    `change` is the percentage change rounded to 2 decimals, or
    None when the reference sample is zero and no percentage exists.
    """
    trend: TrendDirection
    change: Optional[float]
    sample_count: int = 0

    @property
    def is_stable(self) -> bool:
        return self.trend == TrendDirection.STABLE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "trend": self.trend.value,
            "change": self.change,
        }
