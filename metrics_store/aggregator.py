"""
Metrics Store - Aggregator.

============================================================
WINDOWED STATISTICS
============================================================

Groups the samples of a query window into buckets keyed by
(type, service, interval) and reports avg/min/max/count/latest
per bucket. Grouping is a single in-memory pass over the sorted
range-query result.

Interval labels:
- hour: "%Y-%m-%d %H:00"
- day:  "%Y-%m-%d"
- week: "%Y-W%U" (weeks start on Sunday)

============================================================
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple

from core.exceptions import InvalidGroupByError

from .models import MetricBucket, MetricSample, MetricSummary
from .store import MetricStore, parse_metric_type
from .types import GroupBy, MetricService, MetricType, coerce_enum, enum_values


logger = logging.getLogger(__name__)


INTERVAL_FORMATS: Dict[GroupBy, str] = {
    GroupBy.HOUR: "%Y-%m-%d %H:00",
    GroupBy.DAY: "%Y-%m-%d",
    GroupBy.WEEK: "%Y-W%U",
}


def parse_group_by(value: Any) -> GroupBy:
    """Validate an aggregation interval."""
    try:
        return coerce_enum(GroupBy, value)
    except ValueError:
        raise InvalidGroupByError(value, enum_values(GroupBy))


def truncate_timestamp(timestamp: datetime, group_by: GroupBy) -> datetime:
    """Truncate a timestamp to the start of its bucket."""
    hour_start = timestamp.replace(minute=0, second=0, microsecond=0)
    if group_by == GroupBy.HOUR:
        return hour_start
    day_start = hour_start.replace(hour=0)
    if group_by == GroupBy.DAY:
        return day_start
    # weekday(): Monday=0 .. Sunday=6; %U weeks begin on Sunday
    return day_start - timedelta(days=(day_start.weekday() + 1) % 7)


@dataclass
class _Accumulator:
    """Running statistics for one bucket."""
    total: float = 0.0
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    count: int = 0
    latest: float = 0.0

    def add(self, value: float) -> None:
        self.total += value
        self.minimum = value if self.minimum is None else min(self.minimum, value)
        self.maximum = value if self.maximum is None else max(self.maximum, value)
        self.count += 1
        self.latest = value  # samples are fed oldest first

    @property
    def avg(self) -> float:
        return self.total / self.count


class Aggregator:
    """
    Read-side statistics over a MetricStore.

    ============================================================
    OPERATIONS
    ============================================================
    - aggregate: bucketed statistics per (type, service, interval)
    - summarize: one summary for a metric type over the window
    ============================================================
    """

    def __init__(self, store: MetricStore) -> None:
        self._store = store

    def aggregate(
        self,
        deployment_id: str,
        time_range: Any = None,
        group_by: Any = GroupBy.HOUR,
    ) -> List[MetricBucket]:
        """
        Bucket the window's samples and compute statistics.

        Buckets are sorted ascending by bucket start, then type,
        then service.

        Raises:
            InvalidTimeRangeError: Unknown time range
            InvalidGroupByError: Unknown interval
        """
        interval = parse_group_by(group_by)
        samples = self._store.query(deployment_id, time_range=time_range)

        buckets: Dict[Tuple[MetricType, MetricService, datetime], _Accumulator] = {}
        for sample in reversed(samples):
            key = (sample.type, sample.service, truncate_timestamp(sample.timestamp, interval))
            acc = buckets.get(key)
            if acc is None:
                acc = buckets[key] = _Accumulator()
            acc.add(sample.value)

        ordered = sorted(buckets.items(), key=lambda item: (item[0][2], item[0][0].value, item[0][1].value))
        result = [
            MetricBucket(
                type=metric_type,
                service=service,
                interval=bucket_start.strftime(INTERVAL_FORMATS[interval]),
                bucket_start=bucket_start,
                avg=acc.avg,
                min=acc.minimum,
                max=acc.maximum,
                count=acc.count,
                latest=acc.latest,
            )
            for (metric_type, service, bucket_start), acc in ordered
        ]

        logger.debug(
            f"Aggregated {len(samples)} samples into {len(result)} {interval.value} buckets "
            f"for {deployment_id}"
        )
        return result

    def summarize(
        self,
        deployment_id: str,
        metric_type: Any,
        time_range: Any = None,
    ) -> Optional[MetricSummary]:
        """Summary of one metric type over the window, or None if empty."""
        parsed_type = parse_metric_type(metric_type)
        samples: List[MetricSample] = self._store.query(
            deployment_id, metric_type=parsed_type, time_range=time_range
        )
        if not samples:
            return None

        acc = _Accumulator()
        for sample in reversed(samples):
            acc.add(sample.value)

        return MetricSummary(
            type=parsed_type,
            avg=acc.avg,
            min=acc.minimum,
            max=acc.maximum,
            count=acc.count,
            latest=acc.latest,
        )
