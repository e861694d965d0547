"""
Metrics Store - Trend Calculator.

============================================================
TREND DERIVATION
============================================================

Compares the newest sample of a metric type against the sample
at index floor(n/2) of the newest-first window (the "midpoint").
Not a moving average or a regression: reported numbers depend
on exactly these two samples.

- fewer than 2 samples    -> stable, change 0
- |change%| > threshold    -> up / down
- otherwise               -> stable

A zero reference has no percentage change: the result carries
change=None and is classified by the sign of the latest value.

============================================================
"""

import logging
import math
from typing import Any, Optional

from .config import MetricsConfig
from .models import TrendResult
from .store import MetricStore, parse_metric_type
from .types import TrendDirection


logger = logging.getLogger(__name__)


def round_half_up(value: float, digits: int = 2) -> float:
    """Round to `digits` decimals with halves going towards +infinity."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def classify_change(change_pct: float, threshold_pct: float) -> TrendDirection:
    """Classify a percentage change against the threshold."""
    if abs(change_pct) > threshold_pct:
        return TrendDirection.UP if change_pct > 0 else TrendDirection.DOWN
    return TrendDirection.STABLE


class TrendCalculator:
    """Derives up/down/stable trends from a MetricStore."""

    def __init__(
        self,
        store: MetricStore,
        config: Optional[MetricsConfig] = None,
    ) -> None:
        self._store = store
        self._config = config or store.config

    @property
    def threshold_pct(self) -> float:
        return self._config.trend_threshold_pct

    def calculate_trend(
        self,
        deployment_id: str,
        metric_type: Any,
        time_range: Any = None,
    ) -> TrendResult:
        """
        Calculate the trend of one metric type over a window.

        Raises:
            InvalidMetricError: Unknown metric type
            InvalidTimeRangeError: Unknown time range
        """
        parsed_type = parse_metric_type(metric_type)
        samples = self._store.query(
            deployment_id, metric_type=parsed_type, time_range=time_range
        )
        n = len(samples)

        if n < 2:
            return TrendResult(trend=TrendDirection.STABLE, change=0.0, sample_count=n)

        latest = samples[0].value
        reference = samples[n // 2].value

        if reference == 0:
            if latest == 0:
                trend = TrendDirection.STABLE
            else:
                trend = TrendDirection.UP if latest > 0 else TrendDirection.DOWN
            logger.debug(
                f"Zero reference for {parsed_type.value} trend of {deployment_id}, "
                f"reporting {trend.value} without a percentage"
            )
            return TrendResult(trend=trend, change=None, sample_count=n)

        change_pct = (latest - reference) / reference * 100
        return TrendResult(
            trend=classify_change(change_pct, self.threshold_pct),
            change=round_half_up(change_pct),
            sample_count=n,
        )
