"""
Metrics Store Module.

============================================================
DEPLOYMENT PERFORMANCE METRICS
============================================================

Time-series storage for deployment metrics with bounded
retention, plus the read-side consumers built on it.

- MetricStore: append-only samples per (deployment, type, service)
- Aggregator: bucketed avg/min/max/count/latest
- TrendCalculator: up/down/stable from the newest vs. midpoint sample

============================================================
USAGE
============================================================

```python
from metrics_store import MetricStore, Aggregator, TrendCalculator

store = MetricStore()
store.record("dep-1", "response_time", 120, "ms", service="backend")

recent = store.query("dep-1", metric_type="response_time", time_range="1h")
buckets = Aggregator(store).aggregate("dep-1", time_range="24h", group_by="hour")
trend = TrendCalculator(store).calculate_trend("dep-1", "response_time")
```

============================================================
"""

from .types import (
    MetricType,
    MetricUnit,
    MetricService,
    TimeRange,
    GroupBy,
    TrendDirection,
)
from .models import (
    MetricSample,
    MetricBucket,
    MetricSummary,
    TrendResult,
)
from .config import MetricsConfig, get_config, set_config
from .store import MetricStore
from .aggregator import Aggregator
from .trends import TrendCalculator


__all__ = [
    # Types
    "MetricType",
    "MetricUnit",
    "MetricService",
    "TimeRange",
    "GroupBy",
    "TrendDirection",
    # Models
    "MetricSample",
    "MetricBucket",
    "MetricSummary",
    "TrendResult",
    # Config
    "MetricsConfig",
    "get_config",
    "set_config",
    # Core
    "MetricStore",
    "Aggregator",
    "TrendCalculator",
]
