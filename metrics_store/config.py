"""
Metrics Store - Configuration.

============================================================
CONFIGURABLE RETENTION AND TRENDS
============================================================

- Retention period and sweep cadence
- Trend classification threshold
- Default query window

Configuration can be loaded from:
- Default values
- Environment variables
- YAML config file

============================================================
"""

import os
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Any, Dict, Optional
import logging

import yaml

from core.constants import (
    DEFAULT_TIME_RANGE,
    METRIC_RETENTION_DAYS,
    RETENTION_SWEEP_INTERVAL_SECONDS,
    TREND_THRESHOLD_PCT,
)
from core.exceptions import ConfigurationError


logger = logging.getLogger(__name__)


@dataclass
class MetricsConfig:
    """Settings for MetricStore, Aggregator and TrendCalculator."""
    retention_days: int = METRIC_RETENTION_DAYS
    sweep_interval_seconds: int = RETENTION_SWEEP_INTERVAL_SECONDS
    trend_threshold_pct: float = TREND_THRESHOLD_PCT
    default_time_range: str = DEFAULT_TIME_RANGE

    def __post_init__(self) -> None:
        """Validate settings."""
        if self.retention_days <= 0:
            raise ConfigurationError(
                "retention_days must be positive",
                config_key="retention_days",
                actual_value=self.retention_days,
            )
        if self.sweep_interval_seconds < 0:
            raise ConfigurationError(
                "sweep_interval_seconds must be >= 0",
                config_key="sweep_interval_seconds",
                actual_value=self.sweep_interval_seconds,
            )
        if self.trend_threshold_pct < 0:
            raise ConfigurationError(
                "trend_threshold_pct must be >= 0",
                config_key="trend_threshold_pct",
                actual_value=self.trend_threshold_pct,
            )

    @property
    def retention(self) -> timedelta:
        return timedelta(days=self.retention_days)

    @classmethod
    def from_env(cls) -> "MetricsConfig":
        """
        Load configuration from environment variables.

        Environment variables:
        - METRICS_RETENTION_DAYS
        - METRICS_SWEEP_INTERVAL
        - METRICS_TREND_THRESHOLD
        - METRICS_DEFAULT_TIME_RANGE
        """
        kwargs: Dict[str, Any] = {}
        if os.getenv("METRICS_RETENTION_DAYS"):
            kwargs["retention_days"] = int(os.getenv("METRICS_RETENTION_DAYS"))
        if os.getenv("METRICS_SWEEP_INTERVAL"):
            kwargs["sweep_interval_seconds"] = int(os.getenv("METRICS_SWEEP_INTERVAL"))
        if os.getenv("METRICS_TREND_THRESHOLD"):
            kwargs["trend_threshold_pct"] = float(os.getenv("METRICS_TREND_THRESHOLD"))
        if os.getenv("METRICS_DEFAULT_TIME_RANGE"):
            kwargs["default_time_range"] = os.getenv("METRICS_DEFAULT_TIME_RANGE")
        return cls(**kwargs)

    @classmethod
    def from_yaml(cls, path: Path) -> "MetricsConfig":
        """Load configuration from the `metrics` section of a YAML file."""
        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f) or {}
            section = data.get("metrics", {})
            return cls(
                retention_days=section.get("retention_days", METRIC_RETENTION_DAYS),
                sweep_interval_seconds=section.get(
                    "sweep_interval_seconds", RETENTION_SWEEP_INTERVAL_SECONDS
                ),
                trend_threshold_pct=section.get("trend_threshold_pct", TREND_THRESHOLD_PCT),
                default_time_range=section.get("default_time_range", DEFAULT_TIME_RANGE),
            )
        except (OSError, yaml.YAMLError, AttributeError) as e:
            logger.warning(f"Failed to load YAML config from {path}: {e}")
            return cls()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "retention_days": self.retention_days,
            "sweep_interval_seconds": self.sweep_interval_seconds,
            "trend_threshold_pct": self.trend_threshold_pct,
            "default_time_range": self.default_time_range,
        }


# =============================================================
# GLOBAL CONFIG SINGLETON
# =============================================================


_default_config: Optional[MetricsConfig] = None


def get_config() -> MetricsConfig:
    """Get the global metrics configuration."""
    global _default_config
    if _default_config is None:
        _default_config = MetricsConfig.from_env()
    return _default_config


def set_config(config: Optional[MetricsConfig]) -> None:
    """Set (or clear, with None) the global metrics configuration."""
    global _default_config
    _default_config = config
