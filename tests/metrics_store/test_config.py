"""
Tests for MetricsConfig loading.
"""

from datetime import timedelta

import pytest

from core.exceptions import ConfigurationError
from metrics_store.config import MetricsConfig, get_config, set_config


class TestMetricsConfig:
    """Tests for MetricsConfig."""

    def test_defaults(self):
        config = MetricsConfig()
        assert config.retention_days == 30
        assert config.retention == timedelta(days=30)
        assert config.sweep_interval_seconds == 300
        assert config.trend_threshold_pct == 5.0
        assert config.default_time_range == "24h"

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"retention_days": 0},
            {"sweep_interval_seconds": -1},
            {"trend_threshold_pct": -0.5},
        ],
    )
    def test_invalid_values(self, kwargs):
        with pytest.raises(ConfigurationError):
            MetricsConfig(**kwargs)

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("METRICS_RETENTION_DAYS", "7")
        monkeypatch.setenv("METRICS_SWEEP_INTERVAL", "60")
        monkeypatch.setenv("METRICS_TREND_THRESHOLD", "2.5")

        config = MetricsConfig.from_env()

        assert config.retention_days == 7
        assert config.sweep_interval_seconds == 60
        assert config.trend_threshold_pct == 2.5

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "monitor.yaml"
        path.write_text("metrics:\n  retention_days: 14\n  default_time_range: 7d\n")

        config = MetricsConfig.from_yaml(path)

        assert config.retention_days == 14
        assert config.default_time_range == "7d"
        assert config.sweep_interval_seconds == 300

    def test_from_yaml_missing_file_falls_back(self, tmp_path):
        config = MetricsConfig.from_yaml(tmp_path / "absent.yaml")
        assert config.to_dict() == MetricsConfig().to_dict()

    def test_global_config(self, monkeypatch):
        monkeypatch.delenv("METRICS_RETENTION_DAYS", raising=False)
        custom = MetricsConfig(retention_days=3)
        set_config(custom)
        try:
            assert get_config() is custom
        finally:
            set_config(None)
        assert get_config().retention_days == 30
        set_config(None)
