"""
Tests for ProbeConfig.
"""

import pytest

from core.exceptions import ConfigurationError
from health_probe.config import ProbeConfig


class TestProbeConfig:
    """Tests for ProbeConfig."""

    def test_defaults(self):
        config = ProbeConfig()
        assert config.timeout_ms == 5000
        assert config.timeout_seconds == 5.0
        assert config.backend_health_path == "/health"
        assert config.user_agent.startswith("deployment-monitor/")

    def test_health_path_gets_leading_slash(self):
        assert ProbeConfig(backend_health_path="api/health").backend_health_path == "/api/health"

    def test_rejects_non_positive_timeout(self):
        with pytest.raises(ConfigurationError):
            ProbeConfig(timeout_ms=0)

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("PROBE_TIMEOUT_MS", "1500")
        monkeypatch.setenv("PROBE_BACKEND_HEALTH_PATH", "/api/health")

        config = ProbeConfig.from_env()

        assert config.timeout_ms == 1500
        assert config.backend_health_path == "/api/health"

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "monitor.yaml"
        path.write_text("probe:\n  timeout_ms: 750\n")

        config = ProbeConfig.from_yaml(path)

        assert config.timeout_ms == 750
        assert config.backend_health_path == "/health"

    def test_from_invalid_yaml_falls_back(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("probe: [unclosed\n")

        assert ProbeConfig.from_yaml(path).timeout_ms == 5000
