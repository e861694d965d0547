"""
Health Probe - Configuration.

Loaded from defaults, environment variables or the `probe`
section of a YAML file.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional
import logging

import yaml

from core.constants import BACKEND_HEALTH_PATH, PROBE_TIMEOUT_MS, SYSTEM_NAME, SYSTEM_VERSION
from core.exceptions import ConfigurationError


logger = logging.getLogger(__name__)


@dataclass
class ProbeConfig:
    """Settings for HealthProbe and its HTTP client."""
    timeout_ms: int = PROBE_TIMEOUT_MS
    backend_health_path: str = BACKEND_HEALTH_PATH
    user_agent: str = f"{SYSTEM_NAME}/{SYSTEM_VERSION}"

    def __post_init__(self) -> None:
        if self.timeout_ms <= 0:
            raise ConfigurationError(
                "timeout_ms must be positive",
                config_key="timeout_ms",
                actual_value=self.timeout_ms,
            )
        if not self.backend_health_path.startswith("/"):
            self.backend_health_path = "/" + self.backend_health_path

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000

    @classmethod
    def from_env(cls) -> "ProbeConfig":
        """
        Load configuration from environment variables.

        Environment variables:
        - PROBE_TIMEOUT_MS
        - PROBE_BACKEND_HEALTH_PATH
        - PROBE_USER_AGENT
        """
        kwargs: Dict[str, Any] = {}
        if os.getenv("PROBE_TIMEOUT_MS"):
            kwargs["timeout_ms"] = int(os.getenv("PROBE_TIMEOUT_MS"))
        if os.getenv("PROBE_BACKEND_HEALTH_PATH"):
            kwargs["backend_health_path"] = os.getenv("PROBE_BACKEND_HEALTH_PATH")
        if os.getenv("PROBE_USER_AGENT"):
            kwargs["user_agent"] = os.getenv("PROBE_USER_AGENT")
        return cls(**kwargs)

    @classmethod
    def from_yaml(cls, path: Path) -> "ProbeConfig":
        """Load configuration from YAML file."""
        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f) or {}
            section = data.get("probe", {})
            return cls(
                timeout_ms=section.get("timeout_ms", PROBE_TIMEOUT_MS),
                backend_health_path=section.get("backend_health_path", BACKEND_HEALTH_PATH),
                user_agent=section.get("user_agent", f"{SYSTEM_NAME}/{SYSTEM_VERSION}"),
            )
        except (OSError, yaml.YAMLError, AttributeError) as e:
            logger.warning(f"Failed to load YAML config from {path}: {e}")
            return cls()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timeout_ms": self.timeout_ms,
            "backend_health_path": self.backend_health_path,
            "user_agent": self.user_agent,
        }


_default_config: Optional[ProbeConfig] = None


def get_config() -> ProbeConfig:
    """Get the global probe configuration."""
    global _default_config
    if _default_config is None:
        _default_config = ProbeConfig.from_env()
    return _default_config


def set_config(config: Optional[ProbeConfig]) -> None:
    """Set (or clear, with None) the global probe configuration."""
    global _default_config
    _default_config = config
