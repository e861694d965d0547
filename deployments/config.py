"""
Deployments - Configuration.

Loaded from defaults, environment variables or the
`deployments` section of a YAML file.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional
import logging

import yaml

from core.constants import DEFAULT_LOG_LIMIT, MAX_LOG_ENTRIES
from core.exceptions import ConfigurationError


logger = logging.getLogger(__name__)


@dataclass
class DeploymentConfig:
    """Settings for deployment state machines."""
    max_log_entries: int = MAX_LOG_ENTRIES
    default_log_limit: int = DEFAULT_LOG_LIMIT

    def __post_init__(self) -> None:
        if self.max_log_entries <= 0:
            raise ConfigurationError(
                "max_log_entries must be positive",
                config_key="max_log_entries",
                actual_value=self.max_log_entries,
            )
        if self.default_log_limit <= 0:
            raise ConfigurationError(
                "default_log_limit must be positive",
                config_key="default_log_limit",
                actual_value=self.default_log_limit,
            )

    @classmethod
    def from_env(cls) -> "DeploymentConfig":
        """
        Load configuration from environment variables.

        Environment variables:
        - DEPLOYMENT_MAX_LOG_ENTRIES
        - DEPLOYMENT_DEFAULT_LOG_LIMIT
        """
        kwargs: Dict[str, Any] = {}
        if os.getenv("DEPLOYMENT_MAX_LOG_ENTRIES"):
            kwargs["max_log_entries"] = int(os.getenv("DEPLOYMENT_MAX_LOG_ENTRIES"))
        if os.getenv("DEPLOYMENT_DEFAULT_LOG_LIMIT"):
            kwargs["default_log_limit"] = int(os.getenv("DEPLOYMENT_DEFAULT_LOG_LIMIT"))
        return cls(**kwargs)

    @classmethod
    def from_yaml(cls, path: Path) -> "DeploymentConfig":
        """Load configuration from YAML file."""
        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f) or {}
            section = data.get("deployments", {})
            return cls(
                max_log_entries=section.get("max_log_entries", MAX_LOG_ENTRIES),
                default_log_limit=section.get("default_log_limit", DEFAULT_LOG_LIMIT),
            )
        except (OSError, yaml.YAMLError, AttributeError) as e:
            logger.warning(f"Failed to load YAML config from {path}: {e}")
            return cls()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "max_log_entries": self.max_log_entries,
            "default_log_limit": self.default_log_limit,
        }


_default_config: Optional[DeploymentConfig] = None


def get_config() -> DeploymentConfig:
    """Get the global deployment configuration."""
    global _default_config
    if _default_config is None:
        _default_config = DeploymentConfig.from_env()
    return _default_config


def set_config(config: Optional[DeploymentConfig]) -> None:
    """Set (or clear, with None) the global deployment configuration."""
    global _default_config
    _default_config = config
