"""
Access Guard - Configuration.
"""

import os
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Any, Dict, Optional
import logging

import yaml

from core.constants import LOCKOUT_DURATION_SECONDS, LOCKOUT_MAX_ATTEMPTS
from core.exceptions import ConfigurationError


logger = logging.getLogger(__name__)


@dataclass
class LockoutConfig:
    """Failed-login lockout policy."""
    max_attempts: int = LOCKOUT_MAX_ATTEMPTS
    lock_duration_seconds: int = LOCKOUT_DURATION_SECONDS

    def __post_init__(self) -> None:
        if self.max_attempts <= 0:
            raise ConfigurationError(
                "max_attempts must be positive",
                config_key="max_attempts",
                actual_value=self.max_attempts,
            )
        if self.lock_duration_seconds <= 0:
            raise ConfigurationError(
                "lock_duration_seconds must be positive",
                config_key="lock_duration_seconds",
                actual_value=self.lock_duration_seconds,
            )

    @property
    def lock_duration(self) -> timedelta:
        return timedelta(seconds=self.lock_duration_seconds)

    @classmethod
    def from_env(cls) -> "LockoutConfig":
        """
        Load configuration from environment variables.

        Environment variables:
        - LOCKOUT_MAX_ATTEMPTS
        - LOCKOUT_DURATION_SECONDS
        """
        kwargs: Dict[str, Any] = {}
        if os.getenv("LOCKOUT_MAX_ATTEMPTS"):
            kwargs["max_attempts"] = int(os.getenv("LOCKOUT_MAX_ATTEMPTS"))
        if os.getenv("LOCKOUT_DURATION_SECONDS"):
            kwargs["lock_duration_seconds"] = int(os.getenv("LOCKOUT_DURATION_SECONDS"))
        return cls(**kwargs)

    @classmethod
    def from_yaml(cls, path: Path) -> "LockoutConfig":
        """Load configuration from the `lockout` section of a YAML file."""
        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f) or {}
            section = data.get("lockout", {})
            return cls(
                max_attempts=section.get("max_attempts", LOCKOUT_MAX_ATTEMPTS),
                lock_duration_seconds=section.get(
                    "lock_duration_seconds", LOCKOUT_DURATION_SECONDS
                ),
            )
        except (OSError, yaml.YAMLError, AttributeError) as e:
            logger.warning(f"Failed to load YAML config from {path}: {e}")
            return cls()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "max_attempts": self.max_attempts,
            "lock_duration_seconds": self.lock_duration_seconds,
        }


_default_config: Optional[LockoutConfig] = None


def get_config() -> LockoutConfig:
    global _default_config
    if _default_config is None:
        _default_config = LockoutConfig.from_env()
    return _default_config


def set_config(config: Optional[LockoutConfig]) -> None:
    global _default_config
    _default_config = config
