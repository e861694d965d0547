"""
Access Guard Module.

Failed-login lockout: 5 failures lock a principal for 2 hours
(both configurable).
"""

from .config import LockoutConfig, get_config, set_config
from .lockout import LockoutGuard, LockState, LoginAttemptState


__all__ = [
    "LockoutConfig",
    "get_config",
    "set_config",
    "LockoutGuard",
    "LockState",
    "LoginAttemptState",
]
