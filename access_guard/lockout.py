"""
Access Guard - Failed Login Lockout.

============================================================
POLICY
============================================================
Per principal:

- a failure after an expired lock starts a fresh count of 1
- a failure while locked changes nothing
- otherwise the count increments; reaching max_attempts
  locks the principal for lock_duration
- a success clears count and lock

A principal is locked while locked_until > now.

============================================================
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional
import logging
import threading

from core.clock import ClockProtocol, resolve_clock
from core.exceptions import AccountLockedError

from .config import LockoutConfig, get_config


logger = logging.getLogger(__name__)


class LockState(str, Enum):
    NORMAL = "normal"
    LOCKED = "locked"


@dataclass(frozen=True)
class LoginAttemptState:
    """Failed-attempt counter of one principal."""
    attempt_count: int = 0
    locked_until: Optional[datetime] = None

    def lock_state(self, now: datetime) -> LockState:
        if self.locked_until is not None and self.locked_until > now:
            return LockState.LOCKED
        return LockState.NORMAL

    def to_dict(self) -> Dict[str, Any]:
        return {
            "attempt_count": self.attempt_count,
            "locked_until": self.locked_until.isoformat() if self.locked_until else None,
        }


class LockoutGuard:
    """
    Tracks failed authentication attempts and locks principals.

    Password checking happens elsewhere; callers report outcomes
    through record_failure / record_success.
    """

    def __init__(
        self,
        config: Optional[LockoutConfig] = None,
        clock: Optional[ClockProtocol] = None,
    ) -> None:
        self._config = config or get_config()
        self._clock = resolve_clock(clock)
        self._states: Dict[str, LoginAttemptState] = {}
        self._lock = threading.RLock()

    @property
    def config(self) -> LockoutConfig:
        return self._config

    def get_state(self, principal: str) -> LoginAttemptState:
        with self._lock:
            return self._states.get(principal, LoginAttemptState())

    def is_locked(self, principal: str) -> bool:
        return self.get_state(principal).lock_state(self._clock.now()) == LockState.LOCKED

    def ensure_not_locked(self, principal: str) -> None:
        """Raise AccountLockedError while the principal is locked."""
        state = self.get_state(principal)
        if state.lock_state(self._clock.now()) == LockState.LOCKED:
            logger.warning(f"Rejected attempt for locked principal {principal}")
            raise AccountLockedError(principal, state.locked_until)

    def remaining_attempts(self, principal: str) -> int:
        state = self.get_state(principal)
        if state.lock_state(self._clock.now()) == LockState.LOCKED:
            return 0
        if state.locked_until is not None:
            return self._config.max_attempts
        return max(self._config.max_attempts - state.attempt_count, 0)

    def record_failure(self, principal: str) -> LoginAttemptState:
        """Record one failed attempt and return the new state."""
        now = self._clock.now()
        with self._lock:
            state = self._states.get(principal, LoginAttemptState())

            if state.locked_until is not None and state.locked_until <= now:
                new_state = LoginAttemptState(attempt_count=1)
            elif state.locked_until is not None:
                return state
            else:
                count = state.attempt_count + 1
                locked_until = None
                if count >= self._config.max_attempts:
                    locked_until = now + self._config.lock_duration
                new_state = LoginAttemptState(attempt_count=count, locked_until=locked_until)

            self._states[principal] = new_state

        if new_state.locked_until is not None:
            logger.info(
                f"Principal {principal} locked until {new_state.locked_until.isoformat()} "
                f"after {new_state.attempt_count} failed attempts"
            )
        else:
            logger.debug(f"Failed attempt {new_state.attempt_count} for {principal}")
        return new_state

    def record_success(self, principal: str) -> None:
        with self._lock:
            self._states.pop(principal, None)
