from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from .entities import LockoutState
from .value_objects import lock_in_effect

if TYPE_CHECKING:
    from ..config.settings import AuthSettings


@dataclass(frozen=True, slots=True)
class LockoutPolicy:
    """
    Failed-attempt / lock state machine.

    UNLOCKED -> LOCKED once `max_attempts` consecutive failures are reached.
    A lock is only ever lifted by time passing; a successful login (which
    requires the lock to have elapsed) resets the counter.
    """

    max_attempts: int
    lock_duration: timedelta

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.lock_duration < timedelta(seconds=1):
            raise ValueError("lock_duration must be at least one second")

    @classmethod
    def from_settings(cls, settings: "AuthSettings") -> "LockoutPolicy":
        return cls(
            max_attempts=settings.max_login_attempts,
            lock_duration=timedelta(seconds=settings.lockout_duration_seconds),
        )

    def is_locked(self, state: LockoutState, now: datetime) -> bool:
        return lock_in_effect(state.locked_until, now)

    def on_failed_attempt(self, state: LockoutState, now: datetime) -> LockoutState:
        attempts = state.failed_attempts + 1
        if attempts >= self.max_attempts:
            return LockoutState(attempts, now + self.lock_duration)
        return LockoutState(attempts, state.locked_until)

    def on_successful_attempt(self, state: LockoutState) -> LockoutState:
        return LockoutState(0, None)
