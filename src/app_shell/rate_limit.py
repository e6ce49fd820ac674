import math
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from threading import Lock
from typing import Protocol

from src.domain.entities import RateLimitDecision
from src.rules.models import RateLimitRules


class TimePort(Protocol):
    """Protocol for time operations (enables testing with deterministic time)."""

    def now_utc(self) -> datetime:
        """Return current UTC time."""
        ...


class SystemTimeAdapter:
    """Production time adapter using system clock."""

    def now_utc(self) -> datetime:
        return datetime.now(UTC)


@dataclass
class _Window:
    count: int
    reset_at: datetime


class LoginRateLimiter:
    """
    Fixed-window attempt counter keyed by client identifier.

    The first attempt opens a window of `window_seconds`; at most
    `max_attempts` attempts are admitted until it closes. Denied attempts
    are not counted. One instance per application, created at startup.
    """

    DEFAULT_MAX_ATTEMPTS = 5

    def __init__(
        self,
        rules: RateLimitRules,
        time_port: TimePort | None = None,
    ):
        cfg = rules.login
        self.window = timedelta(seconds=cfg.window_seconds)
        self.max_attempts = (
            cfg.max_attempts if cfg.max_attempts is not None else self.DEFAULT_MAX_ATTEMPTS
        )
        self._time = time_port if time_port is not None else SystemTimeAdapter()
        self._windows: dict[str, _Window] = {}
        self._lock = Lock()

    def _purge_expired(self, now: datetime) -> None:
        expired = [key for key, w in self._windows.items() if w.reset_at <= now]
        for key in expired:
            del self._windows[key]

    def check(self, identifier: str) -> RateLimitDecision:
        """
        Record an attempt for identifier.

        Returns allowed=False with the seconds left in the window once
        max_attempts is reached.
        """
        if self.max_attempts <= 0:
            return RateLimitDecision(allowed=False, retry_after=int(self.window.total_seconds()))

        with self._lock:
            now = self._time.now_utc()
            self._purge_expired(now)

            window = self._windows.get(identifier)
            if window is None:
                self._windows[identifier] = _Window(count=1, reset_at=now + self.window)
                return RateLimitDecision(allowed=True)

            if window.count >= self.max_attempts:
                remaining = (window.reset_at - now).total_seconds()
                return RateLimitDecision(allowed=False, retry_after=max(1, math.ceil(remaining)))

            window.count += 1
            return RateLimitDecision(allowed=True)

    def reset(self, identifier: str) -> None:
        with self._lock:
            self._windows.pop(identifier, None)

    def close(self) -> None:
        """Drop all tracked windows. Called on application shutdown."""
        with self._lock:
            self._windows.clear()

    def tracked(self) -> int:
        with self._lock:
            return len(self._windows)
