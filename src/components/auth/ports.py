from datetime import datetime
from typing import Protocol

from src.domain.entities import RateLimitDecision


class SessionTokenPort(Protocol):
    def create_token(self, ttl_minutes: int, now_utc: datetime | None = None) -> str: ...
    def validate_token(self, token: str) -> bool: ...


class RateLimiterPort(Protocol):
    """Port for the login attempt limiter - one shared instance per app."""

    def check(self, identifier: str) -> RateLimitDecision:
        """Record an attempt and decide whether it may proceed."""
        ...

    def reset(self, identifier: str) -> None:
        """Forget attempts for identifier (after a successful login)."""
        ...


class TimePort(Protocol):
    """Port for time operations - enables deterministic testing."""

    def now_utc(self) -> datetime:
        """Get current UTC time."""
        ...
