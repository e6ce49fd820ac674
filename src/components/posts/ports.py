"""Posts component port definitions - protocols for dependencies."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from src.ports.post_store import PostStorePort


class TimePort(Protocol):
    """Port for time operations - enables deterministic testing."""

    def now_utc(self) -> datetime:
        """Get current UTC time."""
        ...


class AuthGatePort(Protocol):
    """Authorization decision for the request being served."""

    def is_authorized(self) -> bool: ...


__all__ = ["AuthGatePort", "PostStorePort", "TimePort"]
