"""
Embed component port definitions.
"""

from __future__ import annotations

from typing import Protocol


class RulesPort(Protocol):
    """Port for accessing embed rules configuration."""

    def get_iframe_defaults(self) -> dict[str, str | bool]:
        """Get iframe attribute defaults (allowfullscreen, allow, width, height, frameborder)."""
        ...
