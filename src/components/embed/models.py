"""
Embed component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass

# --- Input Models ---


@dataclass(frozen=True)
class NormalizeInput:
    """Input for normalizing stored or authored post HTML."""

    html: str


# --- Output Models ---


@dataclass(frozen=True)
class NormalizeOutput:
    """Normalized HTML plus counts of what was touched."""

    html: str
    code_blocks: int = 0
    iframes: int = 0
    success: bool = True
