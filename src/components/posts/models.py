"""
Posts component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from src.domain.entities import BlogLink, BlogPost

# --- Input Models ---


@dataclass(frozen=True)
class ListPostsInput:
    """List every post, newest first."""


@dataclass(frozen=True)
class GetPostInput:
    post_id: str


@dataclass(frozen=True)
class CreatePostInput:
    title: str
    description: str
    thumbnail: str | None = None
    links: list[BlogLink] | None = None


@dataclass(frozen=True)
class UpdatePostInput:
    """
    Partial update. Only keys present in `updates` are applied; an explicit
    None for thumbnail clears it.
    """

    post_id: str
    updates: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DeletePostInput:
    post_id: str


@dataclass(frozen=True)
class RenderPostInput:
    post_id: str


# --- Output Models ---


@dataclass(frozen=True)
class PostOutput:
    post: BlogPost
    success: bool = True


@dataclass(frozen=True)
class PostListOutput:
    posts: list[BlogPost]
    success: bool = True


@dataclass(frozen=True)
class RenderedPostOutput:
    """Post whose description has been normalized for display."""

    post: BlogPost
    code_blocks: int = 0
    iframes: int = 0
    success: bool = True
