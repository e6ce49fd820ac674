"""
Posts component - CRUD over blog post documents.

Mutations consult the authorization gate before anything else; a denied
request never reaches the store. Store failures propagate unchanged.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any
from uuid import uuid4

from pydantic import ValidationError

from src.components.embed import RulesPort, run_normalize
from src.components.embed.models import NormalizeInput
from src.domain.entities import BlogPost
from src.domain.errors import PostNotFoundError, PostValidationError, UnauthorizedError

from .models import (
    CreatePostInput,
    DeletePostInput,
    GetPostInput,
    ListPostsInput,
    PostListOutput,
    PostOutput,
    RenderedPostOutput,
    RenderPostInput,
    UpdatePostInput,
)
from .ports import AuthGatePort, PostStorePort, TimePort

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset({"title", "description", "thumbnail", "links"})
# Accepted in an update payload but never applied
IMMUTABLE_FIELDS = frozenset({"id", "created_at", "updated_at"})


def _check_gate(gate: AuthGatePort) -> None:
    if not gate.is_authorized():
        raise UnauthorizedError()


def _require_text(value: Any, field: str, max_length: int | None = None) -> str:
    if not isinstance(value, str) or not value.strip():
        raise PostValidationError(f"{field.capitalize()} is required", field=field)
    if max_length is not None and len(value) > max_length:
        raise PostValidationError(
            f"{field.capitalize()} must be at most {max_length} characters", field=field
        )
    return value


def _build_post(data: dict[str, Any]) -> BlogPost:
    try:
        return BlogPost.model_validate(data)
    except ValidationError as e:
        first = e.errors()[0]
        field = str(first["loc"][0]) if first.get("loc") else None
        raise PostValidationError(f"Invalid blog post: {first['msg']}", field=field) from e


def _next_updated_at(now: datetime, previous: datetime) -> datetime:
    """Strictly later than the previous timestamp, even if the clock is not."""
    if now <= previous:
        return previous + timedelta(microseconds=1)
    return now


# --- Component Entry Points ---


def run_list(inp: ListPostsInput, store: PostStorePort) -> PostListOutput:
    return PostListOutput(posts=store.list())


def run_get(inp: GetPostInput, store: PostStorePort) -> PostOutput:
    post = store.get(inp.post_id)
    if post is None:
        raise PostNotFoundError(inp.post_id)
    return PostOutput(post=post)


def run_create(
    inp: CreatePostInput,
    store: PostStorePort,
    time: TimePort,
    gate: AuthGatePort,
    *,
    title_max: int | None = None,
) -> PostOutput:
    """
    Create a post with a fresh id and created_at == updated_at.

    Raises:
        UnauthorizedError: gate denied the request (no store calls made).
        PostValidationError: title or description blank, or links malformed.
    """
    _check_gate(gate)

    title = _require_text(inp.title, "title", title_max)
    description = _require_text(inp.description, "description")

    now = time.now_utc()
    post = _build_post(
        {
            "id": str(uuid4()),
            "title": title,
            "description": description,
            "thumbnail": inp.thumbnail,
            "links": list(inp.links or []),
            "created_at": now,
            "updated_at": now,
        }
    )
    stored = store.put(post)
    logger.info("Created blog post %s", stored.id)
    return PostOutput(post=stored)


def run_update(
    inp: UpdatePostInput,
    store: PostStorePort,
    time: TimePort,
    gate: AuthGatePort,
    *,
    title_max: int | None = None,
) -> PostOutput:
    """
    Merge the supplied fields into an existing post.

    id and created_at are never changed; updated_at always moves forward.
    """
    _check_gate(gate)

    changes: dict[str, Any] = {}
    for key, value in inp.updates.items():
        if key in IMMUTABLE_FIELDS:
            continue
        if key not in UPDATABLE_FIELDS:
            raise PostValidationError(f"Unknown field: {key}", field=key)
        changes[key] = value

    if "title" in changes:
        _require_text(changes["title"], "title", title_max)
    if "description" in changes:
        _require_text(changes["description"], "description")
    if "links" in changes and changes["links"] is None:
        changes["links"] = []

    existing = store.get(inp.post_id)
    if existing is None:
        raise PostNotFoundError(inp.post_id)

    data = existing.model_dump()
    data.update(changes)
    data["updated_at"] = _next_updated_at(time.now_utc(), existing.updated_at)

    stored = store.put(_build_post(data))
    logger.info("Updated blog post %s (%s)", stored.id, ", ".join(sorted(changes)) or "no fields")
    return PostOutput(post=stored)


def run_delete(inp: DeletePostInput, store: PostStorePort, gate: AuthGatePort) -> None:
    """Delete a post. Raises PostNotFoundError if it does not exist."""
    _check_gate(gate)
    store.remove(inp.post_id)
    logger.info("Deleted blog post %s", inp.post_id)


def run_render(
    inp: RenderPostInput,
    store: PostStorePort,
    *,
    rules: RulesPort | None = None,
) -> RenderedPostOutput:
    """Fetch a post with its description normalized for direct injection."""
    post = store.get(inp.post_id)
    if post is None:
        raise PostNotFoundError(inp.post_id)

    normalized = run_normalize(NormalizeInput(html=post.description), rules=rules)
    return RenderedPostOutput(
        post=post.model_copy(update={"description": normalized.html}),
        code_blocks=normalized.code_blocks,
        iframes=normalized.iframes,
    )


PostsInput = (
    ListPostsInput
    | GetPostInput
    | CreatePostInput
    | UpdatePostInput
    | DeletePostInput
    | RenderPostInput
)


def run(
    inp: PostsInput,
    *,
    store: PostStorePort,
    time: TimePort | None = None,
    gate: AuthGatePort | None = None,
    rules: RulesPort | None = None,
) -> PostOutput | PostListOutput | RenderedPostOutput | None:
    if isinstance(inp, ListPostsInput):
        return run_list(inp, store)

    elif isinstance(inp, GetPostInput):
        return run_get(inp, store)

    elif isinstance(inp, CreatePostInput):
        assert time and gate
        return run_create(inp, store, time, gate)

    elif isinstance(inp, UpdatePostInput):
        assert time and gate
        return run_update(inp, store, time, gate)

    elif isinstance(inp, DeletePostInput):
        assert gate
        return run_delete(inp, store, gate)

    elif isinstance(inp, RenderPostInput):
        return run_render(inp, store, rules=rules)

    else:
        raise ValueError(f"Unknown input type: {type(inp)}")
