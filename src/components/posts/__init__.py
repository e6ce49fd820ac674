"""
Posts component - blog post repository operations.

List, read, create, partially update and delete posts through a
PostStorePort, and render a post's description through the embed
normalizer.
"""

from .component import (
    run,
    run_create,
    run_delete,
    run_get,
    run_list,
    run_render,
    run_update,
)
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

__all__ = [
    # Entry points
    "run",
    "run_create",
    "run_delete",
    "run_get",
    "run_list",
    "run_render",
    "run_update",
    # Models
    "CreatePostInput",
    "DeletePostInput",
    "GetPostInput",
    "ListPostsInput",
    "PostListOutput",
    "PostOutput",
    "RenderPostInput",
    "RenderedPostOutput",
    "UpdatePostInput",
    # Ports
    "AuthGatePort",
    "PostStorePort",
    "TimePort",
]
