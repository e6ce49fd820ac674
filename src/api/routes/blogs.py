from fastapi import APIRouter, Depends, status

from src.adapters.clock import SystemClock
from src.api.deps import (
    EmbedRulesAdapter,
    PostStore,
    get_auth_gate,
    get_clock,
    get_embed_rules,
    get_post_store,
    get_rules,
)
from src.api.schemas import (
    BlogCreateRequest,
    BlogEnvelope,
    BlogListEnvelope,
    BlogPostResponse,
    BlogUpdateRequest,
    MessageResponse,
    RenderedBlogEnvelope,
)
from src.components.auth import BoundGate
from src.components.posts import (
    CreatePostInput,
    DeletePostInput,
    GetPostInput,
    ListPostsInput,
    RenderPostInput,
    UpdatePostInput,
    run_create,
    run_delete,
    run_get,
    run_list,
    run_render,
    run_update,
)
from src.domain.entities import BlogLink
from src.rules.models import Rules

router = APIRouter()


@router.get("", response_model=BlogListEnvelope, response_model_exclude_none=True)
def list_blogs(store: PostStore = Depends(get_post_store)) -> BlogListEnvelope:
    """List all blog posts, newest first (public)."""
    out = run_list(ListPostsInput(), store)
    return BlogListEnvelope(data=[BlogPostResponse.from_post(p) for p in out.posts])


@router.post(
    "",
    response_model=BlogEnvelope,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
def create_blog(
    req: BlogCreateRequest,
    store: PostStore = Depends(get_post_store),
    clock: SystemClock = Depends(get_clock),
    gate: BoundGate = Depends(get_auth_gate),
    rules: Rules = Depends(get_rules),
) -> BlogEnvelope:
    """Create a blog post (admin only)."""
    inp = CreatePostInput(
        title=req.title,
        description=req.description,
        thumbnail=req.thumbnail,
        links=[BlogLink(text=link.text, url=link.url) for link in req.links or []],
    )
    out = run_create(inp, store, clock, gate, title_max=rules.content.title_max)
    return BlogEnvelope(data=BlogPostResponse.from_post(out.post))


@router.get("/{post_id}", response_model=BlogEnvelope, response_model_exclude_none=True)
def get_blog(post_id: str, store: PostStore = Depends(get_post_store)) -> BlogEnvelope:
    """Fetch a single blog post (public)."""
    out = run_get(GetPostInput(post_id=post_id), store)
    return BlogEnvelope(data=BlogPostResponse.from_post(out.post))


@router.get(
    "/{post_id}/rendered",
    response_model=RenderedBlogEnvelope,
    response_model_exclude_none=True,
)
def get_rendered_blog(
    post_id: str,
    store: PostStore = Depends(get_post_store),
    embed_rules: EmbedRulesAdapter = Depends(get_embed_rules),
) -> RenderedBlogEnvelope:
    """Fetch a post with its description normalized for direct injection."""
    out = run_render(RenderPostInput(post_id=post_id), store, rules=embed_rules)
    return RenderedBlogEnvelope(
        data=BlogPostResponse.from_post(out.post),
        code_blocks=out.code_blocks,
        iframes=out.iframes,
    )


@router.put("/{post_id}", response_model=BlogEnvelope, response_model_exclude_none=True)
def update_blog(
    post_id: str,
    req: BlogUpdateRequest,
    store: PostStore = Depends(get_post_store),
    clock: SystemClock = Depends(get_clock),
    gate: BoundGate = Depends(get_auth_gate),
    rules: Rules = Depends(get_rules),
) -> BlogEnvelope:
    """Update the fields present in the body (admin only)."""
    inp = UpdatePostInput(post_id=post_id, updates=req.to_updates())
    out = run_update(inp, store, clock, gate, title_max=rules.content.title_max)
    return BlogEnvelope(data=BlogPostResponse.from_post(out.post))


@router.delete("/{post_id}", response_model=MessageResponse)
def delete_blog(
    post_id: str,
    store: PostStore = Depends(get_post_store),
    gate: BoundGate = Depends(get_auth_gate),
) -> MessageResponse:
    """Delete a blog post (admin only)."""
    run_delete(DeletePostInput(post_id=post_id), store, gate)
    return MessageResponse(message="Blog post deleted")
