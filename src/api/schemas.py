from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from src.domain.entities import BlogPost


# --- Blog Posts ---
class BlogLinkModel(BaseModel):
    text: str
    url: str


class BlogCreateRequest(BaseModel):
    # Blank values are rejected by the posts component with a field name
    title: str = ""
    description: str = ""
    thumbnail: str | None = None
    links: list[BlogLinkModel] | None = None


class BlogUpdateRequest(BaseModel):
    """
    Partial update; only fields present in the body are applied.

    Unknown keys are passed through so the posts component can reject them
    by name; id and timestamps are dropped there.
    """

    model_config = ConfigDict(extra="allow")

    title: str | None = None
    description: str | None = None
    thumbnail: str | None = None
    links: list[BlogLinkModel] | None = None

    def to_updates(self) -> dict[str, Any]:
        updates = self.model_dump(exclude_unset=True)
        updates.update(self.model_extra or {})
        return updates


class BlogPostResponse(BaseModel):
    id: str
    title: str
    description: str
    thumbnail: str | None = None
    links: list[BlogLinkModel] = []
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_post(cls, post: BlogPost) -> "BlogPostResponse":
        return cls.model_validate(post.model_dump())


# --- Envelopes ---
class BlogEnvelope(BaseModel):
    success: bool = True
    data: BlogPostResponse


class BlogListEnvelope(BaseModel):
    success: bool = True
    data: list[BlogPostResponse]


class RenderedBlogEnvelope(BaseModel):
    success: bool = True
    data: BlogPostResponse
    code_blocks: int = 0
    iframes: int = 0


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    field: str | None = None
    retry_after: int | None = Field(default=None, serialization_alias="retryAfter")


# --- Auth ---
class LoginRequest(BaseModel):
    admin_key: str | None = Field(default=None, alias="adminKey")


class LoginResponse(BaseModel):
    success: bool = True
    message: str = "Login successful"
    token: str
    expires_at: datetime


class VerifyResponse(BaseModel):
    success: bool = True
    authenticated: bool
