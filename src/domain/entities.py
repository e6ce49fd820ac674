from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# --- Blog ---

class BlogLink(BaseModel):
    text: str
    url: str

class BlogPost(BaseModel):
    """A persisted blog post document, one JSON file per post."""

    id: str
    title: str
    description: str  # HTML from the rich-text editor
    thumbnail: str | None = None
    links: list[BlogLink] = Field(default_factory=list)  # display order
    created_at: datetime
    updated_at: datetime

    @field_validator("created_at", "updated_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        # Older documents were written without an offset
        return value if value.tzinfo is not None else value.replace(tzinfo=UTC)

    @model_validator(mode="after")
    def _check_timestamps(self) -> "BlogPost":
        if self.created_at > self.updated_at:
            raise ValueError("created_at must not be later than updated_at")
        return self

    def to_document(self) -> dict[str, Any]:
        """JSON-ready dict; an absent thumbnail is omitted."""
        return self.model_dump(mode="json", exclude_none=True)

    @classmethod
    def from_document(cls, data: dict[str, Any]) -> "BlogPost":
        return cls.model_validate(data)


# --- Rate limiting ---

class RateLimitDecision(BaseModel):
    """Outcome of one rate-limit check."""

    model_config = ConfigDict(frozen=True)

    allowed: bool
    retry_after: int = 0  # seconds until the window resets; 0 when allowed
