from typing import Protocol

from src.domain.entities import BlogPost


class PostStorePort(Protocol):
    def list(self) -> list[BlogPost]:
        """All posts, newest created_at first. Empty or missing collection -> []."""
        ...

    def get(self, post_id: str) -> BlogPost | None:
        """Post by id, or None. Raises StoreError on malformed content."""
        ...

    def put(self, post: BlogPost) -> BlogPost:
        """Create or overwrite the document keyed by post.id."""
        ...

    def remove(self, post_id: str) -> None:
        """Delete a post. Raises PostNotFoundError if absent."""
        ...

    def close(self) -> None:
        """Release connections held by the backend."""
        ...
