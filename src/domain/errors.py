"""
Blog error taxonomy.

Lower layers (post stores) raise StoreError subclasses and PostNotFoundError;
components raise InvalidInputError (PostValidationError) and UnauthorizedError;
the HTTP shell maps each class to a status code.
"""

from __future__ import annotations


class BlogError(Exception):
    """Base class for blog errors."""


class InvalidInputError(BlogError):
    """A request field is missing or malformed."""

    def __init__(self, message: str, field: str | None = None) -> None:
        self.message = message
        self.field = field
        super().__init__(message)


class PostValidationError(InvalidInputError):
    """A post field is missing, blank or malformed."""


class PostNotFoundError(BlogError):
    """The referenced post id does not resolve in the store."""

    def __init__(self, post_id: str) -> None:
        self.post_id = post_id
        super().__init__(f"Blog post not found: {post_id}")


class UnauthorizedError(BlogError):
    """The authorization gate denied the request."""

    def __init__(self, message: str = "Unauthorized. Please login.") -> None:
        self.message = message
        super().__init__(message)


class RateLimitedError(BlogError):
    """Too many login attempts from one client."""

    def __init__(self, identifier: str, retry_after_seconds: int) -> None:
        self.identifier = identifier
        self.retry_after_seconds = retry_after_seconds
        super().__init__(
            f"Too many login attempts for {identifier}, retry after {retry_after_seconds}s"
        )


class StoreError(BlogError):
    """Base class for post store failures."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class StoreUnavailableError(StoreError):
    """The backing filesystem or remote API could not be reached."""


class StoreConflictError(StoreError):
    """A conditional write lost against a newer version of the document."""

    def __init__(self, path: str, message: str = "Version conflict") -> None:
        self.path = path
        super().__init__(f"{message}: {path}", status_code=409)


class StoreConfigError(StoreError):
    """The store is missing required configuration (e.g. an API token)."""
