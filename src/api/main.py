import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.api.deps import build_post_store, get_rules, get_settings, resolve_backend
from src.api.schemas import ErrorResponse
from src.app_shell.config import validate_ops_rules
from src.app_shell.rate_limit import LoginRateLimiter
from src.domain.errors import (
    InvalidInputError,
    PostNotFoundError,
    RateLimitedError,
    StoreConfigError,
    StoreConflictError,
    StoreError,
    StoreUnavailableError,
    UnauthorizedError,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    settings = get_settings()

    # Load rules and validate on startup (fail-fast)
    rules = get_rules()
    backend = resolve_backend(settings, rules)
    validate_ops_rules(rules, settings.data_dir or settings.base_dir, backend)
    logger.info("Rules loaded from %s", settings.rules_path)

    app.state.post_store = build_post_store(settings, rules)
    app.state.rate_limiter = LoginRateLimiter(rules.rate_limits)
    logger.info("Blog post store ready (backend=%s)", backend)

    yield

    app.state.rate_limiter.close()
    app.state.post_store.close()


app = FastAPI(
    title="Portfolio Blog API",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)


# --- Error mapping ---
def _error(
    status_code: int,
    message: str,
    field: str | None = None,
    retry_after: int | None = None,
) -> JSONResponse:
    body = ErrorResponse(error=message, field=field, retry_after=retry_after)
    headers = {"Retry-After": str(retry_after)} if retry_after is not None else None
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(by_alias=True, exclude_none=True),
        headers=headers,
    )


@app.exception_handler(InvalidInputError)
async def invalid_input_handler(request: Request, exc: InvalidInputError) -> JSONResponse:
    return _error(status.HTTP_400_BAD_REQUEST, exc.message, field=exc.field)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    loc = [str(part) for part in first.get("loc", ()) if part != "body"]
    field = loc[-1] if loc else None
    return _error(status.HTTP_400_BAD_REQUEST, str(first.get("msg", "Invalid request")), field)


@app.exception_handler(UnauthorizedError)
async def unauthorized_handler(request: Request, exc: UnauthorizedError) -> JSONResponse:
    return _error(status.HTTP_401_UNAUTHORIZED, exc.message)


@app.exception_handler(PostNotFoundError)
async def not_found_handler(request: Request, exc: PostNotFoundError) -> JSONResponse:
    return _error(status.HTTP_404_NOT_FOUND, "Blog post not found")


@app.exception_handler(RateLimitedError)
async def rate_limited_handler(request: Request, exc: RateLimitedError) -> JSONResponse:
    return _error(
        status.HTTP_429_TOO_MANY_REQUESTS,
        "Too many login attempts. Please try again later.",
        retry_after=exc.retry_after_seconds,
    )


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    if isinstance(exc, StoreConflictError):
        return _error(status.HTTP_409_CONFLICT, exc.message)

    logger.error("Post store failure on %s %s: %s", request.method, request.url.path, exc)
    if isinstance(exc, StoreUnavailableError):
        return _error(status.HTTP_503_SERVICE_UNAVAILABLE, "Blog storage is unavailable")
    if isinstance(exc, StoreConfigError):
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Blog storage is misconfigured")
    return _error(status.HTTP_502_BAD_GATEWAY, "Blog storage error")


# --- Routers ---
from src.api.routes import auth, blogs  # noqa: E402

app.include_router(auth.router, prefix="/api/auth", tags=["Auth"])
app.include_router(blogs.router, prefix="/api/blogs", tags=["Blogs"])


# CORS (Allow Frontend)
origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
def health_check() -> dict[str, Any]:
    """Health check endpoint."""
    return {"status": "ok", "service": "blog-api"}
