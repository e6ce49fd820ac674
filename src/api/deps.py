import logging
import os
from functools import lru_cache
from pathlib import Path

from fastapi import Depends, Request

from src.adapters.auth.crypto import JWTSessionTokens
from src.adapters.clock import SystemClock
from src.adapters.fs.post_store import FileSystemPostStore
from src.adapters.github.contents_client import GitHubContentsClient
from src.adapters.github.post_store import GitHubPostStore
from src.app_shell.rate_limit import LoginRateLimiter
from src.components.auth import BoundGate, Credentials, SessionGate
from src.domain.errors import StoreConfigError
from src.rules.loader import load_rules
from src.rules.models import Rules

logger = logging.getLogger(__name__)

PostStore = FileSystemPostStore | GitHubPostStore


# --- Settings ---
class Settings:
    def __init__(self) -> None:
        self.base_dir = Path(os.getcwd())
        self.rules_path = Path(os.environ.get("BLOG_RULES_PATH", self.base_dir / "blog_rules.yaml"))
        data_dir = os.environ.get("BLOG_DATA_DIR")
        self.data_dir = Path(data_dir) if data_dir else None
        self.store_backend = os.environ.get("BLOG_STORE_BACKEND") or None
        self.github_token = os.environ.get("GITHUB_TOKEN") or None
        self.github_owner = os.environ.get("GITHUB_OWNER") or None
        self.github_repo = os.environ.get("GITHUB_REPO") or None
        self.github_branch = os.environ.get("GITHUB_BRANCH") or None
        self.admin_secret = os.environ.get("ADMIN_SECRET_KEY") or None
        self.production = os.environ.get("BLOG_ENV", "development") == "production"


@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Rules ---
@lru_cache
def get_rules() -> Rules:
    return load_rules(get_settings().rules_path)


# --- Post store ---
def resolve_backend(settings: Settings, rules: Rules) -> str:
    backend = settings.store_backend or rules.content.store.backend
    if backend not in ("local", "github"):
        raise StoreConfigError(f"Unknown store backend: {backend}")
    return backend


def resolve_data_dir(settings: Settings, rules: Rules) -> Path:
    return settings.data_dir or settings.base_dir / rules.content.collection_path


def build_post_store(settings: Settings, rules: Rules) -> PostStore:
    """Construct the configured store. Called once at startup."""
    if resolve_backend(settings, rules) == "local":
        return FileSystemPostStore(resolve_data_dir(settings, rules))

    github = rules.content.store.github
    owner = settings.github_owner or (github.owner if github else None)
    repo = settings.github_repo or (github.repo if github else None)
    if not owner or not repo:
        raise StoreConfigError("GitHub owner and repo must be configured for the github backend")

    client = GitHubContentsClient(
        owner,
        repo,
        settings.github_token,
        branch=settings.github_branch or (github.branch if github else None),
        base_url=github.api_base_url if github else "https://api.github.com",
        timeout=github.timeout_seconds if github else 10.0,
    )
    return GitHubPostStore(client, rules.content.collection_path)


def get_post_store(request: Request) -> PostStore:
    store: PostStore = request.app.state.post_store
    return store


# --- Rate limiting ---
def get_rate_limiter(request: Request) -> LoginRateLimiter:
    limiter: LoginRateLimiter = request.app.state.rate_limiter
    return limiter


def get_client_id(request: Request) -> str:
    """Best-effort client address; first hop of X-Forwarded-For when proxied."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    return request.client.host if request.client else "unknown"


# --- Embeds ---
class EmbedRulesAdapter:
    """Adapter to map generic Rules to Embed component RulesPort."""

    def __init__(self, rules: Rules):
        self._rules = rules.embeds

    def get_iframe_defaults(self) -> dict[str, str | bool]:
        return dict(self._rules.iframe_defaults.model_dump())


def get_embed_rules(rules: Rules = Depends(get_rules)) -> EmbedRulesAdapter:
    return EmbedRulesAdapter(rules)


# --- Auth ---
def get_session_tokens(settings: Settings = Depends(get_settings)) -> JWTSessionTokens:
    return JWTSessionTokens(settings.admin_secret or "")


def get_session_gate(
    settings: Settings = Depends(get_settings),
    tokens: JWTSessionTokens = Depends(get_session_tokens),
) -> SessionGate:
    return SessionGate(settings.admin_secret, tokens)


def get_credentials(request: Request, rules: Rules = Depends(get_rules)) -> Credentials:
    """Collect the session token (cookie or bearer header) and admin key."""
    token = request.cookies.get(rules.auth.cookie_name)
    authorization = request.headers.get("authorization", "")
    scheme, _, value = authorization.partition(" ")
    if scheme.lower() == "bearer" and value.strip():
        token = value.strip()
    return Credentials(
        session_token=token or None,
        admin_key=request.headers.get(rules.auth.admin_key_header) or None,
    )


def get_auth_gate(
    gate: SessionGate = Depends(get_session_gate),
    credentials: Credentials = Depends(get_credentials),
) -> BoundGate:
    return gate.bind(credentials)


# Time adapter for deterministic time operations
_clock_instance: SystemClock | None = None


def get_clock() -> SystemClock:
    """Get clock singleton."""
    global _clock_instance
    if _clock_instance is None:
        _clock_instance = SystemClock()
    return _clock_instance
