from typing import Literal

from pydantic import BaseModel, Field

StoreBackend = Literal["local", "github"]


class ProjectRules(BaseModel):
    slug: str
    rules_version: str

class GitHubStoreRules(BaseModel):
    owner: str
    repo: str
    branch: str | None = None
    api_base_url: str = "https://api.github.com"
    timeout_seconds: float = 10.0

class StoreRules(BaseModel):
    backend: StoreBackend = "local"
    github: GitHubStoreRules | None = None

class ContentRules(BaseModel):
    collection_path: str = "data/blogs"
    title_max: int = 300
    store: StoreRules = Field(default_factory=StoreRules)

class IframeDefaults(BaseModel):
    allowfullscreen: bool = True
    allow: str = (
        "accelerometer; autoplay; clipboard-write; encrypted-media; gyroscope; picture-in-picture"
    )
    width: str = "100%"
    height: str = "400"
    frameborder: str = "0"

class EmbedsRules(BaseModel):
    iframe_defaults: IframeDefaults = Field(default_factory=IframeDefaults)

class RateLimitWindow(BaseModel):
    window_seconds: int
    max_attempts: int | None = None

class RateLimitRules(BaseModel):
    login: RateLimitWindow

class AuthRules(BaseModel):
    session_ttl_minutes: int = 60 * 24
    cookie_name: str = "admin-session"
    admin_key_header: str = "x-admin-key"

class OpsRules(BaseModel):
    required_env: list[str] = Field(default_factory=list)

class Rules(BaseModel):
    project: ProjectRules
    content: ContentRules
    embeds: EmbedsRules = Field(default_factory=EmbedsRules)
    rate_limits: RateLimitRules
    auth: AuthRules = Field(default_factory=AuthRules)
    ops: OpsRules = Field(default_factory=OpsRules)
