from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Credentials:
    """Whatever the caller presented: a session token and/or the admin key."""

    session_token: str | None = None
    admin_key: str | None = None


@dataclass
class LoginInput:
    admin_key: str | None
    client_id: str


@dataclass
class VerifySessionInput:
    credentials: Credentials


@dataclass
class LoginOutput:
    token: str
    expires_at: datetime
    success: bool = True


@dataclass
class VerifyOutput:
    authenticated: bool
    success: bool = True
