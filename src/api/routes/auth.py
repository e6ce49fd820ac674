from fastapi import APIRouter, Depends, Response

from src.adapters.auth.crypto import JWTSessionTokens
from src.adapters.clock import SystemClock
from src.api.deps import (
    Settings,
    get_client_id,
    get_clock,
    get_credentials,
    get_rate_limiter,
    get_rules,
    get_session_gate,
    get_session_tokens,
    get_settings,
)
from src.api.schemas import LoginRequest, LoginResponse, MessageResponse, VerifyResponse
from src.app_shell.rate_limit import LoginRateLimiter
from src.components.auth import (
    Credentials,
    LoginInput,
    SessionGate,
    VerifySessionInput,
    run_login,
    run_verify_session,
)
from src.rules.models import Rules

router = APIRouter()


@router.post("/login", response_model=LoginResponse)
def login(
    req: LoginRequest,
    response: Response,
    client_id: str = Depends(get_client_id),
    limiter: LoginRateLimiter = Depends(get_rate_limiter),
    tokens: JWTSessionTokens = Depends(get_session_tokens),
    clock: SystemClock = Depends(get_clock),
    settings: Settings = Depends(get_settings),
    rules: Rules = Depends(get_rules),
) -> LoginResponse:
    """Exchange the admin key for a session cookie and bearer token."""
    ttl_minutes = rules.auth.session_ttl_minutes
    out = run_login(
        LoginInput(admin_key=req.admin_key, client_id=client_id),
        limiter,
        tokens,
        clock,
        admin_secret=settings.admin_secret,
        ttl_minutes=ttl_minutes,
    )

    # Set HttpOnly Cookie
    response.set_cookie(
        key=rules.auth.cookie_name,
        value=out.token,
        httponly=True,
        max_age=ttl_minutes * 60,
        samesite="strict",
        secure=settings.production,
        path="/",
    )
    return LoginResponse(token=out.token, expires_at=out.expires_at)


@router.get("/verify", response_model=VerifyResponse)
def verify(
    credentials: Credentials = Depends(get_credentials),
    gate: SessionGate = Depends(get_session_gate),
) -> VerifyResponse:
    """Report whether the caller is authenticated."""
    out = run_verify_session(VerifySessionInput(credentials=credentials), gate)
    return VerifyResponse(authenticated=out.authenticated)


@router.post("/logout", response_model=MessageResponse)
def logout(response: Response, rules: Rules = Depends(get_rules)) -> MessageResponse:
    """Log out by clearing the session cookie."""
    response.delete_cookie(key=rules.auth.cookie_name, path="/")
    return MessageResponse(message="Logged out")
