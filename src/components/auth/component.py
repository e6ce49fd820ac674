import hmac
import logging
from datetime import timedelta

from src.domain.errors import InvalidInputError, RateLimitedError, UnauthorizedError

from .models import Credentials, LoginInput, LoginOutput, VerifyOutput, VerifySessionInput
from .ports import RateLimiterPort, SessionTokenPort, TimePort

logger = logging.getLogger(__name__)

DEFAULT_SESSION_TTL_MINUTES = 24 * 60


def keys_match(presented: str | None, secret: str | None) -> bool:
    """Constant-time comparison; an unset secret never matches."""
    if not presented or not secret:
        return False
    return hmac.compare_digest(presented.encode("utf-8"), secret.encode("utf-8"))


class SessionGate:
    """
    Admits a request carrying a valid session token or the admin key.

    Stateless: the decision depends only on the presented credentials.
    """

    def __init__(self, admin_secret: str | None, tokens: SessionTokenPort) -> None:
        self._admin_secret = admin_secret
        self._tokens = tokens

    def is_authorized(self, credentials: Credentials) -> bool:
        if credentials.session_token and self._tokens.validate_token(credentials.session_token):
            return True
        return keys_match(credentials.admin_key, self._admin_secret)

    def bind(self, credentials: Credentials) -> "BoundGate":
        return BoundGate(self, credentials)


class BoundGate:
    """A SessionGate decision for one request's credentials."""

    def __init__(self, gate: SessionGate, credentials: Credentials) -> None:
        self._gate = gate
        self._credentials = credentials

    def is_authorized(self) -> bool:
        return self._gate.is_authorized(self._credentials)


def run_login(
    inp: LoginInput,
    limiter: RateLimiterPort,
    tokens: SessionTokenPort,
    time: TimePort,
    *,
    admin_secret: str | None,
    ttl_minutes: int = DEFAULT_SESSION_TTL_MINUTES,
) -> LoginOutput:
    """
    Exchange the admin key for a session token.

    Raises:
        InvalidInputError: no key supplied (not counted as an attempt).
        RateLimitedError: too many attempts from this client.
        UnauthorizedError: wrong key.
    """
    if not inp.admin_key:
        raise InvalidInputError("Admin key is required", field="adminKey")

    decision = limiter.check(inp.client_id)
    if not decision.allowed:
        logger.warning("Login rate limit hit for %s", inp.client_id)
        raise RateLimitedError(inp.client_id, decision.retry_after)

    if not keys_match(inp.admin_key, admin_secret):
        logger.info("Rejected admin login from %s", inp.client_id)
        raise UnauthorizedError("Invalid admin key")

    limiter.reset(inp.client_id)
    now = time.now_utc()
    token = tokens.create_token(ttl_minutes, now_utc=now)
    return LoginOutput(token=token, expires_at=now + timedelta(minutes=ttl_minutes))


def run_verify_session(inp: VerifySessionInput, gate: SessionGate) -> VerifyOutput:
    return VerifyOutput(authenticated=gate.is_authorized(inp.credentials))


def run(
    inp: LoginInput | VerifySessionInput,
    *,
    limiter: RateLimiterPort | None = None,
    tokens: SessionTokenPort | None = None,
    time: TimePort | None = None,
    gate: SessionGate | None = None,
    admin_secret: str | None = None,
) -> LoginOutput | VerifyOutput:
    if isinstance(inp, LoginInput):
        assert limiter and tokens and time
        return run_login(inp, limiter, tokens, time, admin_secret=admin_secret)

    elif isinstance(inp, VerifySessionInput):
        assert gate
        return run_verify_session(inp, gate)

    else:
        raise ValueError(f"Unknown input type: {type(inp)}")
