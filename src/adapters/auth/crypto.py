from datetime import UTC, datetime, timedelta
from typing import Any, cast

from jose import jwt

ALGORITHM = "HS256"
SESSION_TTL_MINUTES = 60 * 24  # 24 hours


class JWTSessionTokens:
    """
    Admin session tokens as HS256 JWTs.

    A token carries only `authenticated: true` plus iat/exp; there is no
    server-side session record, so logging out just drops the cookie.
    """

    def __init__(self, secret_key: str) -> None:
        self._secret_key = secret_key

    def create_token(
        self, ttl_minutes: int = SESSION_TTL_MINUTES, now_utc: datetime | None = None
    ) -> str:
        current_time = now_utc if now_utc is not None else datetime.now(UTC)
        claims = {
            "authenticated": True,
            "iat": current_time,
            "exp": current_time + timedelta(minutes=ttl_minutes),
        }
        encoded_jwt: str = jwt.encode(claims, self._secret_key, algorithm=ALGORITHM)
        return encoded_jwt

    def decode(self, token: str) -> dict[str, Any] | None:
        """Verified claims, or None for a bad signature or expired token."""
        if not self._secret_key:
            return None
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[ALGORITHM])
            return cast(dict[str, Any], payload)
        except jwt.JWTError:
            return None

    def validate_token(self, token: str) -> bool:
        payload = self.decode(token)
        return bool(payload and payload.get("authenticated") is True)
