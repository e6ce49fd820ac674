"""
Auth component - Authorization gate and admin login.

A single shared admin key is exchanged for a signed session token; the
gate admits requests presenting either.
"""

from .component import (
    BoundGate,
    SessionGate,
    keys_match,
    run,
    run_login,
    run_verify_session,
)
from .models import (
    Credentials,
    LoginInput,
    LoginOutput,
    VerifyOutput,
    VerifySessionInput,
)
from .ports import RateLimiterPort, SessionTokenPort, TimePort

__all__ = [
    # Entry points
    "run",
    "run_login",
    "run_verify_session",
    # Gate
    "BoundGate",
    "SessionGate",
    "keys_match",
    # Models
    "Credentials",
    "LoginInput",
    "LoginOutput",
    "VerifyOutput",
    "VerifySessionInput",
    # Ports
    "RateLimiterPort",
    "SessionTokenPort",
    "TimePort",
]
