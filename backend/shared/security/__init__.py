"""
Security module: session token signing and decoding.
"""

from shared.security.auth import (
    InvalidSessionToken,
    SessionClaims,
    sign_jwt,
    sign_session_token,
    verify_jwt,
    get_bearer_token,
    current_session,
)

__all__ = [
    "InvalidSessionToken",
    "SessionClaims",
    "sign_jwt",
    "sign_session_token",
    "verify_jwt",
    "get_bearer_token",
    "current_session",
]
