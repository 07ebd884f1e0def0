"""
Session token utilities.

The admin session is a signed JWT that only identifies the caller:
``sub`` (user id), ``tenant_id`` and ``email``. Roles and permissions are
never read from the token; the authorization guard re-reads them from the
database on every request so that edits apply without logging out.
"""

from __future__ import annotations

import time
import uuid
from typing import Any, TypedDict

import jwt
from fastapi import Header

from shared.config.settings import (
    JWT_SECRET,
    JWT_ISSUER,
    JWT_AUDIENCE,
    settings,
)
from shared.config.logging import get_logger

logger = get_logger(__name__)


class InvalidSessionToken(Exception):
    """Token could not be decoded or is missing required claims."""


class SessionClaims(TypedDict, total=False):
    sub: int
    tenant_id: int
    email: str
    exp: int
    jti: str


def sign_jwt(
    payload: dict[str, Any],
    ttl_seconds: int | None = None,
) -> str:
    """
    Sign a session token with the given payload.

    Args:
        payload: Claims to include (sub, tenant_id, email).
        ttl_seconds: Token lifetime in seconds. Defaults to the configured expiry.

    Returns:
        Signed JWT token string.
    """
    if ttl_seconds is None:
        ttl_seconds = settings.jwt_access_token_expire_minutes * 60

    now = int(time.time())
    data = {
        **payload,
        "iss": JWT_ISSUER,
        "aud": JWT_AUDIENCE,
        "iat": now,
        "exp": now + ttl_seconds,
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(data, JWT_SECRET, algorithm="HS256")


def sign_session_token(user_id: int, tenant_id: int, email: str) -> str:
    """Create a session token for an admin user."""
    return sign_jwt({"sub": str(user_id), "tenant_id": tenant_id, "email": email})


def verify_jwt(token: str) -> SessionClaims:
    """
    Verify and decode a session token.

    Returns:
        Decoded claims with ``sub`` converted to int.

    Raises:
        InvalidSessionToken: If the token is invalid, expired, or malformed.
    """
    try:
        payload = jwt.decode(
            token,
            JWT_SECRET,
            algorithms=["HS256"],
            audience=JWT_AUDIENCE,
            issuer=JWT_ISSUER,
        )
    except jwt.ExpiredSignatureError as e:
        raise InvalidSessionToken("Token has expired") from e
    except jwt.InvalidTokenError as e:
        # Log the actual error, never echo it to the client
        logger.warning("JWT validation failed", error=str(e))
        raise InvalidSessionToken("Invalid token") from e

    if "sub" not in payload or "tenant_id" not in payload:
        raise InvalidSessionToken("Invalid token: missing subject or tenant claim")

    try:
        payload["sub"] = int(payload["sub"])
    except (ValueError, TypeError) as e:
        raise InvalidSessionToken("Invalid token: malformed subject claim") from e

    if not isinstance(payload["tenant_id"], int):
        raise InvalidSessionToken("Invalid token: malformed tenant_id claim")

    return payload


def get_bearer_token(authorization: str | None) -> str | None:
    """
    Extract bearer token from an Authorization header.

    Returns None when the header is absent or not a bearer credential.
    """
    if not authorization or not authorization.startswith("Bearer "):
        return None
    token = authorization.split(" ", 1)[1].strip()
    return token or None


def current_session(
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> SessionClaims | None:
    """
    FastAPI dependency resolving the session claims, if any.

    A missing or invalid token yields None; turning that into a 401 is the
    authorization guard's job.

    Usage:
        @router.get("/me")
        def me(session = Depends(current_session)):
            ...
    """
    token = get_bearer_token(authorization)
    if token is None:
        return None
    try:
        return verify_jwt(token)
    except InvalidSessionToken as e:
        logger.info("Rejected session token", reason=str(e))
        return None
