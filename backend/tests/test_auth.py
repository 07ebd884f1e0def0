"""
Tests for session token signing and verification.
"""

import jwt
import pytest

from shared.config.settings import JWT_AUDIENCE, JWT_ISSUER, JWT_SECRET
from shared.security.auth import (
    InvalidSessionToken,
    current_session,
    get_bearer_token,
    sign_jwt,
    sign_session_token,
    verify_jwt,
)


class TestSessionTokens:
    """Test the signed session round trip."""

    def test_session_claims(self):
        """Verified claims carry an int subject and the tenant."""
        claims = verify_jwt(sign_session_token(7, 3, "chef@acme.test"))
        assert claims["sub"] == 7
        assert claims["tenant_id"] == 3
        assert claims["email"] == "chef@acme.test"
        assert "role" not in claims

    def test_expired_token(self):
        token = sign_jwt({"sub": "7", "tenant_id": 3}, ttl_seconds=-10)
        with pytest.raises(InvalidSessionToken, match="expired"):
            verify_jwt(token)

    def test_wrong_secret(self):
        token = jwt.encode(
            {"sub": "7", "tenant_id": 3, "iss": JWT_ISSUER, "aud": JWT_AUDIENCE},
            "x" * 40,
            algorithm="HS256",
        )
        with pytest.raises(InvalidSessionToken, match="Invalid token"):
            verify_jwt(token)

    def test_missing_tenant_claim(self):
        token = sign_jwt({"sub": "7"})
        with pytest.raises(InvalidSessionToken, match="missing subject or tenant"):
            verify_jwt(token)

    def test_malformed_subject(self):
        token = jwt.encode(
            {"sub": "chef", "tenant_id": 3, "iss": JWT_ISSUER, "aud": JWT_AUDIENCE},
            JWT_SECRET,
            algorithm="HS256",
        )
        with pytest.raises(InvalidSessionToken, match="malformed subject"):
            verify_jwt(token)


class TestBearerHeader:
    @pytest.mark.parametrize(
        "header, expected",
        [
            (None, None),
            ("", None),
            ("Basic abc", None),
            ("Bearer ", None),
            ("Bearer abc.def", "abc.def"),
        ],
    )
    def test_get_bearer_token(self, header, expected):
        assert get_bearer_token(header) == expected

    def test_invalid_token_yields_no_session(self):
        """A bad token is not an error here; the guard turns None into a 401."""
        assert current_session("Bearer garbage") is None
