"""
Unit tests for asset_pipeline.core.security
"""
import jwt
import pytest

from asset_pipeline.core.security import (
    create_jwt_token,
    decode_jwt_token,
    extract_identity,
    verify_identity_token,
)
from asset_pipeline.domain.exceptions import (
    AuthenticationRequiredError,
    InvalidTokenError,
    TokenExpiredError,
)


class TestJwtToken:
    """Tests for create_jwt_token and decode_jwt_token"""

    def test_create_and_decode_roundtrip(self):
        token = create_jwt_token({"sub": "user-123", "email": "test@example.com"})
        decoded = decode_jwt_token(token)
        assert decoded["sub"] == "user-123"
        assert decoded["email"] == "test@example.com"
        assert "iat" in decoded
        assert "exp" in decoded

    def test_decode_invalid_token_raises(self):
        with pytest.raises(ValueError) as exc_info:
            decode_jwt_token("invalid.jwt.token")
        assert "Invalid token" in str(exc_info.value)

    def test_decode_tampered_token_raises(self):
        token = create_jwt_token({"sub": "user-1"})
        with pytest.raises(ValueError):
            decode_jwt_token(token[:-5] + "xxxxx")


class TestExtractIdentity:
    def test_prefers_sub(self):
        assert extract_identity({"sub": "a", "userId": "b"}) == "a"

    def test_falls_back_to_user_id(self):
        assert extract_identity({"userId": "legacy-1"}) == "legacy-1"

    def test_none_when_absent(self):
        assert extract_identity({"email": "x@example.com"}) is None


class TestVerifyIdentityToken:
    """Tests for the handshake token check"""

    def test_valid_token_returns_owner(self, make_token):
        assert verify_identity_token(make_token("U1")) == "U1"

    def test_legacy_user_id_claim(self, make_token):
        assert verify_identity_token(make_token("U7", claim="userId")) == "U7"

    @pytest.mark.parametrize("token", [None, "", 12345])
    def test_missing_token(self, token):
        with pytest.raises(AuthenticationRequiredError) as exc_info:
            verify_identity_token(token)
        assert exc_info.value.reason == "Authentication required"

    def test_expired_token(self, make_token):
        with pytest.raises(TokenExpiredError) as exc_info:
            verify_identity_token(make_token("U1", expires_in_seconds=-60))
        assert exc_info.value.reason == "Token expired"

    def test_wrong_signing_key(self):
        token = jwt.encode({"sub": "U1"}, "some-other-key", algorithm="HS256")
        with pytest.raises(InvalidTokenError) as exc_info:
            verify_identity_token(token)
        assert exc_info.value.reason == "Invalid token"

    def test_garbage_token(self):
        with pytest.raises(InvalidTokenError):
            verify_identity_token("not-a-jwt")

    def test_token_without_identity(self):
        token = create_jwt_token({"email": "nobody@example.com"})
        with pytest.raises(InvalidTokenError):
            verify_identity_token(token)
