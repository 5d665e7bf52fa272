"""Tests for access token verification."""
from datetime import datetime, timedelta, timezone

import pytest
from jose import JWTError, jwt

from app.errors import ConfigurationError

SECRET = "test-jwt-secret"


@pytest.fixture(autouse=True)
def jwt_settings(monkeypatch):
    from app.config import settings

    monkeypatch.setattr(settings, "auth_jwt_secret", SECRET)
    monkeypatch.setattr(settings, "auth_jwt_audience", None)
    return settings


class TestVerifyAccessToken:
    """Tests for verify_access_token."""

    def test_verify_access_token_valid(self):
        """Test verifying a valid access token."""
        from app.utils.auth import verify_access_token

        token = jwt.encode({"sub": "user123"}, SECRET, algorithm="HS256")

        assert verify_access_token(token) == "user123"

    def test_verify_access_token_invalid(self):
        """Test verifying an invalid token raises error."""
        from app.utils.auth import verify_access_token

        with pytest.raises(JWTError):
            verify_access_token("invalid.token.here")

    def test_verify_access_token_wrong_secret(self):
        """Test a token signed with another secret is rejected."""
        from app.utils.auth import verify_access_token

        token = jwt.encode({"sub": "user123"}, "other-secret", algorithm="HS256")

        with pytest.raises(JWTError):
            verify_access_token(token)

    def test_verify_access_token_expired(self):
        """Test verifying an expired token raises error."""
        from app.utils.auth import verify_access_token

        expired = datetime.now(timezone.utc) - timedelta(minutes=1)
        token = jwt.encode({"sub": "user123", "exp": expired}, SECRET, algorithm="HS256")

        with pytest.raises(JWTError):
            verify_access_token(token)

    def test_verify_access_token_missing_sub(self):
        """Test tokens without a subject are rejected."""
        from app.utils.auth import verify_access_token

        token = jwt.encode({"role": "authenticated"}, SECRET, algorithm="HS256")

        with pytest.raises(JWTError):
            verify_access_token(token)

    def test_verify_access_token_audience(self, jwt_settings, monkeypatch):
        """Test the audience is checked when configured."""
        from app.utils.auth import verify_access_token

        monkeypatch.setattr(jwt_settings, "auth_jwt_audience", "authenticated")
        good = jwt.encode({"sub": "u1", "aud": "authenticated"}, SECRET, algorithm="HS256")
        bad = jwt.encode({"sub": "u1", "aud": "anon"}, SECRET, algorithm="HS256")

        assert verify_access_token(good) == "u1"
        with pytest.raises(JWTError):
            verify_access_token(bad)

    def test_verify_access_token_not_configured(self, jwt_settings, monkeypatch):
        from app.utils.auth import verify_access_token

        monkeypatch.setattr(jwt_settings, "auth_jwt_secret", None)

        with pytest.raises(ConfigurationError):
            verify_access_token("anything")
