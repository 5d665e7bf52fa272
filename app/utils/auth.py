"""Verification of access tokens issued by the external auth provider."""
from jose import JWTError, jwt

from app.config import settings
from app.errors import ConfigurationError


def verify_access_token(token: str) -> str:
    """
    Verify and decode a JWT access token.

    Tokens are issued by the external auth provider and signed with the
    shared secret configured as AUTH_JWT_SECRET.

    Args:
        token: JWT token string to verify

    Returns:
        User ID from token

    Raises:
        JWTError: If token is invalid or expired
        ConfigurationError: If no verification secret is configured

    Example:
        >>> token = jwt.encode({"sub": "user123"}, settings.auth_jwt_secret)
        >>> verify_access_token(token)
        'user123'
    """
    if not settings.auth_jwt_secret:
        raise ConfigurationError("AUTH_JWT_SECRET is not set")

    options = {"verify_aud": settings.auth_jwt_audience is not None}
    payload = jwt.decode(
        token,
        settings.auth_jwt_secret,
        algorithms=[settings.auth_jwt_algorithm],
        audience=settings.auth_jwt_audience,
        options=options,
    )
    user_id = payload.get("sub")

    if user_id is None:
        raise JWTError("Token payload missing 'sub' claim")

    return user_id
