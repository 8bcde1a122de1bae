"""HS256 JWT access tokens."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from qiclife.config import get_settings


def create_access_token(user_id: str, email: str | None = None) -> str:
    """Create a signed access token whose ``sub`` is the user id."""
    settings = get_settings()
    now = datetime.now(timezone.utc)
    payload: dict[str, Any] = {
        "sub": user_id,
        "email": email,
        "iat": now,
        "exp": now + timedelta(minutes=settings.jwt_access_token_expire_minutes),
        "iss": settings.jwt_issuer,
        "type": "access",
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_token(token: str) -> dict[str, Any]:
    """Decode and validate an access token.

    Raises:
        jwt.InvalidTokenError: On a bad signature, expiry, issuer or token type.
    """
    settings = get_settings()
    payload: dict[str, Any] = jwt.decode(
        token,
        settings.jwt_secret,
        algorithms=[settings.jwt_algorithm],
        issuer=settings.jwt_issuer,
        options={"require": ["sub", "exp", "iat"]},
    )
    if payload.get("type") != "access":
        msg = "Expected access token"
        raise jwt.InvalidTokenError(msg)
    return payload
