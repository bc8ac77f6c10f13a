"""
HS256 JWT access tokens.

Tokens embed the wallet address (``sub`` and ``wallet_address``) and the
username at issue time, and expire after a fixed number of days.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from pixey.config import get_settings


def create_access_token(wallet_address: str, username: str | None = None) -> str:
    """
    Create an access token for ``wallet_address``.

    Returns:
        Encoded JWT string.
    """
    settings = get_settings()
    now = datetime.now(timezone.utc)
    payload: dict[str, Any] = {
        "sub": wallet_address,
        "wallet_address": wallet_address,
        "username": username,
        "iat": now,
        "exp": now + timedelta(days=settings.jwt_access_token_expire_days),
        "iss": settings.jwt_issuer,
        "type": "access",
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def token_lifetime_seconds() -> int:
    return get_settings().jwt_access_token_expire_days * 24 * 60 * 60


def verify_token(token: str, expected_type: str = "access") -> dict[str, Any]:
    """
    Verify and decode a JWT token.

    Raises:
        jwt.InvalidTokenError: If the token is invalid, expired, of the wrong
            type or missing the wallet claim.
    """
    settings = get_settings()
    try:
        payload: dict[str, Any] = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            issuer=settings.jwt_issuer,
        )
    except jwt.ExpiredSignatureError:
        msg = "Token has expired"
        raise jwt.InvalidTokenError(msg) from None

    if payload.get("type") != expected_type:
        msg = f"Expected token type '{expected_type}', got '{payload.get('type')}'"
        raise jwt.InvalidTokenError(msg)
    if not payload.get("wallet_address"):
        msg = "Token missing wallet address"
        raise jwt.InvalidTokenError(msg)

    return payload
