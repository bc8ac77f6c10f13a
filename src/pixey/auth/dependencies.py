"""FastAPI authentication dependencies."""

from __future__ import annotations

import jwt
from fastapi import Depends, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from pixey.auth.jwt import verify_token
from pixey.database import get_session
from pixey.db.models import User
from pixey.errors import AuthenticationError, PermissionDenied
from pixey.users.service import get_user

_bearer = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
    db: AsyncSession = Depends(get_session),
) -> User:
    """
    Extract and verify the bearer token, return the User model.

    Raises 401 when the header is missing, the token is invalid or expired,
    or the wallet no longer exists.
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Authentication required")
    try:
        payload = verify_token(credentials.credentials, expected_type="access")
    except jwt.InvalidTokenError as e:
        raise AuthenticationError(str(e) or "Invalid authentication token") from e

    user = await get_user(db, payload["wallet_address"])
    if user is None:
        raise AuthenticationError("User not found")
    return user


def ensure_same_wallet(user: User, wallet_address: str | None) -> None:
    """Reject a body ``wallet_address`` that differs from the token's wallet."""
    if wallet_address is not None and wallet_address != user.wallet_address:
        raise PermissionDenied("Wallet address does not match the authenticated user")
