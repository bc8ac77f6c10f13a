"""User management business logic."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import IntegrityError

from pixey.auth.solana import is_valid_wallet_address
from pixey.config import get_settings
from pixey.db.models import User
from pixey.errors import Conflict, InvalidInput, NotFound

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

USERNAME_RE = re.compile(r"^[A-Za-z0-9_.\-]{3,32}$")


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


async def get_user(db: AsyncSession, wallet_address: str) -> User | None:
    """Fetch a user by wallet address."""
    result = await db.execute(
        select(User).where(User.wallet_address == wallet_address).execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def require_user(db: AsyncSession, wallet_address: str) -> User:
    """Fetch a user or raise NotFound."""
    user = await get_user(db, wallet_address)
    if user is None:
        raise NotFound("User not found")
    return user


async def lock_user(db: AsyncSession, wallet_address: str) -> User:
    """Fetch a user with ``SELECT ... FOR UPDATE``.

    Serializes balance changes from concurrent requests of the same wallet.
    """
    result = await db.execute(
        select(User)
        .where(User.wallet_address == wallet_address)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFound("User not found")
    return user


# ---------------------------------------------------------------------------
# Creation
# ---------------------------------------------------------------------------


async def get_or_create_user(
    db: AsyncSession,
    wallet_address: str,
    *,
    auth_message: str | None = None,
    auth_signature: str | None = None,
) -> tuple[User, bool]:
    """
    Get existing user or create one with the starting free-pixel grant.

    Concurrent first logins for the same wallet resolve through
    ``ON CONFLICT DO NOTHING``; exactly one of them reports ``created``.

    Returns:
        Tuple of (user, created).
    """
    settings = get_settings()
    result = await db.execute(
        pg_insert(User)
        .values(
            wallet_address=wallet_address,
            username=wallet_address,
            free_pixels=settings.free_pixels_per_user,
            total_pixels_placed=0,
            total_tokens_burned=0,
            auth_message=auth_message,
            auth_signature=auth_signature,
            last_login=func.now() if auth_signature else None,
        )
        .on_conflict_do_nothing(index_elements=[User.wallet_address])
        .returning(User.wallet_address)
    )
    created = result.scalar_one_or_none() is not None
    user = await require_user(db, wallet_address)
    if created:
        logger.info("user_created", wallet_address=wallet_address, free_pixels=user.free_pixels)
    return user, created


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------


async def update_profile(
    db: AsyncSession,
    user: User,
    username: str,
    profile_picture: str | None = None,
) -> User:
    """
    Update username and profile picture.

    Raises:
        InvalidInput: If the username has the wrong shape or is another
            wallet's address (new wallets start with their address as username).
        Conflict: If the username is already taken (case-insensitive).
    """
    username = username.strip()
    if not USERNAME_RE.match(username):
        raise InvalidInput("Username must be 3-32 characters: letters, digits, '_', '-' or '.'")
    if username != user.wallet_address and is_valid_wallet_address(username):
        raise InvalidInput("Username cannot be a wallet address")

    result = await db.execute(
        select(User.wallet_address)
        .where(func.lower(User.username) == username.lower())
        .where(User.wallet_address != user.wallet_address)
    )
    if result.first() is not None:
        raise Conflict("Username already taken")

    user.username = username
    user.profile_picture = profile_picture
    try:
        await db.flush()
    except IntegrityError as e:
        raise Conflict("Username already taken") from e
    logger.info("profile_updated", wallet_address=user.wallet_address, username=username)
    return user


# ---------------------------------------------------------------------------
# Leaderboard
# ---------------------------------------------------------------------------


async def get_leaderboard(db: AsyncSession, limit: int = 20) -> list[dict[str, Any]]:
    """Users ranked by pixels placed, tokens burned as the tie-breaker."""
    settings = get_settings()
    limit = max(1, min(limit, settings.leaderboard_max_entries))
    result = await db.execute(
        select(
            User.wallet_address,
            User.username,
            User.profile_picture,
            User.total_pixels_placed,
            User.total_tokens_burned,
        )
        .where(User.total_pixels_placed > 0)
        .order_by(
            User.total_pixels_placed.desc(),
            User.total_tokens_burned.desc(),
            User.created_at.asc(),
        )
        .limit(limit)
    )
    return [
        {
            "rank": rank,
            "wallet_address": row.wallet_address,
            "username": row.username,
            "profile_picture": row.profile_picture,
            "pixels_placed": row.total_pixels_placed,
            "tokens_burned": row.total_tokens_burned,
        }
        for rank, row in enumerate(result.all(), start=1)
    ]
