"""Board chat comments with soft delete."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pixey.config import get_settings
from pixey.db.models import ChatMessage, User
from pixey.errors import InvalidInput, NotFound, PermissionDenied

logger = structlog.get_logger()

MAX_PAGE_SIZE = 100


def _comment_dict(message: ChatMessage, username: str | None) -> dict[str, Any]:
    return {
        "id": message.id,
        "content": message.message,
        "wallet_address": message.wallet_address,
        "username": username,
        "created_at": message.created_at,
    }


async def list_comments(db: AsyncSession, limit: int = MAX_PAGE_SIZE) -> list[dict[str, Any]]:
    """The latest non-deleted comments, oldest first."""
    limit = max(1, min(limit, MAX_PAGE_SIZE))
    result = await db.execute(
        select(ChatMessage, User.username)
        .outerjoin(User, User.wallet_address == ChatMessage.wallet_address)
        .where(ChatMessage.is_deleted.is_(False))
        .order_by(ChatMessage.created_at.desc(), ChatMessage.id.desc())
        .limit(limit)
    )
    rows = result.all()
    return [_comment_dict(message, username) for message, username in reversed(rows)]


async def create_comment(db: AsyncSession, user: User, content: str) -> dict[str, Any]:
    """
    Post a comment as ``user``.

    Raises:
        InvalidInput: Empty after trimming or longer than the configured maximum.
    """
    max_length = get_settings().comment_max_length
    text = content.strip()
    if not text:
        raise InvalidInput("Comment content is required")
    if len(text) > max_length:
        raise InvalidInput(f"Comment is too long (max {max_length} characters)")

    message = ChatMessage(wallet_address=user.wallet_address, message=text)
    db.add(message)
    await db.flush()
    logger.info("comment_created", comment_id=message.id, wallet_address=user.wallet_address)
    return _comment_dict(message, user.username)


async def delete_comment(db: AsyncSession, comment_id: int, wallet_address: str) -> None:
    """
    Soft-delete one of the caller's comments.

    Raises:
        NotFound: Unknown or already deleted.
        PermissionDenied: Written by another wallet.
    """
    result = await db.execute(
        select(ChatMessage).where(ChatMessage.id == comment_id, ChatMessage.is_deleted.is_(False))
    )
    message = result.scalar_one_or_none()
    if message is None:
        raise NotFound("Comment not found")
    if message.wallet_address != wallet_address:
        raise PermissionDenied("You can only delete your own comments")

    message.is_deleted = True
    message.deleted_at = datetime.now(timezone.utc)
    await db.flush()
    logger.info("comment_deleted", comment_id=comment_id, wallet_address=wallet_address)
