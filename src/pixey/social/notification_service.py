"""Notification persistence.

Notifications are:
1. Persisted in ``pixey_notifications``
2. Either addressed to one wallet or to the ``global`` sentinel, which every
   client reads by polling the type feed
3. Published over Redis pub/sub after commit for WebSocket subscribers

Types: pixel_placed, stage_upgraded, burn_credited, system, mention
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pixey.db.models import Notification
from pixey.errors import InvalidInput, NotFound, PermissionDenied

VALID_TYPES = {"pixel_placed", "stage_upgraded", "burn_credited", "system", "mention"}
# Types clients may create; the rest are written by the server as side effects
CLIENT_TYPES = {"system", "mention"}

MAX_PAGE_SIZE = 100


async def create_notification(
    db: AsyncSession,
    type_: str,
    message: str,
    recipient_wallet: str,
    data: dict[str, Any] | None = None,
) -> Notification:
    """Insert a notification row inside the caller's transaction."""
    if type_ not in VALID_TYPES:
        raise InvalidInput(f"Invalid notification type: {type_}")

    notification = Notification(
        type=type_,
        message=message,
        data=data,
        recipient_wallet=recipient_wallet,
        is_read=False,
        created_at=datetime.now(timezone.utc),
    )
    db.add(notification)
    await db.flush()
    return notification


def check_client_type(type_: str) -> None:
    """Reject unknown types and the ones only the server emits."""
    if type_ not in VALID_TYPES:
        raise InvalidInput(f"Invalid notification type: {type_}")
    if type_ not in CLIENT_TYPES:
        raise PermissionDenied(f"Notifications of type {type_} are created by the server")


async def list_notifications(
    db: AsyncSession,
    *,
    wallet_address: str | None = None,
    type_: str | None = None,
    limit: int = 50,
) -> list[Notification]:
    """Latest notifications of a type (global feed) or for a recipient.

    The type filter wins when both are given.
    """
    if type_ is None and wallet_address is None:
        raise InvalidInput("Either wallet_address or type parameter is required")

    stmt = select(Notification)
    if type_ is not None:
        stmt = stmt.where(Notification.type == type_)
    else:
        stmt = stmt.where(Notification.recipient_wallet == wallet_address)

    stmt = stmt.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(min(limit, MAX_PAGE_SIZE))
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def mark_as_read(db: AsyncSession, notification_id: int, wallet_address: str) -> Notification:
    """Mark one of the caller's notifications read.

    Global rows are shared by every client and cannot be marked read by one of them.
    """
    result = await db.execute(select(Notification).where(Notification.id == notification_id))
    notification = result.scalar_one_or_none()
    if notification is None:
        raise NotFound("Notification not found")
    if notification.recipient_wallet != wallet_address:
        raise PermissionDenied("Notification belongs to another recipient")

    if not notification.is_read:
        notification.is_read = True
        notification.read_at = datetime.now(timezone.utc)
        await db.flush()
    return notification


def notification_event(notification: Notification) -> dict[str, Any]:
    """Pub/sub payload for a committed notification."""
    return {
        "id": notification.id,
        "type": notification.type,
        "message": notification.message,
        "data": notification.data,
        "recipient_wallet": notification.recipient_wallet,
        "created_at": notification.created_at.isoformat() if notification.created_at else None,
    }
