"""Comments and notifications endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from pixey.auth.dependencies import get_current_user
from pixey.database import get_session
from pixey.db.models import User
from pixey.redis_client import get_redis_optional
from pixey.schemas import ApiResponse, ok
from pixey.social.comments_service import create_comment, delete_comment, list_comments
from pixey.social.notification_service import (
    check_client_type,
    create_notification,
    list_notifications,
    mark_as_read,
    notification_event,
)
from pixey.social.schemas import (
    CommentListResponse,
    CommentResponse,
    CreateCommentRequest,
    CreateNotificationRequest,
    MarkNotificationReadRequest,
    NotificationListResponse,
    NotificationResponse,
)
from pixey.ws import events

router = APIRouter(prefix="/api", tags=["Social"])


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------


@router.get("/comments", response_model=ApiResponse[CommentListResponse])
async def get_comments(
    limit: int = Query(100, ge=1, le=100),
    db: AsyncSession = Depends(get_session),
) -> ApiResponse[CommentListResponse]:
    """Latest comments in chronological order."""
    rows = await list_comments(db, limit=limit)
    return ok(CommentListResponse(comments=[CommentResponse(**row) for row in rows]))


@router.post("/comments", response_model=ApiResponse[CommentResponse])
async def post_comment(
    body: CreateCommentRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ApiResponse[CommentResponse]:
    """Post a comment as the authenticated wallet."""
    row = await create_comment(db, user, body.content)
    await db.commit()
    return ok(CommentResponse(**row))


@router.delete("/comments/{comment_id}", response_model=ApiResponse[dict])
async def remove_comment(
    comment_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ApiResponse[dict]:
    """Soft-delete one of your own comments."""
    await delete_comment(db, comment_id, user.wallet_address)
    await db.commit()
    return ok({"id": comment_id, "deleted": True})


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------


@router.get("/notifications", response_model=ApiResponse[NotificationListResponse])
async def get_notifications(
    wallet_address: str | None = Query(None),
    type: str | None = Query(None),  # noqa: A002
    limit: int = Query(50, ge=1, le=100),
    db: AsyncSession = Depends(get_session),
) -> ApiResponse[NotificationListResponse]:
    """Notifications of a type (the global feed) or for one recipient."""
    rows = await list_notifications(db, wallet_address=wallet_address, type_=type, limit=limit)
    return ok(NotificationListResponse(notifications=[NotificationResponse.model_validate(n) for n in rows]))


@router.post("/notifications", response_model=ApiResponse[NotificationResponse])
async def post_notification(
    body: CreateNotificationRequest,
    user: User = Depends(get_current_user),  # noqa: ARG001
    db: AsyncSession = Depends(get_session),
) -> ApiResponse[NotificationResponse]:
    """Create a `system` or `mention` notification for a wallet or the global feed."""
    check_client_type(body.type)
    notification = await create_notification(
        db,
        type_=body.type,
        message=body.message,
        recipient_wallet=body.recipient_wallet,
        data=body.data,
    )
    await db.commit()
    await events.publish_event(get_redis_optional(), events.NOTIFICATION, notification_event(notification))
    return ok(NotificationResponse.model_validate(notification))


@router.put("/notifications", response_model=ApiResponse[NotificationResponse])
async def read_notification(
    body: MarkNotificationReadRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ApiResponse[NotificationResponse]:
    """Mark one of your notifications read."""
    notification = await mark_as_read(db, body.notification_id, user.wallet_address)
    await db.commit()
    return ok(NotificationResponse.model_validate(notification))
