"""Pydantic schemas for social endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# --- Comments ---


class CreateCommentRequest(BaseModel):
    content: str = Field(..., max_length=2000)


class CommentResponse(BaseModel):
    id: int
    content: str
    wallet_address: str
    username: str | None = None
    created_at: datetime | None = None


class CommentListResponse(BaseModel):
    comments: list[CommentResponse]


# --- Notifications ---


class CreateNotificationRequest(BaseModel):
    type: str = Field(..., min_length=1, max_length=32)
    message: str = Field(..., min_length=1, max_length=1000)
    data: dict[str, Any] | None = None
    recipient_wallet: str = Field(..., min_length=1, max_length=44)


class MarkNotificationReadRequest(BaseModel):
    notification_id: int


class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    type: str
    message: str
    data: dict[str, Any] | None = None
    recipient_wallet: str
    is_read: bool
    read_at: datetime | None = None
    created_at: datetime | None = None


class NotificationListResponse(BaseModel):
    notifications: list[NotificationResponse]
