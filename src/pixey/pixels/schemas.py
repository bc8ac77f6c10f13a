"""Request/response schemas for pixel endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class PlacePixelRequest(BaseModel):
    """Place one pixel. ``wallet_address`` is optional and must match the token."""

    x: int
    y: int
    color: str = Field(..., max_length=16)
    wallet_address: str | None = None


class PlacePixelsRequest(BaseModel):
    """Bulk placement. Malformed entries are dropped rather than rejected."""

    pixels: list[Any]
    wallet_address: str | None = None


class PixelResponse(BaseModel):
    x: int
    y: int
    color: str
    wallet_address: str
    placed_at: datetime | None = None


class PlacePixelResponse(BaseModel):
    pixel: PixelResponse
    cost: int
    is_overwrite: bool
    easter_egg: bool
    easter_egg_reward: int
    user_pixels_remaining: int


class PlacePixelsResponse(BaseModel):
    placed: int
    overwrites: int
    news: int
    cost: int
    easter_eggs: int = 0
    easter_egg_reward: int = 0
    user_pixels_remaining: int


class PixelListResponse(BaseModel):
    pixels: list[PixelResponse]
    count: int
    last_updated: datetime | None = None


class PixelHistoryEntry(BaseModel):
    x: int
    y: int
    color: str
    wallet_address: str
    changed_at: datetime


class PixelHistoryResponse(BaseModel):
    x: int
    y: int
    history: list[PixelHistoryEntry]
