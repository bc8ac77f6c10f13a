"""Pixel endpoints: single and bulk placement, board snapshot, history."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from pixey.auth.dependencies import ensure_same_wallet, get_current_user
from pixey.database import get_session
from pixey.db.models import User
from pixey.pixels.schemas import (
    PixelHistoryEntry,
    PixelHistoryResponse,
    PixelListResponse,
    PixelResponse,
    PlacePixelRequest,
    PlacePixelResponse,
    PlacePixelsRequest,
    PlacePixelsResponse,
)
from pixey.pixels.service import get_pixel_history, list_pixels, place_pixel, place_pixels
from pixey.redis_client import get_redis_optional
from pixey.schemas import ApiResponse, ok
from pixey.social.notification_service import notification_event
from pixey.ws import events

router = APIRouter(prefix="/api", tags=["Pixels"])


@router.post("/place-pixel", response_model=ApiResponse[PlacePixelResponse])
async def place_pixel_endpoint(
    body: PlacePixelRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ApiResponse[PlacePixelResponse]:
    """Place or overwrite one pixel (1 credit new, 2 credits overwrite)."""
    ensure_same_wallet(user, body.wallet_address)
    result = await place_pixel(db, user.wallet_address, body.x, body.y, body.color)
    await db.commit()

    redis = get_redis_optional()
    pixel = {
        "x": result.pixel.x,
        "y": result.pixel.y,
        "color": result.pixel.color,
        "wallet_address": result.wallet_address,
        "placed_at": result.placed_at.isoformat(),
    }
    await events.publish_event(redis, events.PIXELS_PLACED, {"pixels": [pixel]})
    await events.publish_event(redis, events.NOTIFICATION, notification_event(result.notification))

    return ok(
        PlacePixelResponse(
            pixel=PixelResponse(
                x=result.pixel.x,
                y=result.pixel.y,
                color=result.pixel.color,
                wallet_address=result.wallet_address,
                placed_at=result.placed_at,
            ),
            cost=result.cost,
            is_overwrite=result.is_overwrite,
            easter_egg=result.easter_egg,
            easter_egg_reward=result.easter_egg_reward,
            user_pixels_remaining=result.user_pixels_remaining,
        )
    )


@router.post("/place-pixels", response_model=ApiResponse[PlacePixelsResponse])
async def place_pixels_endpoint(
    body: PlacePixelsRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ApiResponse[PlacePixelsResponse]:
    """Place a batch of pixels in one transaction."""
    ensure_same_wallet(user, body.wallet_address)
    result = await place_pixels(db, user.wallet_address, body.pixels)
    await db.commit()

    await events.publish_event(
        get_redis_optional(),
        events.PIXELS_PLACED,
        {
            "wallet_address": user.wallet_address,
            "pixels": [{"x": p.x, "y": p.y, "color": p.color} for p in result.pixels],
        },
    )
    return ok(
        PlacePixelsResponse(
            placed=result.placed,
            overwrites=result.overwrites,
            news=result.news,
            cost=result.cost,
            easter_eggs=result.easter_eggs,
            easter_egg_reward=result.easter_egg_reward,
            user_pixels_remaining=result.user_pixels_remaining,
        )
    )


@router.get("/pixels", response_model=ApiResponse[PixelListResponse])
async def get_pixels(
    db: AsyncSession = Depends(get_session),
) -> ApiResponse[PixelListResponse]:
    """Every painted cell of the board."""
    pixels = await list_pixels(db)
    return ok(
        PixelListResponse(
            pixels=[
                PixelResponse(
                    x=p.x_coordinate,
                    y=p.y_coordinate,
                    color=p.color,
                    wallet_address=p.wallet_address,
                    placed_at=p.placed_at,
                )
                for p in pixels
            ],
            count=len(pixels),
            last_updated=pixels[0].placed_at if pixels else None,
        )
    )


@router.get("/pixel-history", response_model=ApiResponse[PixelHistoryResponse])
async def get_history(
    x: int = Query(..., ge=0),
    y: int = Query(..., ge=0),
    limit: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_session),
) -> ApiResponse[PixelHistoryResponse]:
    """Placement history of one coordinate, newest first."""
    rows = await get_pixel_history(db, x, y, limit=limit)
    return ok(
        PixelHistoryResponse(
            x=x,
            y=y,
            history=[
                PixelHistoryEntry(
                    x=row.x_coordinate,
                    y=row.y_coordinate,
                    color=row.new_color,
                    wallet_address=row.wallet_address,
                    changed_at=row.changed_at,
                )
                for row in rows
            ],
        )
    )
