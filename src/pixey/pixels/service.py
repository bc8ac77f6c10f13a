"""Pixel placement business logic.

Both placement paths run inside the request's single database transaction:
the user row is locked first, the balance is checked, and the pixel writes,
history rows and debit are flushed together. Nothing is committed here; the
router commits once the whole placement succeeded.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import Integer, String, bindparam, select, text, update
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.dialects.postgresql import insert as pg_insert

from pixey.config import get_settings
from pixey.db.models import GLOBAL_RECIPIENT, EasterEgg, Notification, Pixel, PixelHistory
from pixey.errors import BatchTooLarge, InsufficientPixels, InvalidInput
from pixey.game.service import get_board_dimensions
from pixey.pixels.placement import PixelWrite, placement_cost, prepare_batch, validate_pixel
from pixey.social.notification_service import create_notification
from pixey.users.service import lock_user

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

_ARRAY_PARAMS = (
    bindparam("xs", type_=ARRAY(Integer)),
    bindparam("ys", type_=ARRAY(Integer)),
)

_COUNT_OVERWRITES = text(
    """
    SELECT count(*)
    FROM pixey_pixels p
    JOIN unnest(CAST(:xs AS integer[]), CAST(:ys AS integer[])) AS incoming(x, y)
      ON p.x_coordinate = incoming.x AND p.y_coordinate = incoming.y
    """
).bindparams(*_ARRAY_PARAMS)

_LOCK_EGGS = text(
    """
    SELECT e.id, e.reward, p.id IS NOT NULL AS is_overwrite
    FROM pixey_easter_eggs e
    JOIN unnest(CAST(:xs AS integer[]), CAST(:ys AS integer[])) AS incoming(x, y)
      ON e.x_coordinate = incoming.x AND e.y_coordinate = incoming.y
    LEFT JOIN pixey_pixels p
      ON p.x_coordinate = e.x_coordinate AND p.y_coordinate = e.y_coordinate
    WHERE NOT e.is_claimed
    ORDER BY e.x_coordinate, e.y_coordinate
    FOR UPDATE OF e
    """
).bindparams(*_ARRAY_PARAMS)

_UPSERT_PIXELS = text(
    """
    INSERT INTO pixey_pixels (x_coordinate, y_coordinate, color, wallet_address, placed_at)
    SELECT incoming.x, incoming.y, incoming.color, CAST(:wallet AS varchar), now()
    FROM unnest(CAST(:xs AS integer[]), CAST(:ys AS integer[]), CAST(:colors AS text[]))
      AS incoming(x, y, color)
    ORDER BY incoming.x, incoming.y
    ON CONFLICT (x_coordinate, y_coordinate)
    DO UPDATE SET color = EXCLUDED.color,
                  wallet_address = EXCLUDED.wallet_address,
                  placed_at = EXCLUDED.placed_at
    """
).bindparams(*_ARRAY_PARAMS, bindparam("colors", type_=ARRAY(String)))

_INSERT_HISTORY = text(
    """
    INSERT INTO pixey_pixel_history (x_coordinate, y_coordinate, new_color, wallet_address, changed_at)
    SELECT incoming.x, incoming.y, incoming.color, CAST(:wallet AS varchar), now()
    FROM unnest(CAST(:xs AS integer[]), CAST(:ys AS integer[]), CAST(:colors AS text[]))
      AS incoming(x, y, color)
    """
).bindparams(*_ARRAY_PARAMS, bindparam("colors", type_=ARRAY(String)))


@dataclass(frozen=True)
class PlacementResult:
    pixel: PixelWrite
    wallet_address: str
    placed_at: datetime
    cost: int
    is_overwrite: bool
    easter_egg: bool
    easter_egg_reward: int
    user_pixels_remaining: int
    notification: Notification


@dataclass(frozen=True)
class BulkPlacementResult:
    placed: int
    overwrites: int
    news: int
    cost: int
    easter_eggs: int
    easter_egg_reward: int
    user_pixels_remaining: int
    pixels: list[PixelWrite]


def _short_wallet(wallet_address: str) -> str:
    if len(wallet_address) <= 8:
        return wallet_address
    return f"{wallet_address[:4]}...{wallet_address[-4:]}"


async def place_pixel(
    db: AsyncSession,
    wallet_address: str,
    x: Any,  # noqa: ANN401
    y: Any,  # noqa: ANN401
    color: Any,  # noqa: ANN401
) -> PlacementResult:
    """
    Place or overwrite one pixel.

    Cost is 1 for a new cell and 2 for an overwrite. An unclaimed easter egg
    at the coordinate is claimed instead of charging: its reward is credited.

    Raises:
        InvalidInput: Coordinates outside the board or malformed color.
        InsufficientPixels: Balance lower than the placement cost.
        NotFound: Unknown wallet.
    """
    board = await get_board_dimensions(db)
    write = validate_pixel(x, y, color, board.width, board.height)

    user = await lock_user(db, wallet_address)

    existing = await db.execute(
        select(Pixel.id).where(Pixel.x_coordinate == write.x, Pixel.y_coordinate == write.y)
    )
    is_overwrite = existing.first() is not None
    cost = placement_cost(0, 1) if is_overwrite else placement_cost(1, 0)
    if user.free_pixels < cost:
        raise InsufficientPixels(cost=cost, balance=user.free_pixels)

    now = datetime.now(timezone.utc)
    await db.execute(
        pg_insert(Pixel)
        .values(
            x_coordinate=write.x,
            y_coordinate=write.y,
            color=write.color,
            wallet_address=wallet_address,
            placed_at=now,
        )
        .on_conflict_do_update(
            index_elements=[Pixel.x_coordinate, Pixel.y_coordinate],
            set_={"color": write.color, "wallet_address": wallet_address, "placed_at": now},
        )
    )

    egg_result = await db.execute(
        select(EasterEgg)
        .where(
            EasterEgg.x_coordinate == write.x,
            EasterEgg.y_coordinate == write.y,
            EasterEgg.is_claimed.is_(False),
        )
        .with_for_update()
    )
    egg = egg_result.scalar_one_or_none()

    reward = 0
    charged = cost
    if egg is not None:
        egg.is_claimed = True
        egg.claimed_by = wallet_address
        egg.claimed_at = now
        reward = egg.reward
        charged = 0
        user.free_pixels += reward
    else:
        user.free_pixels -= cost
    user.total_pixels_placed += 1

    db.add(
        PixelHistory(
            x_coordinate=write.x,
            y_coordinate=write.y,
            new_color=write.color,
            wallet_address=wallet_address,
            changed_at=now,
        )
    )

    notification = await create_notification(
        db,
        type_="pixel_placed",
        message=f"{_short_wallet(wallet_address)} placed a pixel at ({write.x}, {write.y})",
        recipient_wallet=GLOBAL_RECIPIENT,
        data={
            "x": write.x,
            "y": write.y,
            "color": write.color,
            "wallet_address": wallet_address,
            "is_overwrite": is_overwrite,
            "easter_egg": egg is not None,
        },
    )
    await db.flush()

    logger.info(
        "pixel_placed",
        wallet_address=wallet_address,
        x=write.x,
        y=write.y,
        cost=charged,
        is_overwrite=is_overwrite,
        easter_egg_reward=reward,
        remaining=user.free_pixels,
    )
    return PlacementResult(
        pixel=write,
        wallet_address=wallet_address,
        placed_at=now,
        cost=charged,
        is_overwrite=is_overwrite,
        easter_egg=egg is not None,
        easter_egg_reward=reward,
        user_pixels_remaining=user.free_pixels,
        notification=notification,
    )


async def place_pixels(
    db: AsyncSession,
    wallet_address: str,
    raw_pixels: Sequence[Any],
) -> BulkPlacementResult:
    """
    Place a batch of pixels atomically with set-based SQL.

    Invalid and out-of-board entries are dropped; duplicates keep the last
    color. The whole batch is rejected when the balance cannot cover
    ``new + 2 * overwrites``.

    Unclaimed easter eggs in the batch are claimed as in ``place_pixel``:
    their cells are not charged and their rewards are credited.

    Raises:
        InvalidInput: Nothing valid left after filtering.
        BatchTooLarge: More pixels than the configured cap.
        InsufficientPixels: Balance lower than the batch cost.
        NotFound: Unknown wallet.
    """
    settings = get_settings()
    board = await get_board_dimensions(db)
    writes = prepare_batch(raw_pixels, board.width, board.height)
    if not writes:
        raise InvalidInput("No valid pixels to place")
    if len(writes) > settings.bulk_max_pixels:
        raise BatchTooLarge(f"Too many pixels in one request (max {settings.bulk_max_pixels})")

    logger.info(
        "bulk_place_started",
        wallet_address=wallet_address,
        incoming=len(raw_pixels),
        valid=len(writes),
    )
    user = await lock_user(db, wallet_address)

    params = {
        "xs": [w.x for w in writes],
        "ys": [w.y for w in writes],
        "colors": [w.color for w in writes],
        "wallet": wallet_address,
    }
    overwrites = int((await db.execute(_COUNT_OVERWRITES, {"xs": params["xs"], "ys": params["ys"]})).scalar_one())
    news = len(writes) - overwrites
    cost = placement_cost(news, overwrites)
    if user.free_pixels < cost:
        logger.info("bulk_place_insufficient", wallet_address=wallet_address, cost=cost, balance=user.free_pixels)
        raise InsufficientPixels(cost=cost, balance=user.free_pixels)

    eggs = (await db.execute(_LOCK_EGGS, {"xs": params["xs"], "ys": params["ys"]})).all()
    egg_overwrites = sum(1 for egg in eggs if egg.is_overwrite)
    charged = cost - placement_cost(len(eggs) - egg_overwrites, egg_overwrites)
    reward = sum(egg.reward for egg in eggs)

    await db.execute(_UPSERT_PIXELS, params)
    await db.execute(_INSERT_HISTORY, params)
    if eggs:
        await db.execute(
            update(EasterEgg)
            .where(EasterEgg.id.in_([egg.id for egg in eggs]))
            .values(is_claimed=True, claimed_by=wallet_address, claimed_at=datetime.now(timezone.utc))
        )

    user.free_pixels += reward - charged
    user.total_pixels_placed += len(writes)
    await db.flush()

    logger.info(
        "bulk_pixels_placed",
        wallet_address=wallet_address,
        placed=len(writes),
        overwrites=overwrites,
        news=news,
        cost=charged,
        easter_eggs=len(eggs),
        easter_egg_reward=reward,
        remaining=user.free_pixels,
    )
    return BulkPlacementResult(
        placed=len(writes),
        overwrites=overwrites,
        news=news,
        cost=charged,
        easter_eggs=len(eggs),
        easter_egg_reward=reward,
        user_pixels_remaining=user.free_pixels,
        pixels=writes,
    )


async def list_pixels(db: AsyncSession) -> list[Pixel]:
    """Every painted cell, most recently placed first."""
    result = await db.execute(select(Pixel).order_by(Pixel.placed_at.desc(), Pixel.id.desc()))
    return list(result.scalars().all())


async def get_pixel_history(db: AsyncSession, x: int, y: int, limit: int = 50) -> list[PixelHistory]:
    """Audit trail for one coordinate, newest first."""
    result = await db.execute(
        select(PixelHistory)
        .where(PixelHistory.x_coordinate == x, PixelHistory.y_coordinate == y)
        .order_by(PixelHistory.changed_at.desc(), PixelHistory.id.desc())
        .limit(limit)
    )
    return list(result.scalars().all())
