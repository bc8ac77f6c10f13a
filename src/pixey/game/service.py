"""Game settings record: reads, row-locked updates and stage progression.

The settings table holds a single row (id=1). Every write goes through
``lock_game_settings`` so concurrent burns serialize on that row, and each
write bumps ``version``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import select

from pixey.db.models import GLOBAL_RECIPIENT, GameSettings
from pixey.errors import NotFound
from pixey.game.stages import StageTransition, evaluate_stage
from pixey.social.notification_service import create_notification

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

SETTINGS_ID = 1


@dataclass(frozen=True)
class BoardDimensions:
    width: int
    height: int


async def get_game_settings(db: AsyncSession) -> GameSettings:
    """Fetch the settings row.

    Raises:
        NotFound: If the row was never seeded.
    """
    result = await db.execute(select(GameSettings).where(GameSettings.id == SETTINGS_ID))
    settings = result.scalar_one_or_none()
    if settings is None:
        raise NotFound("Game settings not found")
    return settings


async def lock_game_settings(db: AsyncSession) -> GameSettings:
    """Fetch the settings row with ``SELECT ... FOR UPDATE``."""
    result = await db.execute(
        select(GameSettings)
        .where(GameSettings.id == SETTINGS_ID)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    settings = result.scalar_one_or_none()
    if settings is None:
        raise NotFound("Game settings not found")
    return settings


async def get_board_dimensions(db: AsyncSession) -> BoardDimensions:
    """Current board width and height."""
    settings = await get_game_settings(db)
    return BoardDimensions(width=settings.board_width, height=settings.board_height)


async def record_burn(db: AsyncSession, tokens_burned: int) -> StageTransition:
    """Add a credited burn to the community total and advance the stage if due.

    Runs inside the caller's transaction. The board only grows.
    """
    settings = await lock_game_settings(db)
    settings.total_tokens_burned += tokens_burned
    transition = evaluate_stage(settings.current_stage, settings.total_tokens_burned)

    if transition.advanced:
        size = transition.current.board_size
        settings.current_stage = transition.current.number
        settings.board_width = max(settings.board_width, size)
        settings.board_height = max(settings.board_height, size)
        await create_notification(
            db,
            type_="stage_upgraded",
            message=f"The board grew to {size}x{size}! Stage {transition.current.number} unlocked.",
            recipient_wallet=GLOBAL_RECIPIENT,
            data={
                "stage": transition.current.number,
                "board_width": settings.board_width,
                "board_height": settings.board_height,
                "total_tokens_burned": settings.total_tokens_burned,
            },
        )
        logger.info(
            "stage_advanced",
            previous_stage=transition.previous.number,
            current_stage=transition.current.number,
            total_tokens_burned=settings.total_tokens_burned,
        )

    settings.version += 1
    await db.flush()
    return transition
