"""Game settings endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from pixey.database import get_session
from pixey.game.schemas import GameSettingsResponse
from pixey.game.service import get_game_settings
from pixey.game.stages import next_stage
from pixey.schemas import ApiResponse, ok

router = APIRouter(prefix="/api", tags=["Game"])


@router.get("/game-settings", response_model=ApiResponse[GameSettingsResponse])
async def game_settings(
    db: AsyncSession = Depends(get_session),
) -> ApiResponse[GameSettingsResponse]:
    """Current stage, community burn total and board dimensions."""
    settings = await get_game_settings(db)
    upcoming = next_stage(settings.current_stage)
    return ok(
        GameSettingsResponse(
            current_stage=settings.current_stage,
            total_tokens_burned=settings.total_tokens_burned,
            board_width=settings.board_width,
            board_height=settings.board_height,
            board_size=max(settings.board_width, settings.board_height),
            next_stage=upcoming.number if upcoming else None,
            next_stage_threshold=upcoming.required_burns if upcoming else None,
            version=settings.version,
            last_updated=settings.updated_at,
        )
    )
