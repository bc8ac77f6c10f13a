"""Response schema for the game settings endpoint."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class GameSettingsResponse(BaseModel):
    current_stage: int
    total_tokens_burned: int
    board_width: int
    board_height: int
    board_size: int
    next_stage: int | None = None
    next_stage_threshold: int | None = None
    version: int
    last_updated: datetime | None = None
