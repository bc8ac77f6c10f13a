"""Request/response schemas for the burn endpoint."""

from __future__ import annotations

from pydantic import BaseModel, Field


class BurnTokensRequest(BaseModel):
    wallet_address: str = Field(..., min_length=1, max_length=64)
    token_amount: int
    transaction_signature: str = Field(..., min_length=1, max_length=128)


class BurnTokensResponse(BaseModel):
    tokens_burned: int
    pixels_received: int
    user_pixels_remaining: int
    stage_advanced: bool
    current_stage: int
    board_width: int
    board_height: int
