"""Request/response schemas for user endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class UserResponse(BaseModel):
    """Public view of a user row. Auth fields are never exposed."""

    model_config = ConfigDict(from_attributes=True)

    wallet_address: str
    username: str | None = None
    profile_picture: str | None = None
    free_pixels: int
    total_pixels_placed: int
    total_tokens_burned: int
    last_login: datetime | None = None
    created_at: datetime | None = None


class CreateUserRequest(BaseModel):
    wallet_address: str = Field(..., min_length=32, max_length=44)


class UserWithStatusResponse(BaseModel):
    user: UserResponse
    is_new_user: bool


class ProfileUpdateRequest(BaseModel):
    """Update username and profile picture."""

    username: str = Field(..., min_length=1, max_length=64)
    profile_picture: str | None = Field(None, max_length=2048)


class LeaderboardEntry(BaseModel):
    rank: int
    wallet_address: str
    username: str | None = None
    profile_picture: str | None = None
    pixels_placed: int
    tokens_burned: int


class LeaderboardResponse(BaseModel):
    entries: list[LeaderboardEntry]
