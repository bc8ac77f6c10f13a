"""Request/response schemas for authentication endpoints."""

from __future__ import annotations

from pydantic import BaseModel, Field

from pixey.users.schemas import UserResponse


class ChallengeRequest(BaseModel):
    """Request a wallet signing challenge."""

    wallet_address: str = Field(..., min_length=32, max_length=44)


class ChallengeResponse(BaseModel):
    """Challenge with nonce and the exact message to sign."""

    nonce: str
    message: str
    expires_in: int


class LoginRequest(BaseModel):
    """Signed challenge. ``signature`` is base58."""

    wallet_address: str = Field(..., min_length=32, max_length=44)
    message: str = Field(..., min_length=1, max_length=1024)
    signature: str = Field(..., min_length=1, max_length=128)
    nonce: str = Field(..., min_length=1, max_length=64)


class LoginResponse(BaseModel):
    user: UserResponse
    is_new_user: bool
    token: str
    token_type: str = "bearer"
    expires_in: int
