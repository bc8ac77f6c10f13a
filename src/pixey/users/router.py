"""User endpoints: lookup, get-or-create, profile update, leaderboard."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from pixey.auth.dependencies import ensure_same_wallet, get_current_user
from pixey.database import get_session
from pixey.db.models import User
from pixey.errors import InvalidInput
from pixey.schemas import ApiResponse, ok
from pixey.users.schemas import (
    CreateUserRequest,
    LeaderboardEntry,
    LeaderboardResponse,
    ProfileUpdateRequest,
    UserResponse,
    UserWithStatusResponse,
)
from pixey.users.service import get_leaderboard, get_or_create_user, require_user, update_profile

router = APIRouter(prefix="/api", tags=["Users"])


@router.get("/users", response_model=ApiResponse[UserResponse])
async def get_user_endpoint(
    wallet_address: str | None = Query(None),
    db: AsyncSession = Depends(get_session),
) -> ApiResponse[UserResponse]:
    """Look up a user by wallet address."""
    if not wallet_address:
        raise InvalidInput("Wallet address is required")
    user = await require_user(db, wallet_address)
    return ok(UserResponse.model_validate(user))


@router.post("/users", response_model=ApiResponse[UserWithStatusResponse])
async def create_user_endpoint(
    body: CreateUserRequest,
    current: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ApiResponse[UserWithStatusResponse]:
    """Idempotent get-or-create for the authenticated wallet."""
    ensure_same_wallet(current, body.wallet_address)
    user, created = await get_or_create_user(db, body.wallet_address)
    await db.commit()
    return ok(UserWithStatusResponse(user=UserResponse.model_validate(user), is_new_user=created))


@router.post("/update-profile", response_model=ApiResponse[UserResponse])
async def update_profile_endpoint(
    body: ProfileUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ApiResponse[UserResponse]:
    """Change username and profile picture."""
    user = await update_profile(db, user, body.username, body.profile_picture)
    await db.commit()
    return ok(UserResponse.model_validate(user))


@router.get("/leaderboard", response_model=ApiResponse[LeaderboardResponse])
async def leaderboard_endpoint(
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_session),
) -> ApiResponse[LeaderboardResponse]:
    """Top painters by pixels placed."""
    rows = await get_leaderboard(db, limit=limit)
    return ok(LeaderboardResponse(entries=[LeaderboardEntry(**row) for row in rows]))
