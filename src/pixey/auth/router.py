"""Authentication router: wallet challenge and signature login."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from pixey.auth.challenge import consume_challenge, issue_challenge
from pixey.auth.jwt import create_access_token, token_lifetime_seconds
from pixey.auth.schemas import ChallengeRequest, ChallengeResponse, LoginRequest, LoginResponse
from pixey.auth.service import check_login_signature, login_wallet
from pixey.auth.solana import is_valid_wallet_address
from pixey.burns.rpc import SolanaRpcClient, get_solana_rpc
from pixey.database import get_session
from pixey.errors import InvalidInput
from pixey.redis_client import get_redis
from pixey.schemas import ApiResponse, ok
from pixey.users.schemas import UserResponse

logger = structlog.get_logger()

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


@router.post("/challenge", response_model=ApiResponse[ChallengeResponse])
async def challenge(
    body: ChallengeRequest,
    redis: Redis = Depends(get_redis),  # type: ignore[assignment]
) -> ApiResponse[ChallengeResponse]:
    """Issue a single-use signing challenge for a wallet."""
    if not is_valid_wallet_address(body.wallet_address):
        raise InvalidInput("Invalid wallet address")
    issued = await issue_challenge(redis, body.wallet_address)
    return ok(ChallengeResponse(nonce=issued.nonce, message=issued.message, expires_in=issued.expires_in))


@router.post("", response_model=ApiResponse[LoginResponse])
async def login(
    body: LoginRequest,
    redis: Redis = Depends(get_redis),  # type: ignore[assignment]
    db: AsyncSession = Depends(get_session),
    rpc: SolanaRpcClient = Depends(get_solana_rpc),
) -> ApiResponse[LoginResponse]:
    """Verify a signed challenge and issue a bearer token."""
    expected_message = await consume_challenge(redis, body.wallet_address, body.nonce)
    check_login_signature(body.wallet_address, body.message, body.signature, expected_message)

    user, created = await login_wallet(db, rpc, body.wallet_address, body.message, body.signature)
    await db.commit()

    logger.info("wallet_authenticated", wallet_address=user.wallet_address, is_new_user=created)
    return ok(
        LoginResponse(
            user=UserResponse.model_validate(user),
            is_new_user=created,
            token=create_access_token(user.wallet_address, user.username),
            expires_in=token_lifetime_seconds(),
        )
    )
