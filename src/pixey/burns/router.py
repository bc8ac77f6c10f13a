"""Burn endpoint: exchange a verified on-chain burn for pixel credits."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from pixey.auth.dependencies import ensure_same_wallet, get_current_user
from pixey.burns.rpc import SolanaRpcClient, get_solana_rpc
from pixey.burns.schemas import BurnTokensRequest, BurnTokensResponse
from pixey.burns.service import credit_burn
from pixey.database import get_session
from pixey.db.models import User
from pixey.redis_client import get_redis_optional
from pixey.schemas import ApiResponse, ok
from pixey.social.notification_service import notification_event
from pixey.ws import events

router = APIRouter(prefix="/api", tags=["Burns"])


@router.post("/burn-tokens", response_model=ApiResponse[BurnTokensResponse])
async def burn_tokens(
    body: BurnTokensRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    rpc: SolanaRpcClient = Depends(get_solana_rpc),
) -> ApiResponse[BurnTokensResponse]:
    """Verify a burn transaction and credit the burned amount 1:1."""
    ensure_same_wallet(user, body.wallet_address)
    credit = await credit_burn(
        db,
        rpc,
        wallet_address=user.wallet_address,
        token_amount=body.token_amount,
        signature=body.transaction_signature,
    )
    await db.commit()

    redis = get_redis_optional()
    await events.publish_event(redis, events.NOTIFICATION, notification_event(credit.notification))
    if credit.transition.advanced:
        await events.publish_event(
            redis,
            events.STAGE_UPGRADED,
            {
                "current_stage": credit.transition.current.number,
                "previous_stage": credit.transition.previous.number,
                "board_width": credit.board_width,
                "board_height": credit.board_height,
            },
        )

    return ok(
        BurnTokensResponse(
            tokens_burned=credit.tokens_burned,
            pixels_received=credit.pixels_received,
            user_pixels_remaining=credit.user_pixels_remaining,
            stage_advanced=credit.transition.advanced,
            current_stage=credit.transition.current.number,
            board_width=credit.board_width,
            board_height=credit.board_height,
        )
    )
