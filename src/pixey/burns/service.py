"""
Burn credit business logic.

A burn is credited at most once: the signature is checked up front for a fast
409, and the UNIQUE constraint on ``pixey_burn_transactions.signature``
catches concurrent submissions of the same signature at flush time.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog
from solders.signature import Signature
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from pixey.auth.solana import is_valid_wallet_address
from pixey.burns.verification import verify_burn
from pixey.config import get_settings
from pixey.db.models import BurnTransaction, Notification
from pixey.errors import BurnVerificationError, Conflict, InvalidInput
from pixey.game.service import get_game_settings, record_burn
from pixey.game.stages import StageTransition
from pixey.social.notification_service import create_notification
from pixey.users.service import lock_user

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from pixey.burns.rpc import SolanaRpcClient

logger = structlog.get_logger()


@dataclass(frozen=True)
class BurnCredit:
    tokens_burned: int
    pixels_received: int
    user_pixels_remaining: int
    transition: StageTransition
    board_width: int
    board_height: int
    notification: Notification


def validate_burn_request(wallet_address: str, token_amount: int, signature: str) -> None:
    """
    Reject malformed burn claims before touching the chain.

    Raises:
        InvalidInput: Amount outside ``0 < amount <= max``, bad wallet or signature.
    """
    settings = get_settings()
    if isinstance(token_amount, bool) or not isinstance(token_amount, int):
        raise InvalidInput("Invalid token amount")
    if token_amount <= 0 or token_amount > settings.burn_max_token_amount:
        raise InvalidInput(f"Token amount must be between 1 and {settings.burn_max_token_amount}")
    if not is_valid_wallet_address(wallet_address):
        raise InvalidInput("Invalid wallet address")
    try:
        Signature.from_string(signature)
    except (ValueError, TypeError) as e:
        raise InvalidInput("Invalid transaction signature") from e


async def is_signature_recorded(db: AsyncSession, signature: str) -> bool:
    result = await db.execute(select(BurnTransaction.id).where(BurnTransaction.signature == signature))
    return result.first() is not None


async def credit_burn(
    db: AsyncSession,
    rpc: SolanaRpcClient,
    wallet_address: str,
    token_amount: int,
    signature: str,
) -> BurnCredit:
    """
    Verify an on-chain burn and credit ``token_amount`` pixels (1:1).

    Raises:
        InvalidInput: Malformed request.
        Conflict: Signature already credited.
        BurnVerificationError: The transaction does not prove the claimed burn.
        UpstreamError: RPC failure.
    """
    settings = get_settings()
    validate_burn_request(wallet_address, token_amount, signature)

    if await is_signature_recorded(db, signature):
        raise Conflict("Transaction already processed")

    tx_result = await rpc.get_transaction(signature)
    proof = verify_burn(
        tx_result,
        wallet_address=wallet_address,
        mint=settings.token_mint_address,
        min_raw_amount=settings.burn_min_raw_amount,
    )
    required_raw = token_amount * 10**settings.token_decimals
    if proof.raw_amount < required_raw:
        logger.info(
            "burn_amount_short",
            wallet_address=wallet_address,
            claimed=token_amount,
            raw_amount=proof.raw_amount,
        )
        raise BurnVerificationError("Burned amount is less than the claimed token amount")

    user = await lock_user(db, wallet_address)
    db.add(
        BurnTransaction(
            signature=signature,
            wallet_address=wallet_address,
            tokens_burned=token_amount,
            pixels_received=token_amount,
            status="confirmed",
        )
    )
    try:
        await db.flush()
    except IntegrityError as e:
        raise Conflict("Transaction already processed") from e

    user.free_pixels += token_amount
    user.total_tokens_burned += token_amount

    transition = await record_burn(db, token_amount)
    game = await get_game_settings(db)

    notification = await create_notification(
        db,
        type_="burn_credited",
        message=f"Burn confirmed: {token_amount} pixels added to your balance",
        recipient_wallet=wallet_address,
        data={"signature": signature, "tokens_burned": token_amount, "pixels_received": token_amount},
    )
    await db.flush()

    logger.info(
        "burn_credited",
        wallet_address=wallet_address,
        signature=signature,
        tokens_burned=token_amount,
        raw_amount=proof.raw_amount,
        balance=user.free_pixels,
        stage=game.current_stage,
    )
    return BurnCredit(
        tokens_burned=token_amount,
        pixels_received=token_amount,
        user_pixels_remaining=user.free_pixels,
        transition=transition,
        board_width=game.board_width,
        board_height=game.board_height,
        notification=notification,
    )
