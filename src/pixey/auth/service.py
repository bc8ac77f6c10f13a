"""
Authentication business logic.

Signature login is the only path that creates users: a wallet proves key
ownership by signing the server-issued challenge, and first-time wallets must
hold a minimum SOL balance before an account with the free-pixel grant is
created.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING

import structlog

from pixey.auth.solana import InvalidWalletError, parse_wallet_address, verify_wallet_signature
from pixey.config import get_settings
from pixey.errors import InvalidInput, UpstreamError
from pixey.users.service import get_or_create_user, get_user

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from pixey.burns.rpc import SolanaRpcClient
    from pixey.db.models import User

logger = structlog.get_logger()

LAMPORTS_PER_SOL = 1_000_000_000


def check_login_signature(wallet_address: str, message: str, signature: str, expected_message: str) -> None:
    """
    Validate the signed login message.

    Raises:
        InvalidInput: Wrong message text, undecodable key or signature, or a
            signature that does not verify.
    """
    if message != expected_message:
        raise InvalidInput("Invalid message content")
    try:
        valid = verify_wallet_signature(wallet_address, message, signature)
    except InvalidWalletError as e:
        raise InvalidInput("Invalid wallet address or signature") from e
    if not valid:
        raise InvalidInput("Invalid signature")


async def ensure_minimum_balance(rpc: SolanaRpcClient, wallet_address: str) -> None:
    """
    Require the configured SOL balance for account creation (0 disables).

    Raises:
        InvalidInput: Balance below the minimum.
        UpstreamError: The RPC lookup failed.
    """
    minimum = get_settings().min_sol_balance_lamports
    if minimum <= 0:
        return
    try:
        balance = await rpc.get_balance(wallet_address)
    except UpstreamError as e:
        raise UpstreamError("Failed to verify SOL balance. Please try again.") from e
    if balance < minimum:
        logger.info("signup_balance_too_low", wallet_address=wallet_address, lamports=balance)
        raise InvalidInput(
            f"Insufficient SOL balance. You need at least {minimum / LAMPORTS_PER_SOL:g} SOL to create an account."
        )


async def login_wallet(
    db: AsyncSession,
    rpc: SolanaRpcClient,
    wallet_address: str,
    message: str,
    signature: str,
) -> tuple[User, bool]:
    """
    Record a verified login, creating the user on first sight.

    Returns:
        Tuple of (user, created).
    """
    try:
        parse_wallet_address(wallet_address)
    except InvalidWalletError as e:
        raise InvalidInput(str(e)) from e

    user = await get_user(db, wallet_address)
    if user is not None:
        user.auth_message = message
        user.auth_signature = signature
        user.last_login = datetime.now(timezone.utc)
        await db.flush()
        logger.info("user_login", wallet_address=wallet_address)
        return user, False

    await ensure_minimum_balance(rpc, wallet_address)
    user, created = await get_or_create_user(
        db,
        wallet_address,
        auth_message=message,
        auth_signature=signature,
    )
    if not created:
        user.auth_message = message
        user.auth_signature = signature
        user.last_login = datetime.now(timezone.utc)
        await db.flush()
    return user, created
