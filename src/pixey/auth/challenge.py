"""
Nonce-bound login challenges.

Each challenge is stored in Redis under ``auth:nonce:{wallet}`` with a short
TTL and is removed atomically (GETDEL) on the first verification attempt, so
a signed message can be exchanged for a token at most once.
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from pixey.config import get_settings
from pixey.errors import InvalidInput

if TYPE_CHECKING:
    from redis.asyncio import Redis


@dataclass(frozen=True)
class Challenge:
    nonce: str
    message: str
    issued_at: str
    expires_in: int


def _key(wallet_address: str) -> str:
    return f"auth:nonce:{wallet_address}"


def build_challenge_message(wallet_address: str, nonce: str, issued_at: str, domain: str | None = None) -> str:
    """The exact text the wallet is asked to sign."""
    domain = domain or get_settings().auth_domain
    return f"I am logging in to {domain}\n\nWallet: {wallet_address}\nNonce: {nonce}\nIssued At: {issued_at}"


async def issue_challenge(redis: Redis, wallet_address: str) -> Challenge:
    """Create a fresh nonce for ``wallet_address``, replacing any pending one."""
    settings = get_settings()
    nonce = secrets.token_hex(16)
    issued_at = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
    await redis.set(_key(wallet_address), f"{nonce}:{issued_at}", ex=settings.auth_challenge_expire_seconds)
    return Challenge(
        nonce=nonce,
        message=build_challenge_message(wallet_address, nonce, issued_at, settings.auth_domain),
        issued_at=issued_at,
        expires_in=settings.auth_challenge_expire_seconds,
    )


async def consume_challenge(redis: Redis, wallet_address: str, nonce: str) -> str:
    """
    Take the pending challenge for ``wallet_address`` and return its message.

    The challenge is deleted whether or not the nonce matches.

    Raises:
        InvalidInput: If no challenge is pending or the nonce differs.
    """
    stored = await redis.getdel(_key(wallet_address))
    if stored is None:
        raise InvalidInput("Challenge expired or not found")
    if isinstance(stored, bytes):
        stored = stored.decode()

    stored_nonce, issued_at = stored.split(":", 1)
    if not secrets.compare_digest(stored_nonce.encode(), nonce.encode()):
        raise InvalidInput("Invalid nonce")
    return build_challenge_message(wallet_address, stored_nonce, issued_at)
