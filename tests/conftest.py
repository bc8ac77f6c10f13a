"""Shared test fixtures."""

from __future__ import annotations

import base64
from collections.abc import AsyncGenerator, AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from solders.hash import Hash
from solders.instruction import AccountMeta, Instruction
from solders.keypair import Keypair
from solders.message import MessageV0
from solders.pubkey import Pubkey
from solders.transaction import VersionedTransaction
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from pixey.burns.instruction import TOKEN_PROGRAM_ID
from pixey.burns.rpc import get_solana_rpc
from pixey.config import get_settings
from pixey.database import close_db, create_schema, get_session, init_db
from pixey.errors import UpstreamError
from pixey.main import create_app
from pixey.redis_client import close_redis, get_redis, init_redis

PIXEY_TABLES = (
    "pixey_pixel_history",
    "pixey_pixels",
    "pixey_easter_eggs",
    "pixey_burn_transactions",
    "pixey_notifications",
    "pixey_chat_messages",
    "pixey_featured_artworks",
    "pixey_users",
    "pixey_game_settings",
)


# ---------------------------------------------------------------------------
# Solana test doubles
# ---------------------------------------------------------------------------


class FakeSolanaRpc:
    """In-memory stand-in for ``SolanaRpcClient``."""

    def __init__(self) -> None:
        self.transactions: dict[str, dict[str, Any]] = {}
        self.balances: dict[str, int] = {}
        self.default_balance = 1_000_000_000
        self.fail = False
        self.calls: list[tuple[str, str]] = []

    async def get_transaction(self, signature: str) -> dict[str, Any] | None:
        self.calls.append(("getTransaction", signature))
        if self.fail:
            raise UpstreamError("Solana RPC request failed")
        return self.transactions.get(signature)

    async def get_balance(self, wallet_address: str) -> int:
        self.calls.append(("getBalance", wallet_address))
        if self.fail:
            raise UpstreamError("Solana RPC request failed")
        return self.balances.get(wallet_address, self.default_balance)


@dataclass
class BurnTx:
    signature: str
    raw: bytes
    result: dict[str, Any] = field(default_factory=dict)


def build_burn_transaction(
    authority: Keypair,
    raw_amount: int,
    *,
    mint: Pubkey | None = None,
    opcode: int = 8,
    program_id: str = TOKEN_PROGRAM_ID,
    failed: bool = False,
) -> BurnTx:
    """Serialize a signed v0 transaction holding one SPL burn instruction."""
    mint = mint or Pubkey.from_string(get_settings().token_mint_address)
    token_account = Pubkey.new_unique()
    data = bytes([opcode]) + raw_amount.to_bytes(8, "little")
    ix = Instruction(
        Pubkey.from_string(program_id),
        data,
        [
            AccountMeta(token_account, is_signer=False, is_writable=True),
            AccountMeta(mint, is_signer=False, is_writable=True),
            AccountMeta(authority.pubkey(), is_signer=True, is_writable=False),
        ],
    )
    message = MessageV0.try_compile(authority.pubkey(), [ix], [], Hash.default())
    tx = VersionedTransaction(message, [authority])
    raw = bytes(tx)
    result = {
        "slot": 1,
        "meta": {
            "err": {"InstructionError": [0, "Custom"]} if failed else None,
            "loadedAddresses": {"writable": [], "readonly": []},
        },
        "transaction": [base64.b64encode(raw).decode(), "base64"],
    }
    return BurnTx(signature=str(tx.signatures[0]), raw=raw, result=result)


@pytest.fixture
def fake_rpc() -> FakeSolanaRpc:
    return FakeSolanaRpc()


@pytest.fixture
def burn_tx_factory() -> Callable[..., BurnTx]:
    return build_burn_transaction


# ---------------------------------------------------------------------------
# App + infrastructure
# ---------------------------------------------------------------------------


@asynccontextmanager
async def open_session() -> AsyncIterator[AsyncSession]:
    """A session from the app's factory, closed on exit."""
    sessions = get_session()
    session = await anext(sessions)
    try:
        yield session
    finally:
        await sessions.aclose()


async def _reset_state() -> None:
    async with open_session() as session:
        await session.execute(text(f"TRUNCATE TABLE {', '.join(PIXEY_TABLES)} RESTART IDENTITY CASCADE"))  # noqa: S608
        await session.commit()
    # Re-seeds the game settings row
    await create_schema()

    redis = get_redis()
    for pattern in ["ratelimit:*", "auth:nonce:*"]:
        keys = await redis.keys(pattern)
        if keys:
            await redis.delete(*keys)


@pytest_asyncio.fixture
async def client(fake_rpc: FakeSolanaRpc) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP test client against a live PostgreSQL and Redis.

    Skips when either is unreachable.
    """
    get_settings.cache_clear()
    settings = get_settings()
    try:
        await init_db(settings.database_url, pool_size=5)
        await init_redis(settings.redis_url)
        await get_redis().ping()
        await create_schema()
    except Exception as exc:
        await close_db()
        await close_redis()
        pytest.skip(f"PostgreSQL/Redis unavailable: {exc}")

    await _reset_state()

    app = create_app()
    app.dependency_overrides[get_solana_rpc] = lambda: fake_rpc

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    await close_db()
    await close_redis()


@pytest_asyncio.fixture
async def db_session(client: AsyncClient) -> AsyncGenerator[AsyncSession, None]:  # noqa: ARG001
    """Direct database session for arranging data and asserting on it."""
    async with open_session() as session:
        yield session


@pytest_asyncio.fixture
async def redis_client(client: AsyncClient) -> Any:  # noqa: ARG001, ANN401
    return get_redis()


# ---------------------------------------------------------------------------
# Wallet login
# ---------------------------------------------------------------------------


@dataclass
class Player:
    keypair: Keypair
    wallet: str
    token: str
    login_data: dict[str, Any]

    @property
    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}


async def sign_in(client: AsyncClient, keypair: Keypair | None = None) -> Player:
    """Run the challenge + signature login flow for ``keypair``."""
    keypair = keypair or Keypair()
    wallet = str(keypair.pubkey())

    response = await client.post("/api/auth/challenge", json={"wallet_address": wallet})
    assert response.status_code == 200, response.text
    challenge = response.json()["data"]

    signature = keypair.sign_message(challenge["message"].encode())
    response = await client.post(
        "/api/auth",
        json={
            "wallet_address": wallet,
            "message": challenge["message"],
            "signature": str(signature),
            "nonce": challenge["nonce"],
        },
    )
    assert response.status_code == 200, response.text
    data = response.json()["data"]
    return Player(keypair=keypair, wallet=wallet, token=data["token"], login_data=data)


@pytest.fixture
def login(client: AsyncClient) -> Callable[..., Awaitable[Player]]:
    async def _login(keypair: Keypair | None = None) -> Player:
        return await sign_in(client, keypair)

    return _login


@pytest_asyncio.fixture
async def player(login: Callable[..., Awaitable[Player]]) -> Player:
    """A freshly signed-up wallet holding the starting grant."""
    return await login()


async def set_balance(db: AsyncSession, wallet: str, free_pixels: int) -> None:
    await db.execute(
        text("UPDATE pixey_users SET free_pixels = :n WHERE wallet_address = :w"),
        {"n": free_pixels, "w": wallet},
    )
    await db.commit()


@pytest.fixture
def balance_setter(db_session: AsyncSession) -> Callable[[str, int], Awaitable[None]]:
    async def _set(wallet: str, free_pixels: int) -> None:
        await set_balance(db_session, wallet, free_pixels)

    return _set
