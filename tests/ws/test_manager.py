"""Unit tests for WebSocket ConnectionManager."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from pixey.ws.manager import VALID_CHANNELS, ConnectionManager

WALLET = "9WzDXwBbmkg8ZTbNMqUxvQRAyrZzDsGYdLVL9zYtAWWM"
OTHER_WALLET = "HN7cABqLq46Es1jh92dQQisAq662SmxELLLsHHe4YWrH"


@pytest.fixture
def mgr() -> ConnectionManager:
    """Fresh ConnectionManager for each test."""
    return ConnectionManager()


def _make_ws(*, fail_send: bool = False) -> MagicMock:
    """Create a mock WebSocket."""
    ws = AsyncMock()
    ws.accept = AsyncMock()
    if fail_send:
        ws.send_text = AsyncMock(side_effect=RuntimeError("connection closed"))
    else:
        ws.send_text = AsyncMock()
    return ws


class TestConnect:
    async def test_anonymous_connection(self, mgr: ConnectionManager) -> None:
        ws = _make_ws()
        await mgr.connect(ws, "conn-1")
        ws.accept.assert_awaited_once()
        assert mgr.connection_count == 1
        assert mgr.get_stats()["unique_wallets"] == 0

    async def test_multiple_connections_same_wallet(self, mgr: ConnectionManager) -> None:
        await mgr.connect(_make_ws(), "conn-1", WALLET)
        await mgr.connect(_make_ws(), "conn-2", WALLET)
        stats = mgr.get_stats()
        assert stats["total_connections"] == 2
        assert stats["unique_wallets"] == 1


class TestDisconnect:
    async def test_disconnect_cleans_up(self, mgr: ConnectionManager) -> None:
        await mgr.connect(_make_ws(), "conn-1", WALLET)
        await mgr.subscribe("conn-1", "board")
        await mgr.disconnect("conn-1")
        stats = mgr.get_stats()
        assert stats["total_connections"] == 0
        assert stats["unique_wallets"] == 0
        assert "board" not in stats["channels"]

    async def test_disconnect_unknown_is_noop(self, mgr: ConnectionManager) -> None:
        await mgr.disconnect("missing")
        assert mgr.connection_count == 0


class TestSubscriptions:
    async def test_valid_channels(self, mgr: ConnectionManager) -> None:
        await mgr.connect(_make_ws(), "conn-1")
        for channel in VALID_CHANNELS:
            assert await mgr.subscribe("conn-1", channel)
        assert set(mgr.get_stats()["channels"]) == VALID_CHANNELS

    async def test_invalid_channel(self, mgr: ConnectionManager) -> None:
        await mgr.connect(_make_ws(), "conn-1")
        assert not await mgr.subscribe("conn-1", "mining")

    async def test_unknown_connection(self, mgr: ConnectionManager) -> None:
        assert not await mgr.subscribe("ghost", "board")
        assert not await mgr.unsubscribe("ghost", "board")

    async def test_unsubscribe(self, mgr: ConnectionManager) -> None:
        await mgr.connect(_make_ws(), "conn-1")
        await mgr.subscribe("conn-1", "board")
        assert await mgr.unsubscribe("conn-1", "board")
        assert "board" not in mgr.get_stats()["channels"]


class TestBroadcast:
    async def test_only_subscribers_receive(self, mgr: ConnectionManager) -> None:
        subscribed, idle = _make_ws(), _make_ws()
        await mgr.connect(subscribed, "conn-1")
        await mgr.connect(idle, "conn-2")
        await mgr.subscribe("conn-1", "board")

        sent = await mgr.broadcast_to_channel("board", {"pixels": [{"x": 1}]})
        assert sent == 1
        payload = json.loads(subscribed.send_text.call_args[0][0])
        assert payload == {"channel": "board", "data": {"pixels": [{"x": 1}]}}
        idle.send_text.assert_not_awaited()

    async def test_empty_channel(self, mgr: ConnectionManager) -> None:
        assert await mgr.broadcast_to_channel("game", {"x": 1}) == 0

    async def test_failed_send_disconnects(self, mgr: ConnectionManager) -> None:
        await mgr.connect(_make_ws(fail_send=True), "conn-1")
        await mgr.subscribe("conn-1", "board")
        assert await mgr.broadcast_to_channel("board", {}) == 0
        assert mgr.connection_count == 0


class TestSendToWallet:
    async def test_routes_to_wallet_subscribers_only(self, mgr: ConnectionManager) -> None:
        mine, mine_unsubscribed, theirs = _make_ws(), _make_ws(), _make_ws()
        await mgr.connect(mine, "conn-1", WALLET)
        await mgr.connect(mine_unsubscribed, "conn-2", WALLET)
        await mgr.connect(theirs, "conn-3", OTHER_WALLET)
        await mgr.subscribe("conn-1", "notifications")
        await mgr.subscribe("conn-3", "notifications")

        sent = await mgr.send_to_wallet(WALLET, "notifications", {"type": "burn_credited"})
        assert sent == 1
        mine.send_text.assert_awaited_once()
        mine_unsubscribed.send_text.assert_not_awaited()
        theirs.send_text.assert_not_awaited()

    async def test_unknown_wallet(self, mgr: ConnectionManager) -> None:
        assert await mgr.send_to_wallet(WALLET, "notifications", {}) == 0
