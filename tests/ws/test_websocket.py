"""WebSocket integration tests: auth and connection lifecycle."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import jwt as pyjwt
import pytest
from fastapi.testclient import TestClient
from starlette.testclient import TestClient as StarletteTestClient
from starlette.websockets import WebSocketDisconnect

from pixey.auth.jwt import create_access_token
from pixey.config import get_settings

WALLET = "9WzDXwBbmkg8ZTbNMqUxvQRAyrZzDsGYdLVL9zYtAWWM"


@pytest.fixture
def ws_token() -> str:
    return create_access_token(WALLET)


@pytest.fixture
def expired_ws_token() -> str:
    settings = get_settings()
    now = datetime.now(timezone.utc)
    payload = {
        "sub": WALLET,
        "wallet_address": WALLET,
        "iat": now - timedelta(hours=2),
        "exp": now - timedelta(hours=1),  # already expired
        "iss": settings.jwt_issuer,
        "type": "access",
    }
    return pyjwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


@pytest.fixture
def test_client() -> StarletteTestClient:
    """Sync TestClient without lifespan; the socket endpoint needs no database."""
    from pixey.main import create_app

    return TestClient(create_app())


class TestWebSocketAuth:
    def test_anonymous_connection(self, test_client: StarletteTestClient) -> None:
        with test_client.websocket_connect("/ws") as ws:
            ws.send_json({"action": "ping"})
            assert ws.receive_json() == {"type": "pong"}

    def test_connect_with_valid_token(self, test_client: StarletteTestClient, ws_token: str) -> None:
        with test_client.websocket_connect(f"/ws?token={ws_token}") as ws:
            ws.send_json({"action": "ping"})
            assert ws.receive_json()["type"] == "pong"

    def test_connect_with_invalid_token(self, test_client: StarletteTestClient) -> None:
        """Invalid JWT closes with code 4001."""
        with pytest.raises(WebSocketDisconnect) as exc_info:
            with test_client.websocket_connect("/ws?token=invalid.jwt.token") as ws:
                ws.receive_json()
        assert exc_info.value.code == 4001

    def test_connect_with_expired_token(self, test_client: StarletteTestClient, expired_ws_token: str) -> None:
        with pytest.raises(WebSocketDisconnect) as exc_info:
            with test_client.websocket_connect(f"/ws?token={expired_ws_token}") as ws:
                ws.receive_json()
        assert exc_info.value.code == 4001


class TestWebSocketProtocol:
    def test_subscribe_and_unsubscribe(self, test_client: StarletteTestClient) -> None:
        with test_client.websocket_connect("/ws") as ws:
            ws.send_json({"action": "subscribe", "channel": "board"})
            assert ws.receive_json() == {"type": "subscribed", "channel": "board"}
            ws.send_json({"action": "unsubscribe", "channel": "board"})
            assert ws.receive_json() == {"type": "unsubscribed", "channel": "board"}

    def test_invalid_channel(self, test_client: StarletteTestClient) -> None:
        with test_client.websocket_connect("/ws") as ws:
            ws.send_json({"action": "subscribe", "channel": "mining"})
            data = ws.receive_json()
            assert data["type"] == "error"
            assert "Invalid channel" in data["message"]

    def test_invalid_json(self, test_client: StarletteTestClient) -> None:
        with test_client.websocket_connect("/ws") as ws:
            ws.send_text("not valid json {{{")
            data = ws.receive_json()
            assert data["type"] == "error"
            assert "Invalid JSON" in data["message"]

    def test_non_object_message(self, test_client: StarletteTestClient) -> None:
        with test_client.websocket_connect("/ws") as ws:
            ws.send_text("[1, 2, 3]")
            assert ws.receive_json()["type"] == "error"

    def test_unknown_action(self, test_client: StarletteTestClient) -> None:
        with test_client.websocket_connect("/ws") as ws:
            ws.send_json({"action": "explode"})
            data = ws.receive_json()
            assert data["type"] == "error"
            assert "Unknown action" in data["message"]
