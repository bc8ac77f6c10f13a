"""``/ws`` push endpoint for board, game and notification updates.

Client -> server frames::

    {"action": "subscribe", "channel": "board"}
    {"action": "unsubscribe", "channel": "board"}
    {"action": "ping"}

Server -> client frames::

    {"channel": "board", "data": {...}}
    {"type": "subscribed" | "unsubscribed", "channel": "board"}
    {"type": "pong"}
    {"type": "error", "message": "..."}
"""

import json
import uuid
from typing import Any

import jwt
import structlog
from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect

from pixey.auth.jwt import verify_token
from pixey.ws.manager import manager

logger = structlog.get_logger()

router = APIRouter()

AUTH_FAILED_CLOSE_CODE = 4001


def _error(message: str) -> dict[str, str]:
    return {"type": "error", "message": message}


async def _handle(conn_id: str, msg: dict[str, Any]) -> dict[str, str]:
    """Apply one client frame and build the reply."""
    action = msg.get("action")
    channel = str(msg.get("channel", ""))

    if action == "ping":
        return {"type": "pong"}
    if action == "subscribe":
        if await manager.subscribe(conn_id, channel):
            return {"type": "subscribed", "channel": channel}
        return _error(f"Invalid channel: {channel}")
    if action == "unsubscribe":
        await manager.unsubscribe(conn_id, channel)
        return {"type": "unsubscribed", "channel": channel}
    return _error(f"Unknown action: {action}")


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket, token: str | None = Query(None)) -> None:
    """Anonymous sockets get public channels; a valid ``token`` also binds the wallet.

    A token that fails verification closes the socket with code 4001 before it
    is accepted.
    """
    wallet_address: str | None = None
    if token:
        try:
            wallet_address = verify_token(token, expected_type="access")["wallet_address"]
        except jwt.InvalidTokenError as e:
            await websocket.close(code=AUTH_FAILED_CLOSE_CODE, reason=f"Authentication failed: {e}")
            return

    conn_id = str(uuid.uuid4())
    await manager.connect(websocket, conn_id, wallet_address)
    try:
        while True:
            raw = await websocket.receive_text()
            try:
                msg = json.loads(raw)
            except json.JSONDecodeError:
                await websocket.send_json(_error("Invalid JSON"))
                continue
            if not isinstance(msg, dict):
                await websocket.send_json(_error("Expected a JSON object"))
                continue
            await websocket.send_json(await _handle(conn_id, msg))
    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("ws_error", conn_id=conn_id)
    finally:
        await manager.disconnect(conn_id)
