"""Redis pub/sub -> WebSocket fan-out.

Routers publish committed writes through ``pixey.ws.events``. The bridge runs
as a background task for the lifetime of the app, listening on those
channels and handing each event to the ``ConnectionManager``: board and game
events go to every subscriber, a notification addressed to one wallet goes
only to that wallet's sockets.
"""

import asyncio
import json
from typing import Any

import redis.asyncio as aioredis
import structlog

from pixey.db.models import GLOBAL_RECIPIENT
from pixey.ws import events
from pixey.ws.manager import ConnectionManager, manager

logger = structlog.get_logger()

CHANNEL_MAP: dict[str, str] = {
    events.PIXELS_PLACED: "board",
    events.NOTIFICATION: "notifications",
    events.STAGE_UPGRADED: "game",
}

POLL_TIMEOUT_SECONDS = 1.0


def _as_text(value: Any) -> str:  # noqa: ANN401
    return value.decode() if isinstance(value, bytes) else str(value)


def _decode(message: dict[str, Any]) -> tuple[str, dict[str, Any]] | None:
    """(channel, payload) of a pub/sub message, or None when the body is not a JSON object."""
    channel = _as_text(message.get("channel", ""))
    try:
        payload = json.loads(_as_text(message.get("data", "")))
    except (json.JSONDecodeError, UnicodeDecodeError):
        logger.warning("pubsub_invalid_message", channel=channel)
        return None
    if not isinstance(payload, dict):
        logger.warning("pubsub_invalid_message", channel=channel)
        return None
    return channel, payload


class PubSubBridge:
    def __init__(self, redis_client: aioredis.Redis, connections: ConnectionManager | None = None) -> None:
        self.redis = redis_client
        self.connections = connections or manager
        self._running = False

    async def dispatch(self, redis_channel: str, payload: dict) -> int:
        """Route one event. Returns how many sockets received it."""
        ws_channel = CHANNEL_MAP.get(redis_channel)
        if ws_channel is None:
            return 0

        message = {"type": redis_channel.removeprefix("pubsub:"), **payload}
        recipient = payload.get("recipient_wallet")
        if ws_channel == "notifications" and recipient and recipient != GLOBAL_RECIPIENT:
            return await self.connections.send_to_wallet(recipient, ws_channel, message)
        return await self.connections.broadcast_to_channel(ws_channel, message)

    async def start(self) -> None:
        """Listen until ``stop`` is called or the task is cancelled."""
        self._running = True
        pubsub = self.redis.pubsub()
        await pubsub.subscribe(*CHANNEL_MAP)
        logger.info("pubsub_bridge_started", channels=list(CHANNEL_MAP))

        try:
            while self._running:
                message = await pubsub.get_message(ignore_subscribe_messages=True, timeout=POLL_TIMEOUT_SECONDS)
                if message is None:
                    continue
                decoded = _decode(message)
                if decoded is None:
                    continue
                sent = await self.dispatch(*decoded)
                if sent:
                    logger.debug("pubsub_delivered", channel=decoded[0], recipients=sent)
        except asyncio.CancelledError:
            pass
        finally:
            await pubsub.unsubscribe()
            await pubsub.aclose()
            logger.info("pubsub_bridge_stopped")

    async def stop(self) -> None:
        self._running = False
