"""Publish committed writes over Redis pub/sub for WebSocket delivery."""

from __future__ import annotations

import json
import logging
from typing import Any

logger = logging.getLogger(__name__)

PIXELS_PLACED = "pubsub:pixels_placed"
NOTIFICATION = "pubsub:notification"
STAGE_UPGRADED = "pubsub:stage_upgraded"


async def publish_event(redis: Any | None, channel: str, payload: dict[str, Any]) -> None:  # noqa: ANN401
    """Publish ``payload`` on ``channel``. Call only after the transaction commits.

    Best effort: polling endpoints remain the source of truth, so a failed
    publish is logged and swallowed.
    """
    if redis is None:
        return
    try:
        await redis.publish(channel, json.dumps(payload, default=str))
    except Exception:
        logger.warning("Failed to publish event on %s", channel, exc_info=True)
