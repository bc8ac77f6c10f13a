"""Process-wide Redis client.

One pool serves the three Redis concerns of the API: login challenge nonces,
rate-limit counters and the pub/sub fan-out to WebSocket clients.
"""

import redis.asyncio as redis

_client: redis.Redis | None = None


async def init_redis(url: str, max_connections: int = 50) -> None:
    """Create the shared client. Responses are decoded to ``str``."""
    global _client  # noqa: PLW0603
    _client = redis.from_url(  # type: ignore[no-untyped-call]
        url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=max_connections,
        health_check_interval=30,
    )


async def close_redis() -> None:
    global _client  # noqa: PLW0603
    if _client is not None:
        await _client.aclose()
        _client = None


def get_redis() -> redis.Redis:
    """FastAPI dependency for endpoints that cannot work without Redis.

    Raises:
        RuntimeError: If ``init_redis`` has not run.
    """
    if _client is None:
        msg = "Redis not initialized. Call init_redis() first."
        raise RuntimeError(msg)
    return _client


def get_redis_optional() -> redis.Redis | None:
    """The client, or None before startup. For best-effort side channels."""
    return _client


async def check_redis() -> str:
    """``"ok"`` when Redis answers PING, otherwise a short error description."""
    if _client is None:
        return "error: not initialized"
    try:
        await _client.ping()
    except (redis.RedisError, OSError) as exc:
        return f"error: {exc}"
    return "ok"
