"""Fixed-window request budget per client IP, counted in Redis."""

import time
from typing import Any

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from pixey.redis_client import get_redis_optional

# Liveness and readiness probes are never throttled
_EXEMPT_PATHS = frozenset({"/health", "/ready"})


def client_ip(request: Request) -> str:
    """The socket peer. Behind a trusted proxy uvicorn's ``--proxy-headers`` rewrites it."""
    return request.client.host if request.client else "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Allow ``requests_per_window`` requests per IP in each ``window_seconds`` window.

    Counters live under ``ratelimit:{ip}:{window}`` and expire one second
    after their window closes. When Redis is not initialized the budget is
    not enforced.
    """

    def __init__(self, app: Any, requests_per_window: int = 300, window_seconds: int = 60) -> None:  # noqa: ANN401
        super().__init__(app)
        self.limit = requests_per_window
        self.window_seconds = window_seconds

    def _key(self, request: Request) -> str:
        window = int(time.time()) // self.window_seconds
        return f"ratelimit:{client_ip(request)}:{window}"

    async def _count(self, key: str) -> int | None:
        redis = get_redis_optional()
        if redis is None:
            return None
        async with redis.pipeline(transaction=True) as pipe:
            pipe.incr(key)
            pipe.expire(key, self.window_seconds + 1)
            hits, _ = await pipe.execute()
        return int(hits)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.url.path in _EXEMPT_PATHS:
            return await call_next(request)

        hits = await self._count(self._key(request))
        if hits is None:
            return await call_next(request)

        if hits > self.limit:
            return JSONResponse(
                status_code=429,
                content={"success": False, "error": "Rate limit exceeded. Try again later."},
                headers={
                    "Retry-After": str(self.window_seconds),
                    "X-RateLimit-Remaining": "0",
                    "X-RateLimit-Limit": str(self.limit),
                },
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Remaining"] = str(max(0, self.limit - hits))
        response.headers["X-RateLimit-Limit"] = str(self.limit)
        return response
