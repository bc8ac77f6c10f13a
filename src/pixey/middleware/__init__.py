"""Middleware stack for the Pixey API."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pixey.config import Settings
from pixey.middleware.error_handler import setup_error_handlers
from pixey.middleware.logging import setup_logging
from pixey.middleware.rate_limit import RateLimitMiddleware
from pixey.middleware.request_id import RequestIdMiddleware

# Headers the browser client reads back (request tracing and remaining budget)
EXPOSED_HEADERS = ["X-Request-Id", "X-RateLimit-Remaining", "X-RateLimit-Limit"]


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Install logging, error envelopes and the HTTP middleware chain.

    Starlette runs middleware outermost-last-added, so the order below yields
    CORS -> request id -> rate limit -> routes. CORS has to wrap the
    rate limiter or a 429 reaches the browser without CORS headers.
    """
    setup_logging(settings)
    setup_error_handlers(app)
    app.add_middleware(
        RateLimitMiddleware,
        requests_per_window=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Request-Id"],
        expose_headers=EXPOSED_HEADERS,
    )
