"""FastAPI application factory."""

import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from pixey.artworks.router import router as artworks_router
from pixey.auth.router import router as auth_router
from pixey.burns.router import router as burns_router
from pixey.config import get_settings
from pixey.database import close_db, create_schema, init_db
from pixey.game.router import router as game_router
from pixey.health.router import router as health_router
from pixey.middleware import setup_middleware
from pixey.pixels.router import router as pixels_router
from pixey.redis_client import close_redis, get_redis, init_redis
from pixey.social.router import router as social_router
from pixey.users.router import router as users_router
from pixey.ws.bridge import PubSubBridge
from pixey.ws.router import router as ws_router


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url, pool_size=settings.database_pool_size)
    await init_redis(settings.redis_url, max_connections=settings.redis_max_connections)

    # Tables and the game settings row (idempotent)
    if settings.create_schema_on_startup:
        await create_schema()

    # Start the Redis pub/sub -> WebSocket bridge
    bridge = PubSubBridge(get_redis())
    bridge_task = asyncio.create_task(bridge.start())

    yield

    await bridge.stop()
    bridge_task.cancel()
    try:
        await bridge_task
    except asyncio.CancelledError:
        pass

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Pixey API",
        description="Backend API for Pixey, a collaborative pixel board paid for with Solana token burns",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(pixels_router)
    app.include_router(burns_router)
    app.include_router(game_router)
    app.include_router(social_router)
    app.include_router(artworks_router)
    app.include_router(ws_router)

    return app


app = create_app()
