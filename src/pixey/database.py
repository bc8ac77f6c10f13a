"""Async SQLAlchemy engine, session management and schema bootstrap."""

from collections.abc import AsyncGenerator

import structlog
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from pixey.db.base import Base

logger = structlog.get_logger()

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


async def init_db(url: str, pool_size: int = 20) -> None:
    """Initialize the database engine and session factory."""
    global _engine, _session_factory  # noqa: PLW0603
    _engine = create_async_engine(
        url,
        pool_size=pool_size,
        max_overflow=10,
        pool_pre_ping=True,
        echo=False,
    )
    _session_factory = async_sessionmaker(
        _engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def close_db() -> None:
    """Dispose of the database engine."""
    global _engine, _session_factory  # noqa: PLW0603
    if _engine:
        await _engine.dispose()
        _engine = None
        _session_factory = None


def get_engine() -> AsyncEngine:
    """Get the async engine instance."""
    if _engine is None:
        msg = "Database not initialized. Call init_db() first."
        raise RuntimeError(msg)
    return _engine


async def create_schema() -> None:
    """Create all tables and seed the singleton game settings row.

    Idempotent: existing tables and the settings row are left untouched.
    """
    from pixey.db import models  # noqa: F401  (registers mappers)
    from pixey.db.models import GameSettings
    from pixey.game.stages import STAGES

    engine = get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
        first = STAGES[0]
        await conn.execute(
            pg_insert(GameSettings)
            .values(
                id=1,
                current_stage=first.number,
                total_tokens_burned=0,
                board_width=first.board_size,
                board_height=first.board_size,
                version=1,
            )
            .on_conflict_do_nothing(index_elements=[GameSettings.id])
        )
    logger.info("schema_ready")


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async database session (FastAPI dependency).

    Anything not committed by the handler is rolled back when the session closes.
    """
    if _session_factory is None:
        msg = "Database not initialized. Call init_db() first."
        raise RuntimeError(msg)
    async with _session_factory() as session:
        yield session
