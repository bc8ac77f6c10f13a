"""Health, readiness, and version endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from pixey.config import get_settings
from pixey.database import get_session
from pixey.redis_client import check_redis
from pixey.schemas import ApiResponse, ok
from pixey.ws.manager import manager

router = APIRouter()


@router.get("/health", response_model=ApiResponse[dict[str, str]])
async def health() -> ApiResponse[dict[str, str]]:
    """Liveness probe: 200 while the process is alive."""
    return ok({"status": "healthy"})


@router.get("/ready", response_model=ApiResponse[dict[str, object]])
async def readiness(
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> ApiResponse[dict[str, object]]:
    """Readiness probe: checks DB and Redis connectivity."""
    checks: dict[str, object] = {}

    try:
        result = await db.execute(text("SELECT 1"))
        result.scalar()
        checks["database"] = "ok"
    except Exception as exc:
        checks["database"] = f"error: {exc}"

    checks["redis"] = await check_redis()

    all_ok = all(v == "ok" for v in checks.values())
    return ok(
        {
            "status": "ready" if all_ok else "degraded",
            "checks": checks,
            "websocket_connections": manager.connection_count,
        }
    )


@router.get("/version", response_model=ApiResponse[dict[str, str]])
async def version() -> ApiResponse[dict[str, str]]:
    """Return API version and environment."""
    settings = get_settings()
    return ok({"version": settings.app_version, "environment": settings.environment})
