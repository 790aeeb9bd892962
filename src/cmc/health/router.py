"""Liveness, readiness and version probes."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from redis.asyncio import Redis
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from cmc.config import get_settings
from cmc.database import get_session
from cmc.redis_client import get_redis

router = APIRouter()

_HEALTHY = {"ok", "disabled"}


async def _database_status(db: AsyncSession) -> str:
    try:
        await db.scalar(text("SELECT 1"))
    except SQLAlchemyError as exc:
        return f"error: {exc.__class__.__name__}"
    return "ok"


async def _redis_status(redis: Redis | None) -> str:
    if redis is None:
        return "disabled"
    try:
        await redis.ping()
    except (RedisError, OSError) as exc:
        return f"error: {exc.__class__.__name__}"
    return "ok"


@router.get("/health")
@router.get("/api/health")
async def health() -> dict[str, object]:
    """Liveness: 200 while the process serves requests."""
    return {"success": True, "status": "healthy", "message": "CryptoMine Capital API is running"}


@router.get("/ready")
async def readiness(
    db: AsyncSession = Depends(get_session),  # noqa: B008
    redis: Redis | None = Depends(get_redis),  # noqa: B008
) -> JSONResponse:
    """Readiness: 200 when every configured backend answers, 503 otherwise."""
    checks = {"database": await _database_status(db), "redis": await _redis_status(redis)}
    ready = set(checks.values()) <= _HEALTHY
    return JSONResponse(
        status_code=200 if ready else 503,
        content={"status": "ready" if ready else "degraded", "checks": checks},
    )


@router.get("/version")
async def version() -> dict[str, str]:
    settings = get_settings()
    return {"version": settings.app_version, "environment": settings.environment}
