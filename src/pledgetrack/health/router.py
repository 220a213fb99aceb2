"""Liveness, readiness and version probes."""

from fastapi import APIRouter, Depends
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from pledgetrack.config import get_settings
from pledgetrack.database import get_session
from pledgetrack.redis_client import get_redis_or_none

router = APIRouter()


async def _check_database(db: AsyncSession) -> str:
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        return f"error: {exc}"
    return "ok"


async def _check_redis() -> str:
    redis = get_redis_or_none()
    if redis is None:
        return "disabled"
    try:
        await redis.ping()
    except (RedisError, OSError) as exc:
        return f"error: {exc}"
    return "ok"


@router.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe: 200 while the process is alive."""
    return {"status": "healthy"}


@router.get("/ready")
async def readiness(
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> dict[str, object]:
    """Ready when the database answers; Redis only degrades rate limiting."""
    checks = {"database": await _check_database(db), "redis": await _check_redis()}
    return {"status": "ready" if checks["database"] == "ok" else "degraded", "checks": checks}


@router.get("/version")
async def version() -> dict[str, str]:
    settings = get_settings()
    return {"version": settings.app_version, "environment": settings.environment}
