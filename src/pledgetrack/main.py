"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError

from pledgetrack.campaigns.router import router as campaigns_router
from pledgetrack.campaigns.seed import seed_catalog
from pledgetrack.config import get_settings
from pledgetrack.database import close_db, get_session, init_db
from pledgetrack.health.router import router as health_router
from pledgetrack.middleware import setup_middleware
from pledgetrack.notifications.router import router as notifications_router
from pledgetrack.participants.router import router as participants_router
from pledgetrack.pledges.router import router as pledges_router
from pledgetrack.redis_client import close_redis, init_redis
from pledgetrack.social.router import router as social_router

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)

    try:
        await init_redis(settings.redis_url)
    except (RedisError, ValueError):
        logger.warning("redis_init_failed", exc_info=True)

    # Seed the challenge catalog (idempotent)
    try:
        async for db in get_session():
            await seed_catalog(db)
            break
    except SQLAlchemyError:
        logger.warning("catalog_seed_failed", hint="tables may not exist yet", exc_info=True)

    yield

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="PledgeTrack API",
        description="Backend API for PledgeTrack: pledge-per-unit fundraising challenges",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(campaigns_router)
    app.include_router(participants_router)
    app.include_router(pledges_router)
    app.include_router(social_router)
    app.include_router(notifications_router)

    return app


app = create_app()
