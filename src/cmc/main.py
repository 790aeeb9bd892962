"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from cmc.admin.router import router as admin_router
from cmc.auth.router import router as auth_router
from cmc.auth.service import ensure_admin_user
from cmc.config import Settings, get_settings
from cmc.dashboard.router import router as dashboard_router
from cmc.database import Database
from cmc.email.service import EmailService, create_provider
from cmc.health.router import router as health_router
from cmc.middleware import setup_middleware
from cmc.mining.router import router as mining_router
from cmc.redis_client import close_redis, create_redis

logger = structlog.get_logger()


async def init_resources(app: FastAPI, settings: Settings) -> None:
    """Build the process-wide resources and attach them to ``app.state``."""
    database = Database(settings.database_url)
    redis = create_redis(settings.redis_url) if settings.redis_url else None

    app.state.db = database
    app.state.redis = redis
    app.state.email_service = EmailService(create_provider(settings), redis=redis)

    if settings.create_tables:
        await database.create_all()

    if settings.admin_password:
        async with database.session_factory() as session:
            await ensure_admin_user(session, settings.admin_email, settings.admin_password)
            await session.commit()

    logger.info(
        "resources_initialized",
        redis_enabled=redis is not None,
        email_provider=settings.email_provider,
    )


async def close_resources(app: FastAPI) -> None:
    """Release what ``init_resources`` created."""
    await close_redis(getattr(app.state, "redis", None))
    database: Database | None = getattr(app.state, "db", None)
    if database is not None:
        await database.dispose()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    await init_resources(app, get_settings())
    yield
    await close_resources(app)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="CryptoMine Capital API",
        description="Backend API for CryptoMine Capital: investor accounts, dashboards and mining pool administration",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(auth_router)
    app.include_router(dashboard_router)
    app.include_router(admin_router)
    app.include_router(mining_router)

    return app


app = create_app()
