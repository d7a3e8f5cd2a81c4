"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from redis.exceptions import RedisError

from app.api import api_router
from app.config import Settings, get_settings
from app.core.container import Platform
from app.core.errors import register_exception_handlers
from app.core.jobs import init_arq_pool
from app.core.logging import RequestIdMiddleware, RequestLoggingMiddleware, configure_logging
from app.core.tenancy.middleware import TenantResolutionMiddleware
from app.core.tenancy.resolver import TenantResolver


logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler.

    Builds the platform on startup and releases its engines on shutdown.
    A platform already placed on ``app.state`` (tests) is reused.
    """
    settings: Settings = app.state.settings
    logger.info(
        "application_startup",
        app_name=settings.app_name,
        environment=settings.environment,
    )

    owns_platform = getattr(app.state, "platform", None) is None
    if owns_platform:
        app.state.platform = Platform.from_settings(settings)

    # Provisioning endpoints that enqueue jobs answer 503 without a pool
    app.state.arq_pool = None
    try:
        app.state.arq_pool = await init_arq_pool(settings)
        logger.info("arq_pool_initialized")
    except (OSError, RedisError) as e:
        logger.warning("arq_pool_init_failed", error=str(e))

    yield

    logger.info("application_shutdown")

    if app.state.arq_pool is not None:
        await app.state.arq_pool.close()
        logger.info("arq_pool_closed")

    if owns_platform:
        await app.state.platform.aclose()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Explicit settings; read from the environment when omitted

    Returns:
        Configured FastAPI application instance.
    """
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title=settings.app_name,
        description="Tenant lifecycle and database provisioning API",
        version="0.1.0",
        debug=settings.debug,
        lifespan=lifespan,
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        openapi_url="/openapi.json" if not settings.is_production else None,
    )
    app.state.settings = settings

    cors_origins = settings.cors_origin_list
    if settings.is_development and not cors_origins:
        cors_origins = ["http://localhost:3000", "http://localhost:5173"]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID", "X-Tenant-Year"],
    )

    # Added last runs first: request id, then tenant resolution, then logging
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        TenantResolutionMiddleware,
        resolver=TenantResolver.from_settings(settings),
    )
    app.add_middleware(RequestIdMiddleware)

    register_exception_handlers(app)

    app.include_router(api_router)

    return app
