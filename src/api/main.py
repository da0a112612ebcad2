"""Relay application factory.

``create_app`` wires logging, the error handlers, the correlation ID
middleware and the sample routes, and adds two service endpoints:
``/health`` for probes and ``/info`` for build metadata.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Annotated, Any

from fastapi import Depends, FastAPI
from loguru import logger

from src.api.middleware.error_handler import register_exception_handlers
from src.api.middleware.request_context import RequestContextMiddleware
from src.api.routes.samples import router as samples_router
from src.api.utils.responses import ORJSONResponse
from src.core.config import Settings, get_settings
from src.core.logging import setup_logging
from src.infrastructure.database.session import (
    check_database_connection,
    close_database,
)


@asynccontextmanager
async def lifespan(app_instance: FastAPI) -> AsyncGenerator[None]:
    """Log startup, and release pooled database connections on shutdown."""
    logger.info("{} v{} started", app_instance.title, app_instance.version)
    yield
    await close_database()
    logger.info("{} stopped", app_instance.title)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build a configured Relay application.

    Args:
        settings: Settings to build from; ``get_settings()`` when omitted.

    Returns:
        FastAPI: The application.
    """
    settings = settings or get_settings()
    setup_logging(settings)

    application = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        docs_url=settings.docs_url,
        redoc_url=settings.redoc_url,
        openapi_url=settings.openapi_url,
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
    )

    register_exception_handlers(application)
    application.add_middleware(RequestContextMiddleware)
    application.include_router(samples_router)

    @application.get("/health")
    async def health() -> dict[str, object]:
        """Report liveness; an unreachable database only degrades the status."""
        database_ok, error = await check_database_connection()
        if not database_ok:
            logger.warning("Database unreachable: {}", error)
        return {
            "status": "healthy" if database_ok else "degraded",
            "database": database_ok,
        }

    @application.get("/info")
    async def info(
        app_settings: Annotated[Settings, Depends(get_settings)],
    ) -> dict[str, Any]:
        """Describe the running build."""
        return {
            "app_name": app_settings.app_name,
            "version": app_settings.app_version,
            "environment": app_settings.environment,
            "debug": app_settings.debug,
        }

    return application


app = create_app()
