"""
FastAPI application entry point.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from forgetbridge.audit.router import router as audit_router
from forgetbridge.config import Settings, get_settings
from forgetbridge.erasure.datastore_client import DataStoreClient
from forgetbridge.shared.database import DatabaseManager
from forgetbridge.shared.exceptions import NotFoundError
from forgetbridge.shared.logging import CorrelationIdMiddleware, get_logger, setup_logging
from forgetbridge.webhooks.router import router as webhook_router

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    setup_logging()
    settings: Settings = app.state.settings

    logger.info("Application starting", extra={"env": settings.app_env})

    if settings.create_tables_on_startup:
        await app.state.db_manager.create_all()
        logger.info("Database tables ensured")

    yield

    logger.info("Shutting down application")
    await app.state.datastore_client.close()
    await app.state.db_manager.close()
    logger.info("Application shutdown complete")


def create_app(
    settings: Settings | None = None,
    db_manager: DatabaseManager | None = None,
    datastore_client: DataStoreClient | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Optional settings override.
        db_manager: Optional database manager (tests pass an in-memory one).
        datastore_client: Optional DataStore client (tests pass a mocked one).
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="forget-bridge",
        description="Right-to-erasure webhook bridge for DataStore user data",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    # Process-wide resources, disposed in the lifespan shutdown hook.
    app.state.settings = settings
    app.state.db_manager = db_manager or DatabaseManager(settings.database_url)
    app.state.datastore_client = datastore_client or DataStoreClient(
        base_url=settings.datastore_api_base_url,
        timeout=settings.datastore_timeout_seconds,
    )

    @app.exception_handler(NotFoundError)
    async def _not_found(_: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    app.add_middleware(CorrelationIdMiddleware)

    app.include_router(webhook_router)
    app.include_router(audit_router)

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        return {"status": "healthy"}

    return app


app = create_app()
