"""FastAPI application entry point for the trustless escrow ledger.

Lifecycle:
    1. Startup: Initialize logging and the database (tables in dev mode).
    2. Running: Serve the REST API on a single Uvicorn process.
    3. Shutdown: Dispose of the database engine.

Run with:
    uvicorn trustless_escrow.main:app --reload --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI

from trustless_escrow.config import get_settings
from trustless_escrow.logging_config import get_logger, setup_logging

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application startup and shutdown lifecycle."""
    settings = get_settings()

    setup_logging(
        log_level=settings.app_log_level,
        json_logs=not settings.is_development,
    )
    logger = get_logger(__name__)
    logger.info(
        "app.starting",
        env=settings.app_env,
        debug=settings.app_debug,
        custodial_account=settings.custodial_account,
        admin_enabled=bool(settings.admin_api_key),
    )

    from trustless_escrow.infrastructure.database.engine import close_db, init_db

    await init_db()

    logger.info("app.started", host=settings.app_host, port=settings.app_port)

    yield

    logger.info("app.shutting_down")
    await close_db()
    logger.info("app.stopped")


def create_app() -> FastAPI:
    """Application factory — creates and configures the FastAPI app."""
    settings = get_settings()

    app = FastAPI(
        title="Trustless Escrow",
        description=(
            "Escrow ledger with arbitrator-mediated dispute resolution "
            "and participant reputation."
        ),
        version="0.1.0",
        lifespan=lifespan,
        debug=settings.app_debug,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
    )

    from trustless_escrow.api.middleware import setup_middleware

    setup_middleware(app)

    from trustless_escrow.api.routes.admin import router as admin_router
    from trustless_escrow.api.routes.escrow import router as escrow_router
    from trustless_escrow.api.routes.health import router as health_router
    from trustless_escrow.api.routes.reputation import router as reputation_router

    app.include_router(health_router)
    app.include_router(escrow_router)
    app.include_router(reputation_router)
    app.include_router(admin_router)

    return app


# The app instance used by Uvicorn
app = create_app()
