# File: src/campusbill/main.py
"""FastAPI application factory."""

import os
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator

import uvicorn
from fastapi import FastAPI
from starlette.middleware.sessions import SessionMiddleware

from campusbill.core.logging import configure_logging, get_logger

configure_logging(os.getenv("LOG_LEVEL", "INFO"))
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan context manager for startup and shutdown events."""
    start_time = datetime.now()
    logger.info("app.startup", message="campusbill starting up", timestamp=start_time.isoformat())

    from campusbill.api.health import set_app_start_time
    from campusbill.core.db import init_models

    set_app_start_time(start_time)
    await init_models()

    yield

    logger.info("app.shutdown", message="campusbill shutting down gracefully")


def _setup_middleware(app: FastAPI, environment: str, session_secret_key: str) -> None:
    """Configure all middleware in correct order."""
    # Last added = first executed: request id, then session, then sentry context
    from campusbill.core.session import SESSION_MAX_AGE
    from campusbill.middleware.logging import RequestIDMiddleware
    from campusbill.middleware.sentry import SentryContextMiddleware

    app.add_middleware(SentryContextMiddleware)
    app.add_middleware(
        SessionMiddleware,
        secret_key=session_secret_key,
        max_age=SESSION_MAX_AGE,
        https_only=environment == "production",
        same_site="lax",
    )
    app.add_middleware(RequestIDMiddleware)


def _register_routers(app: FastAPI) -> None:
    """Register all API routers."""
    from campusbill.api.auth import router as auth_router
    from campusbill.api.billing import router as billing_router
    from campusbill.api.health import router as health_router
    from campusbill.api.records import router as records_router

    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(records_router)
    app.include_router(billing_router)


def create_app() -> FastAPI:
    """Application factory for campusbill."""
    from campusbill.core.exception_handlers import register_exception_handlers
    from campusbill.core.sentry import init_sentry

    init_sentry()

    app = FastAPI(
        title="campusbill API",
        description="University student billing back-end",
        version="0.1.0",
        lifespan=lifespan,
    )

    register_exception_handlers(app)

    session_secret_key = os.getenv("SESSION_SECRET_KEY", "dev-secret-key-change-in-production")
    environment = os.getenv("ENVIRONMENT", "development")

    _setup_middleware(app, environment, session_secret_key)
    _register_routers(app)

    logger.info("app.configured", message="FastAPI application created successfully")

    return app


def run() -> None:
    """Development server entrypoint."""
    uvicorn.run(
        "campusbill.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
