"""
FastAPI application factory and configuration.

This module creates the FastAPI application instance,
configures exception handlers, and lifespan events. The lifespan is the
single owner of every collaborator: it builds the repository, notifier
and signer from settings, stores them on app.state, and releases them
on shutdown.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from psycopg_pool import ConnectionPool

from otpgate import __version__
from otpgate.adapters.repository import (
    InMemoryUserRepository,
    PostgresUserRepository,
    run_migrations,
)
from otpgate.adapters.signer import JwtSessionSigner
from otpgate.adapters.smtp import ConsoleNotifier, SmtpNotifier
from otpgate.api.routes import router
from otpgate.config.logging import setup_logging
from otpgate.config.settings import Settings, get_settings
from otpgate.domain.ports import Notifier

logger = logging.getLogger(__name__)

# OpenAPI tags for documentation grouping
tags_metadata = [
    {
        "name": "accounts",
        "description": "Register, verify, log in and log out with email one-time codes",
    },
]


def build_notifier(settings: Settings) -> Notifier:
    if settings.email_backend == "smtp":
        return SmtpNotifier(
            host=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_username,
            password=settings.smtp_password,
            sender_name=settings.mail_sender_name,
            use_tls=settings.smtp_use_tls,
        )
    return ConsoleNotifier()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI lifespan context manager.

    Manages application startup and shutdown:
    - Creates the database connection pool and runs migrations (postgres backend)
    - Builds notifier and token signer
    - Closes the connection pool on shutdown
    """
    settings: Settings = app.state.settings
    setup_logging(settings.log_level)

    logger.info("Starting application...")

    pool = None
    if settings.storage_backend == "postgres":
        logger.info("Connecting to database...")
        pool = ConnectionPool(
            conninfo=settings.database_url,
            min_size=settings.pool_min_size,
            max_size=settings.pool_max_size,
            open=True,
        )
        logger.info("Running database migrations...")
        run_migrations(pool)
        app.state.repository = PostgresUserRepository(pool)
    else:
        logger.warning("Using in-memory storage; accounts are lost on restart")
        app.state.repository = InMemoryUserRepository()

    app.state.notifier = build_notifier(settings)
    app.state.signer = JwtSessionSigner(settings.jwt_secret, settings.jwt_algorithm)

    logger.info("Application startup complete")

    yield

    # Shutdown
    logger.info("Shutting down application...")
    if pool is not None:
        pool.close()
        logger.info("Database connection pool closed")


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Answer malformed, missing or unknown request fields with 400."""
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"][1:]) or "body"
        problems.append(f"{location}: {error['msg']}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "; ".join(problems)},
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application; settings default to the environment."""
    app = FastAPI(
        title="otpgate",
        description="Account lifecycle API - email OTP verification, admin approval gate, OTP login",
        version=__version__,
        openapi_tags=tags_metadata,
        lifespan=lifespan,
    )
    app.state.settings = settings or get_settings()
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.include_router(router)

    @app.get("/", response_class=PlainTextResponse, include_in_schema=False)
    async def liveness() -> str:
        return "otpgate backend is running"

    return app

