"""
FastAPI Application Entry Point.

This is the main application file for the Finance Backend.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from finance_backend.app.api.v1.router import router as api_v1_router
from finance_backend.app.core.config import settings
from finance_backend.app.core.exceptions import (
    AppException,
    StorageUnavailableError,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)
from finance_backend.app.core.observability import ObservabilityMiddleware, configure_logging
from finance_backend.app.core.redis_client import ping_redis
from finance_backend.app.db.session import STORAGE_ERRORS, Database

logger = logging.getLogger("finance")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.

    1. Opens the Database and creates tables on startup.
    2. Disposes the connection pool on shutdown.
    """
    configure_logging(settings.log_level)

    database = Database.from_settings()
    await database.create_all()
    app.state.database = database
    logger.info("Database ready", extra={"app_name": settings.app_name})

    yield

    await database.dispose()
    logger.info("Database disposed")


# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Internal bookkeeping API: ledger, reimbursements and master data",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(ObservabilityMiddleware)

# Register global exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint.

    Returns:
        dict: Status and application information
    """
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.api_version,
        "redis": "connected" if await ping_redis() else "unavailable",
    }


@app.get("/health/db", tags=["Health"])
async def database_health_check(request: Request):
    """
    Database connectivity check.

    Returns 503 ERR_STORAGE_001 when the database cannot be reached.
    """
    try:
        await request.app.state.database.ping()
    except STORAGE_ERRORS as exc:
        logger.error("Database ping failed", extra={"error": str(exc)})
        raise StorageUnavailableError("Database unreachable") from exc
    return {"status": "healthy", "database": "connected"}


# Include API v1 router
app.include_router(api_v1_router, prefix=f"/{settings.api_version}")


@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint.

    Returns:
        dict: Welcome message and API documentation links
    """
    return {
        "message": "Welcome to Finance Backend API",
        "docs": "/docs",
        "health": "/health",
    }
