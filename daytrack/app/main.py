"""
FastAPI Application Entry Point.

Serves the driver history dashboard and the baby activity tracker APIs.
"""

import logging
import socket
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from daytrack.app.core.config import settings
from daytrack.app.api.v1.router import router as api_v1_router
from daytrack.app.core.observability import ObservabilityMiddleware
from daytrack.app.core.redis_client import get_redis, ping_redis
from daytrack.app.db.session import (
    driver_engine, get_optional_driver_db, init_tracker_db, tracker_engine
)
from daytrack.app.core.exceptions import (
    CONNECTION_ERROR_TYPES,
    AppException,
    app_exception_handler,
    database_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)
from daytrack.app.services.driver_repository import DriverRepository

logging.basicConfig(level=settings.log_level.upper())
logger = logging.getLogger("daytrack")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.

    1. Creates and seeds the tracker tables on startup.
    2. Disposes both engines on shutdown.
    """
    await init_tracker_db(tracker_engine)
    logger.info("Tracker database ready at %s", tracker_engine.url.database)
    yield
    await tracker_engine.dispose()
    if driver_engine is not None:
        await driver_engine.dispose()


# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Driver history dashboard and baby activity tracker backend",
    lifespan=lifespan,
)

app.add_middleware(ObservabilityMiddleware)

# Register global exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(SQLAlchemyError, database_exception_handler)
app.add_exception_handler(ConnectionError, database_exception_handler)
app.add_exception_handler(TimeoutError, database_exception_handler)
app.add_exception_handler(socket.gaierror, database_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)


@app.get("/health", tags=["Health"])
async def health_check(
    db: Optional[AsyncSession] = Depends(get_optional_driver_db),
    cache_client=Depends(get_redis),
):
    """
    Health check endpoint.

    Returns:
        dict: `healthy` when the driver database answers, `degraded` otherwise
    """
    if db is None:
        database = "not_configured"
    else:
        try:
            await DriverRepository.ping(db)
            database = "connected"
        except (SQLAlchemyError, *CONNECTION_ERROR_TYPES) as e:
            logger.warning("Health check database ping failed: %s: %s", type(e).__name__, e)
            database = "disconnected"

    if cache_client is None:
        cache = "disabled"
    else:
        cache = "connected" if await ping_redis(cache_client) else "disconnected"

    return {
        "status": "healthy" if database == "connected" else "degraded",
        "database": database,
        "cache": cache,
        "app_name": settings.app_name,
        "version": settings.api_version,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


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
        "message": "Welcome to the DayTrack Backend API",
        "docs": "/docs",
        "health": "/health",
    }
