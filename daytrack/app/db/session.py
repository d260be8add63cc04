"""
Database session configuration.

This module handles engine creation and session management using SQLAlchemy
with async support for the two stores:

- the driver history database (external, read-only, any async dialect);
- the baby tracker database (embedded SQLite file).
"""

import logging
import os
from typing import Optional

from sqlalchemy import select
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
)
from sqlalchemy.orm import declarative_base

from daytrack.app.core.config import settings
from daytrack.app.core.exceptions import DatabaseNotConfiguredError

logger = logging.getLogger(__name__)

# Declarative bases, one per store
DriverBase = declarative_base()
TrackerBase = declarative_base()


def _driver_engine_options(url: str) -> dict:
    parsed = make_url(url)
    options = {"echo": settings.db_echo, "future": True}
    if parsed.get_backend_name() != "sqlite":
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_recycle=settings.db_pool_recycle,
            pool_pre_ping=True,
        )
    if parsed.get_driver_name() == "asyncpg":
        options["connect_args"] = {"timeout": settings.db_connect_timeout}
    return options


def create_driver_engine() -> Optional[AsyncEngine]:
    """
    Create the driver database engine.

    Returns None when the database is not configured; callers then answer
    with 503 instead of failing at import time.
    """
    config_error = settings.driver_db_config_error
    if config_error:
        logger.warning("Driver database unconfigured: %s", config_error)
        return None

    engine = create_async_engine(
        settings.driver_database_url, **_driver_engine_options(settings.driver_database_url)
    )
    if not settings.is_production:
        url = make_url(settings.driver_database_url)
        logger.info("Driver database configured for %s:%s/%s", url.host, url.port, url.database)
    return engine


def create_tracker_engine(url: str) -> AsyncEngine:
    """Create the tracker engine (no connection is made until first use)."""
    return create_async_engine(url, echo=settings.db_echo, future=True)


def _ensure_sqlite_directory(engine: AsyncEngine) -> None:
    database = engine.url.database
    if database and database != ":memory:":
        os.makedirs(os.path.dirname(os.path.abspath(database)), exist_ok=True)


driver_engine = create_driver_engine()
tracker_engine = create_tracker_engine(settings.tracker_database_url)

# Create async session factories
DriverSessionLocal = (
    async_sessionmaker(
        driver_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    if driver_engine is not None
    else None
)

TrackerSessionLocal = async_sessionmaker(
    tracker_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def init_tracker_db(engine: AsyncEngine) -> None:
    """
    Create tracker tables and seed the single-row tables.

    Safe to call repeatedly.
    """
    # Imported here so the models register with TrackerBase before create_all
    from daytrack.app.models.activity import BabySettings, CurrentSleep

    _ensure_sqlite_directory(engine)
    async with engine.begin() as conn:
        await conn.run_sync(TrackerBase.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        async with session.begin():
            if await session.scalar(select(BabySettings).where(BabySettings.id == 1)) is None:
                session.add(BabySettings(id=1))
            if await session.scalar(select(CurrentSleep).where(CurrentSleep.id == 1)) is None:
                session.add(CurrentSleep(id=1, is_active=False))


async def get_driver_db():
    """
    FastAPI dependency for driver database sessions.

    Raises DatabaseNotConfiguredError (503) when the database is unconfigured.
    """
    if DriverSessionLocal is None:
        raise DatabaseNotConfiguredError(settings.driver_db_config_error)
    async with DriverSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


async def get_tracker_db():
    """
    FastAPI dependency for tracker database sessions.

    Yields an async database session and ensures it's properly closed.
    """
    async with TrackerSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


async def get_optional_driver_db():
    """
    Driver database session, or None when the database is unconfigured.

    Used by endpoints that can fall back to sample data.
    """
    if DriverSessionLocal is None:
        yield None
        return
    async with DriverSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()
