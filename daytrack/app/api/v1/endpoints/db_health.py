"""
Driver database diagnostics.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Query
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from daytrack.app.core.config import settings
from daytrack.app.core.exceptions import (
    CONNECTION_ERROR_TYPES, DatabaseNotConfiguredError,
    HealthcheckUnauthorizedError, InvalidRequestError, classify_db_error
)
from daytrack.app.db.session import get_driver_db, get_optional_driver_db
from daytrack.app.services.driver_repository import DriverRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/db", tags=["Database"])


def verify_healthcheck_token(
    token: Optional[str] = Header(None, alias="X-Healthcheck-Token"),
) -> None:
    """Enforce HEALTHCHECK_TOKEN when one is configured."""
    if settings.healthcheck_token and token != settings.healthcheck_token:
        raise HealthcheckUnauthorizedError()


@router.get("/health", dependencies=[Depends(verify_healthcheck_token)])
async def db_health(db: Optional[AsyncSession] = Depends(get_optional_driver_db)):
    """
    Round-trip the driver database.

    Returns:
        {"ok": true} or {"ok": false, "error": ...} with 503/500
    """
    if db is None:
        raise DatabaseNotConfiguredError(settings.driver_db_config_error)

    try:
        await DriverRepository.ping(db)
    except (SQLAlchemyError, *CONNECTION_ERROR_TYPES) as e:
        logger.error("Database healthcheck failed: %s: %s", type(e).__name__, e)
        message, status_code = classify_db_error(e, production=settings.is_production)
        return JSONResponse(
            status_code=status_code,
            content={"ok": False, "error": message or "Database not reachable"},
        )
    return {"ok": True}


@router.get("/schema")
async def db_schema(
    table: Optional[str] = Query(None, description="Table to describe"),
    db: AsyncSession = Depends(get_driver_db),
):
    """Describe the columns of one driver database table."""
    if not table:
        raise InvalidRequestError("table query parameter is required")
    return {"table": table, "columns": await DriverRepository.describe_table(db, table)}
