"""
Driver directory and raw history endpoints.

Raw rows keep the database column names.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from daytrack.app.core.config import settings
from daytrack.app.core.dates import parse_date_param
from daytrack.app.core.exceptions import DatabaseNotConfiguredError
from daytrack.app.core.redis_client import get_redis
from daytrack.app.db.session import get_driver_db, get_optional_driver_db
from daytrack.app.schemas.driver_day import DriverListItem, GPSRow, JobRow
from daytrack.app.services.cache import CacheService
from daytrack.app.services.driver_repository import DriverRepository
from daytrack.app.services.sample_data import SAMPLE_DRIVERS

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/drivers", tags=["Drivers"])


@router.get("", response_model=List[DriverListItem])
async def list_drivers(
    db: Optional[AsyncSession] = Depends(get_optional_driver_db),
    redis_client=Depends(get_redis),
):
    """
    List all drivers ordered by display name.

    Served from the Redis cache when configured; sample drivers when
    USE_SAMPLE_DATA is on.
    """
    if settings.use_sample_data:
        logger.debug("Serving sample driver list")
        return SAMPLE_DRIVERS
    if db is None:
        raise DatabaseNotConfiguredError(settings.driver_db_config_error)

    cache = CacheService(redis_client)

    async def load():
        return await DriverRepository.list_drivers(db)

    return await cache.get_or_load(
        cache.key("drivers"), load, ttl_seconds=settings.driver_list_cache_ttl
    )


@router.get("/{driver_id}/gps", response_model=List[GPSRow])
async def get_driver_gps(
    driver_id: int = Path(..., description="Driver ID"),
    day: Optional[str] = Query(None, alias="date", description="YYYY-MM-DD"),
    db: AsyncSession = Depends(get_driver_db),
):
    """GPS samples for one driver-day, oldest first."""
    return await DriverRepository.get_gps_rows(db, driver_id, parse_date_param(day))


@router.get("/{driver_id}/deliveries", response_model=List[JobRow])
async def get_driver_deliveries(
    driver_id: int = Path(..., description="Driver ID"),
    day: Optional[str] = Query(None, alias="date", description="YYYY-MM-DD"),
    db: AsyncSession = Depends(get_driver_db),
):
    """Pickup and delivery events for one driver-day, oldest first."""
    return await DriverRepository.get_job_rows(db, driver_id, parse_date_param(day))
