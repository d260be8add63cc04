"""
Driver-day endpoints.

Without a date the endpoint lists the dates that have data; with one it
returns the full driver-day plus the time-range filtered view, the surviving
stop selection and the summaries.
"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from daytrack.app.core.config import settings
from daytrack.app.core.dates import parse_date_param, parse_datetime_param
from daytrack.app.core.exceptions import (
    DatabaseNotConfiguredError, InvalidRequestError, ResourceNotFoundError
)
from daytrack.app.db.session import get_optional_driver_db
from daytrack.app.models.enums import StopContainmentPolicy
from daytrack.app.schemas.driver_day import (
    AvailableDatesResponse, DriverDayResponse, TimeRange
)
from daytrack.app.services.driver_day_view import resolve_driver_day_view
from daytrack.app.services.driver_repository import DriverRepository
from daytrack.app.services.sample_data import build_sample_driver_day

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/driver-day", tags=["Driver Day"])


def parse_time_range(start: Optional[str], end: Optional[str]) -> Optional[TimeRange]:
    """Both bounds or neither; a reversed range is rejected."""
    start_at = parse_datetime_param(start, "start")
    end_at = parse_datetime_param(end, "end")
    if start_at is None and end_at is None:
        return None
    if start_at is None or end_at is None:
        raise InvalidRequestError("start and end must be given together")
    if start_at > end_at:
        raise InvalidRequestError(
            "start must not be after end",
            details={"start": start_at.isoformat(), "end": end_at.isoformat()},
        )
    return TimeRange(start=start_at, end=end_at)


def _parse_driver_id(driver_id: str) -> int:
    try:
        return int(driver_id)
    except ValueError:
        raise InvalidRequestError("driverId must be an integer", details={"driverId": driver_id})


@router.get("")
async def get_driver_day(
    driver_id: Optional[str] = Query(None, alias="driverId"),
    day: Optional[str] = Query(None, alias="date", description="YYYY-MM-DD"),
    start: Optional[str] = Query(None, description="ISO-8601 range start"),
    end: Optional[str] = Query(None, description="ISO-8601 range end"),
    policy: Optional[StopContainmentPolicy] = Query(None),
    selected_stop_id: Optional[str] = Query(None, alias="selectedStopId"),
    persisted_filter: Optional[str] = Query(None, alias="filter", description="Persisted filter JSON"),
    db: Optional[AsyncSession] = Depends(get_optional_driver_db),
):
    """
    Get one driver-day, or the dates available for a driver.

    Args:
        driver_id: Driver to load (required)
        day: Calendar date; when omitted the available dates are returned
        start, end: Optional time range applied to the view
        policy: Stop containment policy (defaults to the configured one)
        selected_stop_id: Currently selected stop, echoed only if it survives
        persisted_filter: Filter JSON from a previous response; its time range
            is resumed when it names the same driver and date
    """
    if not driver_id:
        raise InvalidRequestError("driverId is required")

    time_range = parse_time_range(start, end)
    policy = policy or settings.stop_containment_policy

    if settings.use_sample_data:
        if not day:
            return AvailableDatesResponse(available_dates=[date.today()])
        driver_day = build_sample_driver_day(parse_date_param(day), driver_id=driver_id)
        return resolve_driver_day_view(driver_day, persisted_filter, time_range, policy, selected_stop_id)

    if db is None:
        raise DatabaseNotConfiguredError(settings.driver_db_config_error)

    numeric_id = _parse_driver_id(driver_id)
    if not day:
        dates = await DriverRepository.get_available_dates(db, numeric_id)
        return AvailableDatesResponse(available_dates=dates)

    driver_day = await DriverRepository.get_driver_day(db, numeric_id, parse_date_param(day))
    if driver_day is None:
        logger.info("Driver %s not found for %s", numeric_id, day)
        raise ResourceNotFoundError("Driver", numeric_id)

    return resolve_driver_day_view(driver_day, persisted_filter, time_range, policy, selected_stop_id)


@router.get("/sample", response_model=DriverDayResponse)
async def get_sample_driver_day(
    day: Optional[str] = Query(None, alias="date", description="YYYY-MM-DD, defaults to today"),
    driver_id: str = Query("driver-001", alias="driverId"),
    start: Optional[str] = Query(None),
    end: Optional[str] = Query(None),
    policy: Optional[StopContainmentPolicy] = Query(None),
    selected_stop_id: Optional[str] = Query(None, alias="selectedStopId"),
):
    """Generated driver-day; works without a driver database."""
    sample_day = parse_date_param(day) if day else date.today()
    driver_day = build_sample_driver_day(sample_day, driver_id=driver_id)
    return resolve_driver_day_view(
        driver_day,
        time_range=parse_time_range(start, end),
        policy=policy or settings.stop_containment_policy,
        selected_stop_id=selected_stop_id,
    )
