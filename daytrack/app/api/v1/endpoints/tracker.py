"""
Baby tracker API endpoints.

Settings, the activity log, the sleep session, daily statistics and
export/import of the whole store.
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from daytrack.app.core.dates import parse_date_param
from daytrack.app.db.session import get_tracker_db
from daytrack.app.schemas.activity import (
    ActivityCreate, ActivityResponse, ActivityUpdate, CurrentSleepResponse,
    DailyStats, ExportResponse, ImportPayload, ImportResponse,
    SettingsResponse, SettingsUpdate, SuccessResponse
)
from daytrack.app.services.activity_service import ActivityService
from daytrack.app.services.activity_stats import ActivityStatsService

router = APIRouter(prefix="/tracker", tags=["Baby Tracker"])


# --- Settings ---

@router.get("/settings", response_model=SettingsResponse)
async def get_settings(db: AsyncSession = Depends(get_tracker_db)):
    return await ActivityService.get_settings(db)


@router.put("/settings", response_model=SettingsResponse)
async def update_settings(
    data: SettingsUpdate,
    db: AsyncSession = Depends(get_tracker_db)
):
    """Update the baby's name and date of birth."""
    return await ActivityService.update_settings(db, data)


# --- Activities ---

@router.get("/activities", response_model=List[ActivityResponse])
async def list_activities(
    activity_type: Optional[str] = Query(None, alias="type", description="Activity type or 'all'"),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    day: Optional[str] = Query(None, alias="date", description="YYYY-MM-DD"),
    db: AsyncSession = Depends(get_tracker_db)
):
    """List activities, newest first."""
    return await ActivityService.list_activities(
        db,
        activity_type=activity_type,
        day=parse_date_param(day) if day else None,
        limit=limit,
        offset=offset,
    )


@router.post("/activities", response_model=ActivityResponse, status_code=status.HTTP_201_CREATED)
async def create_activity(
    data: ActivityCreate,
    db: AsyncSession = Depends(get_tracker_db)
):
    return await ActivityService.create_activity(db, data)


@router.get("/activities/{activity_id}", response_model=ActivityResponse)
async def get_activity(
    activity_id: int = Path(..., description="Activity ID"),
    db: AsyncSession = Depends(get_tracker_db)
):
    return await ActivityService.get_activity(db, activity_id)


@router.put("/activities/{activity_id}", response_model=ActivityResponse)
async def update_activity(
    data: ActivityUpdate,
    activity_id: int = Path(..., description="Activity ID"),
    db: AsyncSession = Depends(get_tracker_db)
):
    """Update the given fields of an activity."""
    return await ActivityService.update_activity(db, activity_id, data)


@router.delete("/activities/{activity_id}", response_model=SuccessResponse)
async def delete_activity(
    activity_id: int = Path(..., description="Activity ID"),
    db: AsyncSession = Depends(get_tracker_db)
):
    await ActivityService.delete_activity(db, activity_id)
    return SuccessResponse()


# --- Sleep session ---

@router.get("/sleep/current", response_model=CurrentSleepResponse)
async def get_current_sleep(db: AsyncSession = Depends(get_tracker_db)):
    state = await ActivityService.get_sleep_state(db)
    return CurrentSleepResponse(is_active=state.is_active, start_time=state.start_time)


@router.post("/sleep/start", response_model=CurrentSleepResponse)
async def start_sleep(db: AsyncSession = Depends(get_tracker_db)):
    """Start a sleep session (400 if one is already running)."""
    state = await ActivityService.start_sleep(db)
    return CurrentSleepResponse(is_active=state.is_active, start_time=state.start_time)


@router.post("/sleep/end", response_model=ActivityResponse)
async def end_sleep(db: AsyncSession = Depends(get_tracker_db)):
    """End the running sleep session and return the logged sleep (400 if none)."""
    return await ActivityService.end_sleep(db)


# --- Statistics ---

@router.get("/stats/today", response_model=DailyStats)
async def get_today_stats(db: AsyncSession = Depends(get_tracker_db)):
    return await ActivityStatsService.get_daily_stats(db)


# --- Export / import ---

@router.get("/export", response_model=ExportResponse)
async def export_data(db: AsyncSession = Depends(get_tracker_db)):
    """Dump settings, every activity and the running sleep session."""
    settings_row, activities, state = await ActivityService.export_data(db)
    return ExportResponse(
        export_date=datetime.now(),
        settings=SettingsResponse.model_validate(settings_row),
        activities=[ActivityResponse.model_validate(activity) for activity in activities],
        current_sleep={"startTime": state.start_time} if state.is_active else None,
    )


@router.post("/import", response_model=ImportResponse)
async def import_data(
    payload: ImportPayload,
    db: AsyncSession = Depends(get_tracker_db)
):
    """Load an export file; nothing is written if any row fails."""
    imported = await ActivityService.import_data(db, payload)
    return ImportResponse(
        success=True,
        message="Data imported successfully",
        imported_activities=imported,
    )


@router.delete("/data", response_model=SuccessResponse)
async def clear_data(db: AsyncSession = Depends(get_tracker_db)):
    """Delete all activities and reset settings and the sleep session."""
    await ActivityService.clear_all(db)
    return SuccessResponse()
