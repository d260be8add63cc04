"""
Baby tracker activity service.

Settings, activity log CRUD, the sleep session and export/import.
"""

import logging
from datetime import date, datetime
from typing import List, Optional, Tuple

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from daytrack.app.core.dates import day_bounds
from daytrack.app.core.exceptions import InvalidRequestError, ResourceNotFoundError
from daytrack.app.domain.tracker.sleep_session import (
    CompletedSleep, SleepState, end_sleep, start_sleep
)
from daytrack.app.models.activity import Activity, BabySettings, CurrentSleep
from daytrack.app.models.tracker_enums import ActivityType
from daytrack.app.schemas.activity import (
    ActivityCreate, ActivityUpdate, ImportPayload, SettingsUpdate
)

logger = logging.getLogger(__name__)


def activity_moment():
    """The instant an activity is filed under: time, else end, else start."""
    return func.coalesce(Activity.time, Activity.end_time, Activity.start_time)


def _enum_value(value):
    return value.value if value is not None and hasattr(value, "value") else value


def _duration_ms(start: datetime, end: datetime) -> int:
    return int((end - start).total_seconds() * 1000)


class ActivityService:

    # --- Settings ---

    @staticmethod
    async def get_settings(db: AsyncSession) -> BabySettings:
        settings_row = await db.get(BabySettings, 1)
        if settings_row is None:
            settings_row = BabySettings(id=1, baby_name="", baby_dob="")
            db.add(settings_row)
            await db.commit()
            await db.refresh(settings_row)
        return settings_row

    @staticmethod
    def _apply_settings(settings_row: BabySettings, data: SettingsUpdate) -> None:
        settings_row.baby_name = data.baby_name or ""
        settings_row.baby_dob = data.baby_dob or ""
        settings_row.updated_at = datetime.now()

    @staticmethod
    async def update_settings(db: AsyncSession, data: SettingsUpdate) -> BabySettings:
        settings_row = await ActivityService.get_settings(db)
        ActivityService._apply_settings(settings_row, data)
        await db.commit()
        await db.refresh(settings_row)
        return settings_row

    # --- Activities ---

    @staticmethod
    async def list_activities(
        db: AsyncSession,
        activity_type: Optional[str] = None,
        day: Optional[date] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[Activity]:
        """Activities newest first; `all` or no type lists every type."""
        moment = activity_moment()
        stmt = select(Activity)
        if activity_type and activity_type != "all":
            stmt = stmt.where(Activity.type == activity_type)
        if day is not None:
            start, end = day_bounds(day)
            stmt = stmt.where(moment >= start, moment < end)
        stmt = stmt.order_by(moment.desc(), Activity.id.desc()).limit(limit).offset(offset)

        result = await db.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def get_activity(db: AsyncSession, activity_id: int) -> Activity:
        activity = await db.get(Activity, activity_id)
        if activity is None:
            raise ResourceNotFoundError("Activity", activity_id)
        return activity

    @staticmethod
    def _build_activity(data: ActivityCreate) -> Activity:
        duration = data.duration
        if (
            data.type == ActivityType.SLEEP
            and duration is None
            and data.start_time is not None
            and data.end_time is not None
        ):
            duration = _duration_ms(data.start_time, data.end_time)

        return Activity(
            type=data.type.value,
            time=data.time,
            start_time=data.start_time,
            end_time=data.end_time,
            duration=duration,
            feed_type=_enum_value(data.feed_type),
            side=data.side,
            amount=data.amount,
            diaper_type=_enum_value(data.diaper_type),
            notes=data.notes,
        )

    @staticmethod
    async def create_activity(db: AsyncSession, data: ActivityCreate) -> Activity:
        activity = ActivityService._build_activity(data)
        db.add(activity)
        await db.commit()
        await db.refresh(activity)
        return activity

    @staticmethod
    async def update_activity(db: AsyncSession, activity_id: int, data: ActivityUpdate) -> Activity:
        """
        Apply a partial update.

        Moving either end of a sleep recomputes its duration unless the update
        sets one explicitly.
        """
        activity = await ActivityService.get_activity(db, activity_id)
        changes = data.model_dump(exclude_unset=True)

        start_time = changes.get("start_time", activity.start_time)
        end_time = changes.get("end_time", activity.end_time)
        if start_time is not None and end_time is not None and end_time < start_time:
            raise InvalidRequestError(
                "end_time must not be before start_time",
                details={"start_time": start_time.isoformat(), "end_time": end_time.isoformat()},
            )

        interval_changed = "start_time" in changes or "end_time" in changes
        if activity.type == ActivityType.SLEEP.value and interval_changed and "duration" not in changes:
            changes["duration"] = (
                _duration_ms(start_time, end_time)
                if start_time is not None and end_time is not None
                else None
            )

        for field, value in changes.items():
            setattr(activity, field, _enum_value(value))
        await db.commit()
        await db.refresh(activity)
        return activity

    @staticmethod
    async def delete_activity(db: AsyncSession, activity_id: int) -> None:
        activity = await ActivityService.get_activity(db, activity_id)
        await db.delete(activity)
        await db.commit()

    # --- Sleep session ---

    @staticmethod
    async def _current_sleep_row(db: AsyncSession) -> CurrentSleep:
        row = await db.get(CurrentSleep, 1)
        if row is None:
            row = CurrentSleep(id=1, is_active=False)
            db.add(row)
            await db.flush()
        return row

    @staticmethod
    def _state_of(row: CurrentSleep) -> SleepState:
        if row.is_active and row.start_time is not None:
            return SleepState(start_time=row.start_time)
        return SleepState()

    @staticmethod
    async def get_sleep_state(db: AsyncSession) -> SleepState:
        return ActivityService._state_of(await ActivityService._current_sleep_row(db))

    @staticmethod
    async def start_sleep(db: AsyncSession, now: Optional[datetime] = None) -> SleepState:
        row = await ActivityService._current_sleep_row(db)
        state = start_sleep(ActivityService._state_of(row), now or datetime.now())

        row.start_time = state.start_time
        row.is_active = True
        await db.commit()
        logger.info("Sleep session started at %s", state.start_time.isoformat())
        return state

    @staticmethod
    async def end_sleep(db: AsyncSession, now: Optional[datetime] = None) -> Activity:
        """Close the running session and log it as one sleep activity."""
        row = await ActivityService._current_sleep_row(db)
        _, completed = end_sleep(ActivityService._state_of(row), now or datetime.now())

        activity = ActivityService._sleep_activity(completed)
        db.add(activity)
        row.start_time = None
        row.is_active = False
        await db.commit()
        await db.refresh(activity)
        logger.info("Sleep session ended after %d ms", completed.duration_ms)
        return activity

    @staticmethod
    def _sleep_activity(completed: CompletedSleep) -> Activity:
        return Activity(
            type=ActivityType.SLEEP.value,
            start_time=completed.start_time,
            end_time=completed.end_time,
            duration=completed.duration_ms,
        )

    # --- Export / import ---

    @staticmethod
    async def export_data(db: AsyncSession) -> Tuple[BabySettings, List[Activity], SleepState]:
        settings_row = await ActivityService.get_settings(db)
        result = await db.execute(
            select(Activity).order_by(Activity.created_at.desc(), Activity.id.desc())
        )
        state = await ActivityService.get_sleep_state(db)
        return settings_row, list(result.scalars().all()), state

    @staticmethod
    async def import_data(db: AsyncSession, payload: ImportPayload) -> int:
        """
        Apply an export file: settings update plus activity inserts.

        All-or-nothing: any failure rolls back every change.

        Returns:
            Number of activities inserted
        """
        activities = payload.activities or []
        try:
            if payload.settings is not None:
                settings_row = await db.get(BabySettings, 1)
                if settings_row is None:
                    settings_row = BabySettings(id=1)
                    db.add(settings_row)
                ActivityService._apply_settings(settings_row, payload.settings)

            for item in activities:
                db.add(Activity(
                    type=item.type.value,
                    time=item.time,
                    start_time=item.start_time,
                    end_time=item.end_time,
                    duration=item.duration,
                    feed_type=_enum_value(item.feed_type),
                    side=item.side,
                    amount=item.amount,
                    diaper_type=_enum_value(item.diaper_type),
                    notes=item.notes,
                ))
            await db.commit()
        except Exception:
            await db.rollback()
            logger.exception("Import failed, all changes rolled back")
            raise

        logger.info("Imported %d activities", len(activities))
        return len(activities)

    @staticmethod
    async def clear_all(db: AsyncSession) -> None:
        """Delete every activity and reset settings and the sleep session."""
        await db.execute(delete(Activity))
        await db.execute(
            update(BabySettings).where(BabySettings.id == 1).values(baby_name="", baby_dob="")
        )
        await db.execute(
            update(CurrentSleep).where(CurrentSleep.id == 1).values(start_time=None, is_active=False)
        )
        await db.commit()
