"""
Daily activity statistics for the baby tracker.

One aggregate query per category over the local calendar day. Durations and
wake windows are in milliseconds. Missing data yields zeros.
"""

from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from daytrack.app.core.dates import day_bounds
from daytrack.app.domain.tracker.sleep_session import SleepState
from daytrack.app.models.activity import Activity
from daytrack.app.models.tracker_enums import ActivityType, DiaperType, FeedType
from daytrack.app.schemas.activity import (
    DailyStats, DiaperStats, FeedStats, SleepStats, WakeWindowStats
)
from daytrack.app.services.activity_service import ActivityService, activity_moment

# Configuration
WAKE_WINDOW_SAMPLE_SIZE = 10


def _elapsed_ms(start: datetime, end: datetime) -> int:
    return int((end - start).total_seconds() * 1000)


def _count_where(condition):
    return func.coalesce(func.sum(case((condition, 1), else_=0)), 0)


def summarize_wake_windows(pairs: List[Tuple[datetime, Optional[datetime]]]) -> Tuple[float, int]:
    """
    Average and longest wake window from (sleep end, next sleep start) pairs.

    Pairs without a next start, or whose next start precedes the end, are
    skipped.

    Returns:
        (average_ms, longest_ms); zeros when nothing pairs up
    """
    windows = [
        _elapsed_ms(ended, next_start)
        for ended, next_start in pairs
        if next_start is not None and next_start >= ended
    ]
    if not windows:
        return 0.0, 0
    return sum(windows) / len(windows), max(windows)


class ActivityStatsService:

    @staticmethod
    async def get_sleep_stats(db: AsyncSession, now: datetime, state: SleepState) -> SleepStats:
        """Completed sleeps that ended today plus the running session if it began today."""
        start, end = day_bounds(now.date())
        row = (await db.execute(
            select(
                func.count(Activity.id).label("nap_count"),
                func.coalesce(func.sum(Activity.duration), 0).label("total"),
                func.avg(Activity.duration).label("avg_nap"),
            ).where(
                Activity.type == ActivityType.SLEEP.value,
                Activity.end_time >= start,
                Activity.end_time < end,
            )
        )).one()

        nap_count = row.nap_count or 0
        completed = int(row.total or 0)
        total = completed
        if state.is_active and start <= state.start_time < end:
            total += max(_elapsed_ms(state.start_time, now), 0)

        return SleepStats(
            total=total,
            nap_count=nap_count,
            avg_nap=float(row.avg_nap or 0.0),
        )

    @staticmethod
    async def get_feed_stats(db: AsyncSession, now: datetime) -> FeedStats:
        start, end = day_bounds(now.date())
        moment = activity_moment()
        row = (await db.execute(
            select(
                func.count(Activity.id).label("total"),
                _count_where(Activity.feed_type == FeedType.BREAST.value).label("breast"),
                _count_where(Activity.feed_type == FeedType.BOTTLE.value).label("bottle"),
                func.coalesce(func.sum(case(
                    (Activity.feed_type == FeedType.BOTTLE.value, func.coalesce(Activity.amount, 0)),
                    else_=0,
                )), 0).label("total_ml"),
            ).where(
                Activity.type == ActivityType.FEED.value,
                moment >= start,
                moment < end,
            )
        )).one()

        return FeedStats(
            total=row.total or 0,
            breast=int(row.breast or 0),
            bottle=int(row.bottle or 0),
            total_ml=int(row.total_ml or 0),
        )

    @staticmethod
    async def get_diaper_stats(db: AsyncSession, now: datetime) -> DiaperStats:
        """Diaper counts; `both` counts toward wet and dirty alike."""
        start, end = day_bounds(now.date())
        moment = activity_moment()
        row = (await db.execute(
            select(
                func.count(Activity.id).label("total"),
                _count_where(Activity.diaper_type == DiaperType.WET.value).label("wet_only"),
                _count_where(Activity.diaper_type == DiaperType.DIRTY.value).label("dirty_only"),
                _count_where(Activity.diaper_type == DiaperType.BOTH.value).label("both"),
            ).where(
                Activity.type == ActivityType.DIAPER.value,
                moment >= start,
                moment < end,
            )
        )).one()

        wet_only = int(row.wet_only or 0)
        dirty_only = int(row.dirty_only or 0)
        both = int(row.both or 0)
        return DiaperStats(
            total=row.total or 0,
            wet=wet_only + both,
            dirty=dirty_only + both,
            wet_only=wet_only,
            dirty_only=dirty_only,
            both=both,
        )

    @staticmethod
    async def get_wake_window_pairs(db: AsyncSession) -> List[Tuple[datetime, Optional[datetime]]]:
        """
        The most recent sleeps paired with the next sleep's start.

        Each sleep's end is matched with the earliest sleep start strictly
        after it; the latest sleep usually has no partner yet.
        """
        later = aliased(Activity)
        next_start = (
            select(func.min(later.start_time))
            .where(
                later.type == ActivityType.SLEEP.value,
                later.start_time > Activity.end_time,
            )
            .scalar_subquery()
        )
        result = await db.execute(
            select(Activity.end_time, next_start.label("next_start"))
            .where(
                Activity.type == ActivityType.SLEEP.value,
                Activity.end_time.is_not(None),
            )
            .order_by(Activity.end_time.desc())
            .limit(WAKE_WINDOW_SAMPLE_SIZE)
        )
        return [(row.end_time, row.next_start) for row in result]

    @staticmethod
    async def get_wake_window_stats(db: AsyncSession, now: datetime, state: SleepState) -> WakeWindowStats:
        current = 0
        if not state.is_active:
            last_end = (await db.execute(
                select(func.max(Activity.end_time)).where(
                    Activity.type == ActivityType.SLEEP.value,
                    Activity.end_time.is_not(None),
                )
            )).scalar()
            if last_end is not None:
                current = max(_elapsed_ms(last_end, now), 0)

        pairs = await ActivityStatsService.get_wake_window_pairs(db)
        average, longest = summarize_wake_windows(pairs)
        return WakeWindowStats(current=current, average=average, longest=longest)

    @staticmethod
    async def get_daily_stats(db: AsyncSession, now: Optional[datetime] = None) -> DailyStats:
        """
        Today's sleep, feed, diaper and wake-window statistics.

        Args:
            db: Tracker session
            now: Reference instant (defaults to local now)
        """
        now = now or datetime.now()
        state = await ActivityService.get_sleep_state(db)

        return DailyStats(
            sleep=await ActivityStatsService.get_sleep_stats(db, now, state),
            feeds=await ActivityStatsService.get_feed_stats(db, now),
            diapers=await ActivityStatsService.get_diaper_stats(db, now),
            wake_windows=await ActivityStatsService.get_wake_window_stats(db, now, state),
        )
