"""
Driver history repository.

Read-only queries against the driver database. A calendar day is matched as
the half-open interval [day 00:00, next day 00:00) on the stored timestamps,
which selects the same rows as DATE(column) = day on every backend.
"""

import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import desc, func, inspect, select, text
from sqlalchemy.exc import NoSuchTableError
from sqlalchemy.ext.asyncio import AsyncSession

from daytrack.app.core.dates import day_bounds
from daytrack.app.core.exceptions import ResourceNotFoundError
from daytrack.app.domain.driver_day.stop_deriver import derive_from_job_history
from daytrack.app.models.driver import Driver, GPSSample, Job, JobHistory
from daytrack.app.models.enums import JobStatus
from daytrack.app.schemas.driver_day import DriverDay, GPSPoint

logger = logging.getLogger(__name__)

AVAILABLE_DATES_LIMIT = 30
STOP_STATUSES = [JobStatus.IN_TRANSIT.value, JobStatus.ORDER_DELIVERED.value]


class DriverRepository:

    @staticmethod
    async def ping(db: AsyncSession) -> None:
        """Round-trip a trivial query; raises on connectivity failure."""
        await db.execute(text("SELECT 1"))

    @staticmethod
    async def list_drivers(db: AsyncSession) -> List[Dict[str, Any]]:
        """All drivers ordered by display name."""
        result = await db.execute(
            select(Driver.driver_id, Driver.display_name).order_by(Driver.display_name)
        )
        return [dict(row) for row in result.mappings()]

    @staticmethod
    async def get_driver(db: AsyncSession, driver_id: int) -> Optional[Driver]:
        result = await db.execute(select(Driver).where(Driver.driver_id == driver_id))
        return result.scalar_one_or_none()

    @staticmethod
    async def get_gps_rows(db: AsyncSession, driver_id: int, day: date) -> List[Dict[str, Any]]:
        """GPS samples for one driver-day, oldest first."""
        start, end = day_bounds(day)
        result = await db.execute(
            select(GPSSample.lat, GPSSample.lng, GPSSample.datetime, GPSSample.speed)
            .where(
                GPSSample.driver_id == driver_id,
                GPSSample.datetime >= start,
                GPSSample.datetime < end,
            )
            .order_by(GPSSample.datetime.asc(), GPSSample.id.asc())
        )
        return [dict(row) for row in result.mappings()]

    @staticmethod
    async def get_job_rows(
        db: AsyncSession,
        driver_id: int,
        day: date,
        with_details: bool = False,
    ) -> List[Dict[str, Any]]:
        """
        Pickup/delivery events for one driver-day, oldest first.

        Rows without coordinates are skipped. With `with_details`, the job
        detail columns are left-joined onto each row (null when no job row
        exists).
        """
        start, end = day_bounds(day)
        columns = [
            JobHistory.job_id,
            JobHistory.job_datetime,
            JobHistory.latitude,
            JobHistory.longitude,
            JobHistory.status,
        ]
        if with_details:
            columns += [
                Job.master_account_name,
                Job.pickup_location_name,
                Job.delivery_location_name,
                Job.service_name,
                Job.order_eta,
            ]

        stmt = select(*columns)
        if with_details:
            stmt = stmt.outerjoin(Job, Job.job_id == JobHistory.job_id)
        stmt = stmt.where(
            JobHistory.new_driver_id == driver_id,
            JobHistory.job_datetime >= start,
            JobHistory.job_datetime < end,
            JobHistory.latitude.is_not(None),
            JobHistory.longitude.is_not(None),
            JobHistory.status.in_(STOP_STATUSES),
        ).order_by(JobHistory.job_datetime.asc(), JobHistory.id.asc())

        result = await db.execute(stmt)
        return [dict(row) for row in result.mappings()]

    @staticmethod
    async def get_available_dates(db: AsyncSession, driver_id: int) -> List[date]:
        """Most recent dates that have GPS data, newest first."""
        work_date = func.date(GPSSample.datetime).label("work_date")
        result = await db.execute(
            select(work_date)
            .where(GPSSample.driver_id == driver_id)
            .distinct()
            .order_by(desc("work_date"))
            .limit(AVAILABLE_DATES_LIMIT)
        )
        dates = []
        for value in result.scalars():
            # SQLite hands DATE() back as text
            if isinstance(value, str):
                value = date.fromisoformat(value)
            elif isinstance(value, datetime):
                value = value.date()
            dates.append(value)
        return dates

    @staticmethod
    async def describe_table(db: AsyncSession, table: str) -> List[Dict[str, Any]]:
        """Column descriptions for a table in the driver database."""
        def _columns(sync_conn):
            return inspect(sync_conn).get_columns(table)

        conn = await db.connection()
        try:
            columns = await conn.run_sync(_columns)
        except NoSuchTableError:
            raise ResourceNotFoundError("Table", table)

        return [
            {
                "name": column["name"],
                "type": str(column["type"]),
                "nullable": column.get("nullable", True),
                "default": column.get("default"),
                "primary_key": bool(column.get("primary_key")),
            }
            for column in columns
        ]

    @staticmethod
    async def get_driver_day(db: AsyncSession, driver_id: int, day: date) -> Optional[DriverDay]:
        """
        Assemble the driver-day aggregate.

        Returns:
            The DriverDay, or None when the driver does not exist
        """
        driver = await DriverRepository.get_driver(db, driver_id)
        if driver is None:
            return None

        gps_rows = await DriverRepository.get_gps_rows(db, driver_id, day)
        job_rows = await DriverRepository.get_job_rows(db, driver_id, day, with_details=True)
        stops, deliveries = derive_from_job_history(job_rows)

        logger.debug(
            "Driver %s on %s: %d GPS points, %d stops",
            driver_id, day, len(gps_rows), len(stops),
        )

        return DriverDay(
            driver_id=str(driver.driver_id),
            driver_name=driver.display_name,
            date=day,
            gps_track=[
                GPSPoint(lat=row["lat"], lng=row["lng"], timestamp=row["datetime"], speed=row["speed"])
                for row in gps_rows
            ],
            stops=stops,
            deliveries=deliveries,
        )
