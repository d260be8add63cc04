"""
Driver history database models.

These tables are produced externally (device telemetry and the job system)
and are only ever read by this service.
"""

from sqlalchemy import Column, Integer, BigInteger, String, Float, DateTime, Index
from daytrack.app.db.session import DriverBase


class Driver(DriverBase):
    """Driver directory."""
    __tablename__ = "tbl_driver"

    driver_id = Column(Integer, primary_key=True, autoincrement=False)
    display_name = Column(String(255), nullable=False)

    def __repr__(self):
        return f"<Driver(driver_id={self.driver_id}, display_name='{self.display_name}')>"


class GPSSample(DriverBase):
    """
    GPS telemetry sample.

    One row per position report; `speed` is nullable for devices that
    do not report it.
    """
    __tablename__ = "tbl_driver_stats_2020_q3"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    driver_id = Column(Integer, nullable=False)
    lat = Column(Float, nullable=False)
    lng = Column(Float, nullable=False)
    datetime = Column(DateTime, nullable=False)
    speed = Column(Float, nullable=True)

    __table_args__ = (
        Index("ix_driver_stats_driver_datetime", "driver_id", "datetime"),
    )

    def __repr__(self):
        return f"<GPSSample(driver_id={self.driver_id}, lat={self.lat}, lng={self.lng})>"


class JobHistory(DriverBase):
    """Job status event (pickup/delivery) with the position it was recorded at."""
    __tablename__ = "tbl_job_history"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    job_id = Column(Integer, nullable=False, index=True)
    new_driver_id = Column(Integer, nullable=True)
    job_datetime = Column(DateTime, nullable=False)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    status = Column(String(64), nullable=False)

    __table_args__ = (
        Index("ix_job_history_driver_datetime", "new_driver_id", "job_datetime"),
    )

    def __repr__(self):
        return f"<JobHistory(job_id={self.job_id}, status='{self.status}')>"


class Job(DriverBase):
    """Job details, left-joined onto job history rows."""
    __tablename__ = "tbl_job"

    job_id = Column(Integer, primary_key=True, autoincrement=False)
    master_account_name = Column(String(255), nullable=True)
    pickup_location_name = Column(String(255), nullable=True)
    delivery_location_name = Column(String(255), nullable=True)
    service_name = Column(String(255), nullable=True)
    order_eta = Column(DateTime, nullable=True)

    def __repr__(self):
        return f"<Job(job_id={self.job_id})>"
