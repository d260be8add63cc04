"""
Baby tracker database models.

`settings` and `current_sleep` are single-row tables (id = 1);
`activities` is an append-mostly log of typed events.
"""

from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean
from sqlalchemy.sql import func
from daytrack.app.db.session import TrackerBase


class BabySettings(TrackerBase):
    """Baby profile (single row)."""
    __tablename__ = "settings"

    id = Column(Integer, primary_key=True, default=1)
    baby_name = Column(String(255), nullable=False, default="")
    baby_dob = Column(String(32), nullable=False, default="")
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)


class Activity(TrackerBase):
    """
    Activity model.

    Field usage depends on the type:
    - sleep: start_time, end_time, duration (milliseconds)
    - feed: time, feed_type, side, amount (ml, bottle only)
    - diaper: time, diaper_type
    - note: time, notes
    """
    __tablename__ = "activities"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    type = Column(String(32), nullable=False, index=True)
    time = Column(DateTime, nullable=True, index=True)
    start_time = Column(DateTime, nullable=True)
    end_time = Column(DateTime, nullable=True)
    duration = Column(Integer, nullable=True)
    feed_type = Column(String(32), nullable=True)
    side = Column(String(32), nullable=True)
    amount = Column(Integer, nullable=True)
    diaper_type = Column(String(32), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False, index=True)

    def __repr__(self):
        return f"<Activity(id={self.id}, type='{self.type}')>"


class CurrentSleep(TrackerBase):
    """In-progress sleep session (single row)."""
    __tablename__ = "current_sleep"

    id = Column(Integer, primary_key=True, default=1)
    start_time = Column(DateTime, nullable=True)
    is_active = Column(Boolean, nullable=False, default=False)
