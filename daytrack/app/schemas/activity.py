"""
Baby tracker schemas.

Activity rows keep their column names; the statistics payload uses
camelCase keys.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from daytrack.app.core.dates import to_local_naive
from daytrack.app.models.tracker_enums import ActivityType, DiaperType, FeedType


class SettingsUpdate(BaseModel):
    """Schema for updating the baby profile."""
    baby_name: Optional[str] = ""
    baby_dob: Optional[str] = ""


class SettingsResponse(BaseModel):
    id: int
    baby_name: str
    baby_dob: str
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True


class ActivityBase(BaseModel):
    type: ActivityType
    time: Optional[datetime] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    duration: Optional[int] = Field(None, ge=0)  # milliseconds
    feed_type: Optional[FeedType] = None
    side: Optional[str] = None
    amount: Optional[int] = Field(None, ge=0)  # ml
    diaper_type: Optional[DiaperType] = None
    notes: Optional[str] = None

    @field_validator("time", "start_time", "end_time")
    @classmethod
    def to_local_time(cls, value: Optional[datetime]) -> Optional[datetime]:
        # Stored timestamps are naive local time
        return to_local_naive(value)

    @model_validator(mode="after")
    def check_sleep_interval(self):
        if self.start_time and self.end_time and self.end_time < self.start_time:
            raise ValueError("end_time must not be before start_time")
        return self


class ActivityCreate(ActivityBase):
    """Schema for logging an activity."""


class ActivityUpdate(BaseModel):
    """Schema for a partial activity update."""
    time: Optional[datetime] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    duration: Optional[int] = Field(None, ge=0)
    feed_type: Optional[FeedType] = None
    side: Optional[str] = None
    amount: Optional[int] = Field(None, ge=0)
    diaper_type: Optional[DiaperType] = None
    notes: Optional[str] = None

    @field_validator("time", "start_time", "end_time")
    @classmethod
    def to_local_time(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_local_naive(value)

    @model_validator(mode="after")
    def check_sleep_interval(self):
        if self.start_time and self.end_time and self.end_time < self.start_time:
            raise ValueError("end_time must not be before start_time")
        return self


class ActivityResponse(BaseModel):
    id: int
    type: str
    time: Optional[datetime]
    start_time: Optional[datetime]
    end_time: Optional[datetime]
    duration: Optional[int]
    feed_type: Optional[str]
    side: Optional[str]
    amount: Optional[int]
    diaper_type: Optional[str]
    notes: Optional[str]
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class CurrentSleepResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    is_active: bool
    start_time: Optional[datetime] = None


class ImportedActivity(BaseModel):
    """
    Activity as found in an export file.

    Accepts the camelCase spellings older exports used, and `text` for notes.
    Falsy values are stored as NULL.
    """
    type: ActivityType
    time: Optional[datetime] = None
    start_time: Optional[datetime] = Field(None, validation_alias=AliasChoices("start_time", "startTime"))
    end_time: Optional[datetime] = Field(None, validation_alias=AliasChoices("end_time", "endTime"))
    duration: Optional[int] = None
    feed_type: Optional[FeedType] = Field(None, validation_alias=AliasChoices("feed_type", "feedType"))
    side: Optional[str] = None
    amount: Optional[int] = None
    diaper_type: Optional[DiaperType] = Field(None, validation_alias=AliasChoices("diaper_type", "diaperType"))
    notes: Optional[str] = Field(None, validation_alias=AliasChoices("notes", "text"))

    @field_validator(
        "time", "start_time", "end_time", "duration", "feed_type", "side",
        "amount", "diaper_type", "notes",
        mode="before",
    )
    @classmethod
    def blank_to_none(cls, value: Any) -> Any:
        return value or None

    @field_validator("time", "start_time", "end_time")
    @classmethod
    def to_local_time(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_local_naive(value)


class ImportPayload(BaseModel):
    settings: Optional[SettingsUpdate] = None
    activities: Optional[List[ImportedActivity]] = None


class ImportResponse(BaseModel):
    success: bool
    message: str
    imported_activities: int


class ExportResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    export_date: datetime
    settings: Optional[SettingsResponse]
    activities: List[ActivityResponse]
    current_sleep: Optional[Dict[str, datetime]] = None


class SuccessResponse(BaseModel):
    success: bool = True


class SleepStats(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total: int = 0  # ms, including a running session that started today
    nap_count: int = 0
    avg_nap: float = 0.0


class FeedStats(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total: int = 0
    breast: int = 0
    bottle: int = 0
    total_ml: int = 0


class DiaperStats(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total: int = 0
    wet: int = 0  # wet_only + both
    dirty: int = 0  # dirty_only + both
    wet_only: int = 0
    dirty_only: int = 0
    both: int = 0


class WakeWindowStats(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    current: int = 0  # ms since the last sleep ended, 0 while asleep
    average: float = 0.0
    longest: int = 0


class DailyStats(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    sleep: SleepStats = SleepStats()
    feeds: FeedStats = FeedStats()
    diapers: DiaperStats = DiaperStats()
    wake_windows: WakeWindowStats = WakeWindowStats()
