"""
Driver dashboard schemas.

Domain shapes (GPS points, stops, deliveries, driver-day) serialize with
camelCase keys; the raw row listings keep the database column names.
"""

from datetime import date, datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator
from pydantic.alias_generators import to_camel

from daytrack.app.models.enums import DeliveryStatus, StopContainmentPolicy, StopType

JobDetailValue = Union[str, int, float, bool, datetime, date]

# Job detail keys shown to the user, in display order
JOB_DETAIL_DISPLAY_KEYS = (
    "master_account_name",
    "pickup_location_name",
    "delivery_location_name",
    "service_name",
    "order_eta",
)


def format_field_name(key: str) -> str:
    """`pickup_location_name` -> `Pickup Location Name`."""
    return key.replace("_", " ").title()


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class GPSPoint(CamelModel):
    """Timestamped position sample."""
    lat: float
    lng: float
    timestamp: datetime
    speed: Optional[float] = None  # km/h


class Stop(CamelModel):
    """A stationary interval, classified."""
    id: str
    lat: float
    lng: float
    arrival_time: datetime
    departure_time: datetime
    duration: int = Field(..., ge=0)  # minutes
    type: StopType

    @model_validator(mode="after")
    def check_interval(self):
        if self.arrival_time > self.departure_time:
            raise ValueError("arrival_time must not be after departure_time")
        return self


class DetailField(CamelModel):
    key: str
    label: str
    value: JobDetailValue


class Delivery(CamelModel):
    """Business event paired one-to-one with a stop."""
    id: str
    stop_id: str
    job_id: Optional[int] = None
    status: DeliveryStatus
    completed_at: Optional[datetime] = None
    job_details: Optional[Dict[str, JobDetailValue]] = None
    address: Optional[str] = None
    customer_name: Optional[str] = None
    notes: Optional[str] = None

    @computed_field(alias="displayDetails")
    @property
    def display_details(self) -> List[DetailField]:
        """Known job detail keys that carry a value, in display order."""
        if not self.job_details:
            return []
        return [
            DetailField(key=key, label=format_field_name(key), value=self.job_details[key])
            for key in JOB_DETAIL_DISPLAY_KEYS
            if self.job_details.get(key) is not None
        ]


class TimeRange(CamelModel):
    """
    Selected window of the day.

    `start == end` is a zero-width window (matches nothing); a reversed
    window is rejected.
    """
    start: datetime
    end: datetime

    @model_validator(mode="after")
    def check_order(self):
        if self.start > self.end:
            raise ValueError("start must not be after end")
        return self

    @property
    def is_empty(self) -> bool:
        return self.start == self.end

    def contains(self, moment: datetime) -> bool:
        return not self.is_empty and self.start <= moment <= self.end


class DriverDay(CamelModel):
    """Everything fetched for one driver on one date."""
    driver_id: str
    driver_name: str
    date: date
    gps_track: List[GPSPoint] = []
    stops: List[Stop] = []
    deliveries: List[Delivery] = []


class ActiveTime(CamelModel):
    hours: int = 0
    minutes: int = 0
    total_seconds: float = 0.0


class StopCounts(CamelModel):
    pickups: int = 0
    delivered: int = 0
    deliveries: int = 0
    breaks: int = 0


class TrackStatistics(CamelModel):
    """Summary numbers for a GPS track and its stops."""
    point_count: int = 0
    average_speed: float = 0.0
    total_distance_km: float = 0.0
    active_time: ActiveTime = ActiveTime()
    stop_counts: StopCounts = StopCounts()


class DriverDaySummary(CamelModel):
    full: TrackStatistics
    filtered: TrackStatistics


class DriverDayView(CamelModel):
    """Filtered slice of a driver-day."""
    time_range: Optional[TimeRange] = None
    policy: StopContainmentPolicy
    gps_track: List[GPSPoint] = []
    stops: List[Stop] = []
    deliveries: List[Delivery] = []
    selected_stop_id: Optional[str] = None


class DriverDayResponse(DriverDay):
    """Driver-day with its filtered view and summaries."""
    track_start: Optional[datetime] = None
    track_end: Optional[datetime] = None
    view: DriverDayView
    summary: DriverDaySummary
    # Filter JSON for the client to keep and send back as `filter`
    persisted_filter: Optional[str] = None


class AvailableDatesResponse(CamelModel):
    available_dates: List[date]


class DriverListItem(BaseModel):
    """Driver directory row."""
    driver_id: Any
    display_name: str

    model_config = ConfigDict(from_attributes=True)


class GPSRow(BaseModel):
    """Raw GPS row as stored."""
    lat: float
    lng: float
    datetime: datetime
    speed: Optional[float] = None


class JobRow(BaseModel):
    """Raw job history row as stored."""
    job_id: int
    job_datetime: datetime
    latitude: float
    longitude: float
    status: str
