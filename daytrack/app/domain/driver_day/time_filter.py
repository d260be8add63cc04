"""
Time-Range Filter (Domain Logic).

Narrows a driver-day to a time window. No window means no filtering.
"""

from typing import List, Optional, Sequence

from daytrack.app.models.enums import StopContainmentPolicy
from daytrack.app.schemas.driver_day import Delivery, GPSPoint, Stop, TimeRange


def filter_track(track: Sequence[GPSPoint], time_range: Optional[TimeRange]) -> List[GPSPoint]:
    """Keep points whose timestamp lies in [start, end]."""
    if time_range is None:
        return list(track)
    return [point for point in track if time_range.contains(point.timestamp)]


def stop_in_range(stop: Stop, time_range: TimeRange, policy: StopContainmentPolicy) -> bool:
    if time_range.is_empty:
        return False
    if policy == StopContainmentPolicy.FULLY_CONTAINED:
        return stop.arrival_time >= time_range.start and stop.departure_time <= time_range.end
    return time_range.contains(stop.arrival_time)


def filter_stops(
    stops: Sequence[Stop],
    time_range: Optional[TimeRange],
    policy: StopContainmentPolicy = StopContainmentPolicy.ARRIVAL_ONLY,
) -> List[Stop]:
    """
    Keep stops matching the window under the given containment policy.

    ARRIVAL_ONLY ignores the departure time; FULLY_CONTAINED requires the
    whole stop interval inside the window.
    """
    if time_range is None:
        return list(stops)
    return [stop for stop in stops if stop_in_range(stop, time_range, policy)]


def filter_deliveries(deliveries: Sequence[Delivery], stops: Sequence[Stop]) -> List[Delivery]:
    """Keep deliveries whose stop survived filtering."""
    stop_ids = {stop.id for stop in stops}
    return [delivery for delivery in deliveries if delivery.stop_id in stop_ids]


def reconcile_selection(selected_stop_id: Optional[str], stops: Sequence[Stop]) -> Optional[str]:
    """Clear a selection that is not part of the filtered stops."""
    if selected_stop_id is None:
        return None
    if any(stop.id == selected_stop_id for stop in stops):
        return selected_stop_id
    return None
