"""
Track statistics for the driver dashboard.

Average speed, haversine distance, active time and stop counts.
"""

import math
from typing import Sequence

from daytrack.app.models.enums import StopType
from daytrack.app.schemas.driver_day import ActiveTime, GPSPoint, Stop, StopCounts, TrackStatistics


# Radius of Earth in kilometers
EARTH_RADIUS_KM = 6371.0


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Calculate the great-circle distance between two points on Earth.

    Args:
        lat1, lon1: First point coordinates (degrees)
        lat2, lon2: Second point coordinates (degrees)

    Returns:
        Distance in kilometers
    """
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    dlat = lat2_rad - lat1_rad
    dlon = math.radians(lon2 - lon1)

    a = math.sin(dlat / 2)**2 + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(dlon / 2)**2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def total_distance_km(track: Sequence[GPSPoint]) -> float:
    """Sum of distances between consecutive points."""
    return sum(
        haversine_distance(p.lat, p.lng, q.lat, q.lng)
        for p, q in zip(track, track[1:])
    )


def average_speed(track: Sequence[GPSPoint]) -> float:
    """Mean speed over points that report a positive speed."""
    speeds = [p.speed for p in track if p.speed is not None and p.speed > 0]
    if not speeds:
        return 0.0
    return sum(speeds) / len(speeds)


def active_time(track: Sequence[GPSPoint]) -> ActiveTime:
    """Span between the first and last point, as hours + minutes."""
    if len(track) < 2:
        return ActiveTime()
    seconds = (track[-1].timestamp - track[0].timestamp).total_seconds()
    total_minutes = int(seconds // 60)
    return ActiveTime(hours=total_minutes // 60, minutes=total_minutes % 60, total_seconds=seconds)


def count_stops(stops: Sequence[Stop]) -> StopCounts:
    return StopCounts(
        pickups=sum(1 for s in stops if s.type == StopType.PICKUP),
        delivered=sum(1 for s in stops if s.type == StopType.DELIVERED),
        deliveries=sum(1 for s in stops if s.type == StopType.DELIVERY),
        breaks=sum(1 for s in stops if s.type == StopType.BREAK),
    )


def compute_track_statistics(track: Sequence[GPSPoint], stops: Sequence[Stop] = ()) -> TrackStatistics:
    """Summary for a track; every field is zero for an empty track."""
    return TrackStatistics(
        point_count=len(track),
        average_speed=round(average_speed(track), 2),
        total_distance_km=round(total_distance_km(track), 3),
        active_time=active_time(track),
        stop_counts=count_stops(stops),
    )
