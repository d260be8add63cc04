"""
Stop Deriver (Domain Logic).

Turns job history rows or a raw GPS trace into Stop and Delivery records.
Both derivations are single forward passes that never reorder their input.
"""

import math
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from daytrack.app.models.enums import DeliveryStatus, JobStatus, StopType
from daytrack.app.schemas.driver_day import Delivery, GPSPoint, Stop


# Configuration
STATIONARY_SPEED_THRESHOLD = 5  # Speeds below this count as stationary
MIN_CLUSTER_POINTS = 3  # A cluster needs more than 2 samples
MIN_STOP_MINUTES = 3  # Inclusive lower bound on stop length
DELIVERY_STOP_LIMIT = 8  # First N clustered stops are deliveries, the rest breaks

JOB_ROW_FIELDS = frozenset({"job_id", "job_datetime", "latitude", "longitude", "status"})


def _job_details(row: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
    """Extra (left-joined) columns of a job row, without null values."""
    details = {
        key: value
        for key, value in row.items()
        if key not in JOB_ROW_FIELDS and value is not None
    }
    return details or None


def derive_from_job_history(rows: Iterable[Mapping[str, Any]]) -> Tuple[List[Stop], List[Delivery]]:
    """
    Build one stop and one delivery per job history row.

    Args:
        rows: Mappings with job_id, job_datetime, latitude, longitude, status
            plus any extra detail columns, ascending by job_datetime

    Returns:
        (stops, deliveries) in input order
    """
    stops: List[Stop] = []
    deliveries: List[Delivery] = []

    for index, row in enumerate(rows):
        job_id = row["job_id"]
        job_datetime = row["job_datetime"]

        if row["status"] == JobStatus.IN_TRANSIT.value:
            stop_type = StopType.PICKUP
            delivery_status = DeliveryStatus.PICKUP
        else:
            stop_type = StopType.DELIVERED
            delivery_status = DeliveryStatus.DELIVERED

        stop = Stop(
            id=f"stop-{job_id}-{index}",
            lat=float(row["latitude"]),
            lng=float(row["longitude"]),
            arrival_time=job_datetime,
            departure_time=job_datetime,
            duration=0,
            type=stop_type,
        )
        stops.append(stop)
        deliveries.append(Delivery(
            id=f"delivery-{job_id}-{index}",
            stop_id=stop.id,
            job_id=job_id,
            status=delivery_status,
            completed_at=job_datetime,
            job_details=_job_details(row),
        ))

    return stops, deliveries


def _is_stationary(point: GPSPoint) -> bool:
    return (point.speed or 0) < STATIONARY_SPEED_THRESHOLD


def _cluster_to_stop(cluster: Sequence[GPSPoint], stop_number: int) -> Optional[Stop]:
    """Close a stationary cluster; None when it is too short to be a stop."""
    if len(cluster) < MIN_CLUSTER_POINTS:
        return None

    first, last = cluster[0], cluster[-1]
    duration = (last.timestamp - first.timestamp).total_seconds() / 60
    if duration < MIN_STOP_MINUTES:
        return None

    return Stop(
        id=f"stop-{stop_number}",
        lat=sum(p.lat for p in cluster) / len(cluster),
        lng=sum(p.lng for p in cluster) / len(cluster),
        arrival_time=first.timestamp,
        departure_time=last.timestamp,
        duration=math.floor(duration + 0.5),
        type=StopType.DELIVERY if stop_number <= DELIVERY_STOP_LIMIT else StopType.BREAK,
    )


def derive_from_gps_track(track: Sequence[GPSPoint], flush_trailing: bool = False) -> List[Stop]:
    """
    Detect stops as runs of stationary GPS samples.

    A run closes on the first moving sample. A run still open when the track
    ends is dropped unless `flush_trailing` is set.

    Args:
        track: GPS points ascending by timestamp
        flush_trailing: Also close a run that reaches the end of the track

    Returns:
        Stops in time order, numbered stop-1, stop-2, ...
    """
    stops: List[Stop] = []
    cluster: List[GPSPoint] = []

    for point in track:
        if _is_stationary(point):
            cluster.append(point)
            continue

        if cluster:
            stop = _cluster_to_stop(cluster, len(stops) + 1)
            if stop is not None:
                stops.append(stop)
            cluster = []

    if flush_trailing and cluster:
        stop = _cluster_to_stop(cluster, len(stops) + 1)
        if stop is not None:
            stops.append(stop)

    return stops
