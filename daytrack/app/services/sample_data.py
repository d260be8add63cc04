"""
Sample driver-day generator.

Produces a plausible delivery round through central London so the dashboard
works without a live driver database. Stops come from GPS clustering.
"""

import random
from datetime import date, datetime, time, timedelta
from typing import List, Optional

from daytrack.app.domain.driver_day.stop_deriver import derive_from_gps_track
from daytrack.app.models.enums import DeliveryStatus, StopType
from daytrack.app.schemas.driver_day import Delivery, DriverDay, DriverListItem, GPSPoint, Stop


SAMPLE_DRIVERS = [
    DriverListItem(driver_id="driver-001", display_name="Alex Thompson"),
    DriverListItem(driver_id="driver-002", display_name="Sarah Johnson"),
    DriverListItem(driver_id="driver-003", display_name="Mike Williams"),
]

# Depot, seven delivery areas, back to the depot
WAYPOINTS = [
    (51.5074, -0.1278),
    (51.5124, -0.1200),
    (51.5180, -0.1100),
    (51.5220, -0.0950),
    (51.5150, -0.0850),
    (51.5080, -0.0900),
    (51.5000, -0.1000),
    (51.4950, -0.1150),
    (51.5074, -0.1278),
]

ADDRESSES = [
    "123 Baker Street",
    "45 Oxford Street",
    "78 Regent Street",
    "12 Piccadilly",
    "89 Fleet Street",
    "34 Strand",
    "56 Whitehall",
    "90 Victoria Street",
]

CUSTOMER_NAMES = [
    "John Smith",
    "Emma Wilson",
    "James Brown",
    "Sarah Davis",
    "Michael Johnson",
    "Lisa Anderson",
    "David Taylor",
    "Jennifer White",
]

SHIFT_START = time(8, 0)


def generate_gps_track(day: date, rng: random.Random) -> List[GPSPoint]:
    """
    Interpolate noisy points between waypoints.

    Each leg after the first opens with a dwell of 5-15 minutes made of a
    few stationary samples.
    """
    points: List[GPSPoint] = []
    current = datetime.combine(day, SHIFT_START)

    for leg, (start, end) in enumerate(zip(WAYPOINTS, WAYPOINTS[1:])):
        if leg > 0:
            # Dwell at the delivery point
            dwell_samples = 4
            dwell = timedelta(minutes=5 + rng.random() * 10)
            for _ in range(dwell_samples):
                points.append(GPSPoint(
                    lat=start[0] + (rng.random() - 0.5) * 0.0002,
                    lng=start[1] + (rng.random() - 0.5) * 0.0002,
                    timestamp=current,
                    speed=0.0,
                ))
                current += dwell / dwell_samples

        segment_points = 20 + rng.randrange(10)
        for step in range(1, segment_points + 1):
            progress = step / segment_points
            current += timedelta(seconds=30 + rng.random() * 90)
            points.append(GPSPoint(
                lat=start[0] + (end[0] - start[0]) * progress + (rng.random() - 0.5) * 0.001,
                lng=start[1] + (end[1] - start[1]) * progress + (rng.random() - 0.5) * 0.001,
                timestamp=current,
                speed=15 + rng.random() * 35,
            ))

    return points


def generate_deliveries(stops: List[Stop], rng: random.Random) -> List[Delivery]:
    """One delivery per delivery stop; roughly one in ten fails."""
    delivery_stops = [stop for stop in stops if stop.type == StopType.DELIVERY]
    return [
        Delivery(
            id=f"delivery-{index + 1}",
            stop_id=stop.id,
            status=DeliveryStatus.COMPLETED if rng.random() > 0.1 else DeliveryStatus.FAILED,
            completed_at=stop.departure_time,
            address=ADDRESSES[index % len(ADDRESSES)],
            customer_name=CUSTOMER_NAMES[index % len(CUSTOMER_NAMES)],
            notes="Left with neighbor" if rng.random() > 0.7 else None,
        )
        for index, stop in enumerate(delivery_stops)
    ]


def build_sample_driver_day(
    day: Optional[date] = None,
    driver_id: str = "driver-001",
    seed: Optional[int] = None,
) -> DriverDay:
    """Generate a complete sample driver-day for the given date (default today)."""
    day = day or date.today()
    rng = random.Random(seed if seed is not None else day.toordinal())

    driver_name = next(
        (d.display_name for d in SAMPLE_DRIVERS if d.driver_id == driver_id),
        SAMPLE_DRIVERS[0].display_name,
    )
    gps_track = generate_gps_track(day, rng)
    stops = derive_from_gps_track(gps_track)

    return DriverDay(
        driver_id=driver_id,
        driver_name=driver_name,
        date=day,
        gps_track=gps_track,
        stops=stops,
        deliveries=generate_deliveries(stops, rng),
    )
