"""
Stop derivation from job history rows and from raw GPS tracks.
"""

from datetime import datetime, timedelta

import pytest

from daytrack.app.domain.driver_day.stop_deriver import (
    derive_from_gps_track, derive_from_job_history
)
from daytrack.app.models.enums import DeliveryStatus, StopType
from daytrack.app.schemas.driver_day import GPSPoint

T0 = datetime(2024, 3, 5, 9, 0)
T1 = datetime(2024, 3, 5, 9, 30)


def make_track(speeds, start=T0, step=timedelta(minutes=1)):
    return [
        GPSPoint(lat=51.5 + i * 0.0001, lng=-0.12, timestamp=start + step * i, speed=speed)
        for i, speed in enumerate(speeds)
    ]


def test_job_rows_produce_pickup_and_delivered():
    rows = [
        {"job_id": 1, "status": "in transit", "job_datetime": T0, "latitude": 1, "longitude": 1},
        {"job_id": 2, "status": "order delivered", "job_datetime": T1, "latitude": 2, "longitude": 2},
    ]

    stops, deliveries = derive_from_job_history(rows)

    assert [s.type for s in stops] == [StopType.PICKUP, StopType.DELIVERED]
    assert [s.id for s in stops] == ["stop-1-0", "stop-2-1"]
    assert [d.stop_id for d in deliveries] == ["stop-1-0", "stop-2-1"]
    assert [d.completed_at for d in deliveries] == [T0, T1]
    assert [d.status for d in deliveries] == [DeliveryStatus.PICKUP, DeliveryStatus.DELIVERED]
    assert stops[0].arrival_time == stops[0].departure_time == T0
    assert stops[0].duration == 0
    assert (stops[1].lat, stops[1].lng) == (2.0, 2.0)


def test_job_rows_keep_count_and_unique_ids_for_repeated_jobs():
    rows = [
        {"job_id": 9, "status": "in transit", "job_datetime": T0, "latitude": 1, "longitude": 1},
        {"job_id": 9, "status": "in transit", "job_datetime": T0, "latitude": 1, "longitude": 1},
        {"job_id": 9, "status": "order delivered", "job_datetime": T1, "latitude": 1, "longitude": 1},
    ]

    stops, deliveries = derive_from_job_history(rows)

    assert len(stops) == len(rows) == len(deliveries)
    assert len({s.id for s in stops}) == len(stops)
    assert len({d.id for d in deliveries}) == len(deliveries)


def test_job_details_drop_nulls_and_core_columns():
    rows = [
        {
            "job_id": 1, "status": "in transit", "job_datetime": T0, "latitude": 1, "longitude": 1,
            "master_account_name": "Acme Ltd", "service_name": None, "order_eta": T1,
        },
        {
            "job_id": 2, "status": "order delivered", "job_datetime": T1, "latitude": 1, "longitude": 1,
            "master_account_name": None,
        },
    ]

    _, deliveries = derive_from_job_history(rows)

    assert deliveries[0].job_details == {"master_account_name": "Acme Ltd", "order_eta": T1}
    assert [f.label for f in deliveries[0].display_details] == ["Master Account Name", "Order Eta"]
    assert deliveries[1].job_details is None
    assert deliveries[1].display_details == []


def test_empty_job_history():
    assert derive_from_job_history([]) == ([], [])


def test_stationary_run_of_exactly_three_minutes_is_a_stop():
    stops = derive_from_gps_track(make_track([0, 0, 0, 0, 20]))

    assert len(stops) == 1
    stop = stops[0]
    assert stop.id == "stop-1"
    assert stop.type == StopType.DELIVERY
    assert stop.duration == 3
    assert stop.arrival_time == T0
    assert stop.departure_time == T0 + timedelta(minutes=3)
    assert stop.lat == pytest.approx(51.5 + 0.00015)


def test_half_minute_durations_round_up():
    # Ten samples 30 s apart span 4.5 minutes
    stops = derive_from_gps_track(make_track([0] * 10 + [20], step=timedelta(seconds=30)))

    assert len(stops) == 1
    assert stops[0].duration == 5


def test_stationary_run_shorter_than_three_minutes_is_ignored():
    assert derive_from_gps_track(make_track([0, 0, 0, 20])) == []
    # Enough time but too few samples
    assert derive_from_gps_track(make_track([0, 0, 20], step=timedelta(minutes=5))) == []


def test_missing_speed_counts_as_stationary():
    track = make_track([None, None, None, None, 20])
    assert len(derive_from_gps_track(track)) == 1


def test_speed_threshold_is_exclusive():
    track = make_track([4.9, 4.9, 4.9, 4.9, 5])
    assert len(derive_from_gps_track(track)) == 1
    track = make_track([5, 5, 5, 5, 20])
    assert derive_from_gps_track(track) == []


def test_open_cluster_at_end_of_track_is_not_emitted():
    track = make_track([20, 0, 0, 0, 0, 0])

    assert derive_from_gps_track(track) == []
    flushed = derive_from_gps_track(track, flush_trailing=True)
    assert len(flushed) == 1
    assert flushed[0].duration == 4


def test_first_eight_clustered_stops_are_deliveries_then_breaks():
    speeds = []
    for _ in range(10):
        speeds += [0, 0, 0, 0, 30]

    stops = derive_from_gps_track(make_track(speeds))

    assert len(stops) == 10
    assert [s.type for s in stops[:8]] == [StopType.DELIVERY] * 8
    assert [s.type for s in stops[8:]] == [StopType.BREAK] * 2
    assert [s.id for s in stops] == [f"stop-{n}" for n in range(1, 11)]


def test_clustered_stops_are_long_enough_and_never_overlap():
    speeds = [0, 0, 0, 0, 0, 12, 30, 0, 0, 0, 0, 40, 1, 2, 3, 0, 0, 0, 25, 0]
    stops = derive_from_gps_track(make_track(speeds, step=timedelta(seconds=50)))

    assert stops
    assert all(s.duration >= 3 for s in stops)
    for earlier, later in zip(stops, stops[1:]):
        assert earlier.departure_time < later.arrival_time
