"""
Time-range filtering of tracks, stops and deliveries.
"""

from datetime import datetime, timedelta

import pytest
from pydantic import ValidationError

from daytrack.app.domain.driver_day.time_filter import (
    filter_deliveries, filter_stops, filter_track, reconcile_selection
)
from daytrack.app.models.enums import DeliveryStatus, StopContainmentPolicy, StopType
from daytrack.app.schemas.driver_day import Delivery, GPSPoint, Stop, TimeRange

BASE = datetime(2024, 3, 5, 8, 0)


def minutes(n):
    return BASE + timedelta(minutes=n)


@pytest.fixture
def track():
    return [GPSPoint(lat=51.5, lng=-0.1, timestamp=minutes(n), speed=10) for n in range(0, 120, 10)]


@pytest.fixture
def stops():
    return [
        Stop(id="stop-1", lat=1, lng=1, arrival_time=minutes(10), departure_time=minutes(20), duration=10, type=StopType.DELIVERY),
        Stop(id="stop-2", lat=1, lng=1, arrival_time=minutes(55), departure_time=minutes(70), duration=15, type=StopType.DELIVERY),
        Stop(id="stop-3", lat=1, lng=1, arrival_time=minutes(90), departure_time=minutes(95), duration=5, type=StopType.BREAK),
    ]


@pytest.fixture
def deliveries():
    return [
        Delivery(id="delivery-1", stop_id="stop-1", status=DeliveryStatus.COMPLETED),
        Delivery(id="delivery-2", stop_id="stop-2", status=DeliveryStatus.FAILED),
    ]


def test_no_range_is_identity(track, stops):
    assert filter_track(track, None) == track
    assert filter_stops(stops, None) == stops


def test_track_bounds_are_inclusive(track):
    kept = filter_track(track, TimeRange(start=minutes(10), end=minutes(30)))
    assert [p.timestamp for p in kept] == [minutes(10), minutes(20), minutes(30)]


def test_arrival_only_ignores_departure(stops):
    window = TimeRange(start=minutes(0), end=minutes(60))

    kept = filter_stops(stops, window, StopContainmentPolicy.ARRIVAL_ONLY)

    assert [s.id for s in kept] == ["stop-1", "stop-2"]


def test_fully_contained_requires_whole_interval(stops):
    window = TimeRange(start=minutes(0), end=minutes(60))

    kept = filter_stops(stops, window, StopContainmentPolicy.FULLY_CONTAINED)

    assert [s.id for s in kept] == ["stop-1"]


def test_default_policy_is_arrival_only(stops):
    window = TimeRange(start=minutes(50), end=minutes(60))
    assert [s.id for s in filter_stops(stops, window)] == ["stop-2"]


@pytest.mark.parametrize("policy", list(StopContainmentPolicy))
def test_zero_width_window_is_empty(track, stops, policy):
    window = TimeRange(start=minutes(10), end=minutes(10))

    assert window.is_empty
    assert filter_track(track, window) == []
    assert filter_stops(stops, window, policy) == []


def test_reversed_range_is_rejected():
    with pytest.raises(ValidationError):
        TimeRange(start=minutes(30), end=minutes(10))


@pytest.mark.parametrize("policy", list(StopContainmentPolicy))
def test_filtering_is_idempotent(track, stops, policy):
    window = TimeRange(start=minutes(5), end=minutes(92))

    once_track = filter_track(track, window)
    once_stops = filter_stops(stops, window, policy)

    assert filter_track(once_track, window) == once_track
    assert filter_stops(once_stops, window, policy) == once_stops


def test_deliveries_follow_their_stops(stops, deliveries):
    kept = filter_stops(stops, TimeRange(start=minutes(50), end=minutes(100)))

    assert [d.id for d in filter_deliveries(deliveries, kept)] == ["delivery-2"]
    assert filter_deliveries(deliveries, []) == []


def test_selection_outside_filtered_stops_is_cleared(stops):
    kept = filter_stops(stops, TimeRange(start=minutes(50), end=minutes(100)))

    assert reconcile_selection("stop-2", kept) == "stop-2"
    assert reconcile_selection("stop-1", kept) is None
    assert reconcile_selection(None, kept) is None
