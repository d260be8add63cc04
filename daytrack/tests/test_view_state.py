"""
Dashboard view state: range reset, restore, stale fetches and selection.
"""

from datetime import date, datetime

from daytrack.app.domain.driver_day.view_state import DriverDayViewState, FilterState
from daytrack.app.models.enums import StopType
from daytrack.app.schemas.driver_day import DriverDay, Stop, TimeRange

DAY = date(2024, 3, 5)
MORNING = TimeRange(start=datetime(2024, 3, 5, 8, 0), end=datetime(2024, 3, 5, 12, 0))


def make_day(driver_id="42"):
    stops = [
        Stop(
            id="stop-1", lat=0, lng=0, type=StopType.PICKUP, duration=0,
            arrival_time=datetime(2024, 3, 5, 9, 0), departure_time=datetime(2024, 3, 5, 9, 0),
        ),
        Stop(
            id="stop-2", lat=0, lng=0, type=StopType.DELIVERED, duration=0,
            arrival_time=datetime(2024, 3, 5, 15, 0), departure_time=datetime(2024, 3, 5, 15, 0),
        ),
    ]
    return DriverDay(driver_id=driver_id, driver_name="Zoe Rider", date=DAY, stops=stops)


def test_changing_driver_resets_time_range():
    state = DriverDayViewState()
    state.select_driver_and_date("42", DAY)
    state.apply_time_range(MORNING)

    state.select_driver_and_date("7", DAY)

    assert state.filter.time_range is None


def test_restored_range_survives_one_selection_only():
    state = DriverDayViewState()
    state.restore(FilterState(driver_id="42", day=DAY, time_range=MORNING))

    state.select_driver_and_date("42", DAY)
    assert state.filter.time_range == MORNING

    state.select_driver_and_date("42", date(2024, 3, 6))
    assert state.filter.time_range is None


def test_stale_fetch_is_discarded():
    state = DriverDayViewState()
    first = state.select_driver_and_date("42", DAY)
    second = state.select_driver_and_date("7", DAY)

    assert state.complete_fetch(first, make_day("42")) is False
    assert state.driver_day is None
    assert state.complete_fetch(second, make_day("7")) is True
    assert state.driver_day.driver_id == "7"


def test_applying_range_clears_hidden_selection():
    state = DriverDayViewState()
    generation = state.select_driver_and_date("42", DAY)
    state.complete_fetch(generation, make_day())
    state.select_stop("stop-2")
    assert state.selected_stop_id == "stop-2"

    state.apply_time_range(MORNING)

    assert state.selected_stop_id is None
    assert [s.id for s in state.visible_stops] == ["stop-1"]


def test_selecting_same_stop_toggles_it_off():
    state = DriverDayViewState()
    state.complete_fetch(state.select_driver_and_date("42", DAY), make_day())

    state.select_stop("stop-1")
    state.select_stop("stop-1")

    assert state.selected_stop_id is None


def test_filter_state_json_round_trip():
    original = FilterState(driver_id="42", day=DAY, time_range=MORNING)

    raw = original.to_json()
    restored = FilterState.from_json(raw)

    assert '"timeRange": {"start": "2024-03-05T08:00:00", "end": "2024-03-05T12:00:00"}' in raw
    assert restored == original


def test_unreadable_filter_state_gives_empty_filter():
    assert FilterState.from_json("not json") == FilterState()
    assert FilterState.from_json('{"timeRange": {"start": "2024-03-05T12:00:00", "end": "2024-03-05T08:00:00"}}') == FilterState()
    assert FilterState.from_json(None) == FilterState()
