"""
Driver-day presentation service.

Applies the time-range filter and computes the full and filtered summaries
for one driver-day, optionally resuming a filter the dashboard persisted.
"""

from typing import Optional

from daytrack.app.domain.driver_day.time_filter import (
    filter_deliveries, filter_stops, filter_track, reconcile_selection
)
from daytrack.app.domain.driver_day.track_stats import compute_track_statistics
from daytrack.app.domain.driver_day.view_state import DriverDayViewState, FilterState
from daytrack.app.models.enums import StopContainmentPolicy
from daytrack.app.schemas.driver_day import (
    DriverDay, DriverDayResponse, DriverDaySummary, DriverDayView, TimeRange
)


def build_driver_day_response(
    driver_day: DriverDay,
    time_range: Optional[TimeRange] = None,
    policy: StopContainmentPolicy = StopContainmentPolicy.ARRIVAL_ONLY,
    selected_stop_id: Optional[str] = None,
    persisted_filter: Optional[str] = None,
) -> DriverDayResponse:
    """
    Wrap a driver-day with its filtered view and summaries.

    The selected stop is echoed back only if it survives the filter.
    """
    track = filter_track(driver_day.gps_track, time_range)
    stops = filter_stops(driver_day.stops, time_range, policy)
    deliveries = filter_deliveries(driver_day.deliveries, stops)

    view = DriverDayView(
        time_range=time_range,
        policy=policy,
        gps_track=track,
        stops=stops,
        deliveries=deliveries,
        selected_stop_id=reconcile_selection(selected_stop_id, stops),
    )
    summary = DriverDaySummary(
        full=compute_track_statistics(driver_day.gps_track, driver_day.stops),
        filtered=compute_track_statistics(track, stops),
    )

    gps_track = driver_day.gps_track
    return DriverDayResponse(
        driver_id=driver_day.driver_id,
        driver_name=driver_day.driver_name,
        date=driver_day.date,
        gps_track=gps_track,
        stops=driver_day.stops,
        deliveries=driver_day.deliveries,
        track_start=gps_track[0].timestamp if gps_track else None,
        track_end=gps_track[-1].timestamp if gps_track else None,
        view=view,
        summary=summary,
        persisted_filter=persisted_filter,
    )


def resolve_driver_day_view(
    driver_day: DriverDay,
    persisted_filter: Optional[str] = None,
    time_range: Optional[TimeRange] = None,
    policy: StopContainmentPolicy = StopContainmentPolicy.ARRIVAL_ONLY,
    selected_stop_id: Optional[str] = None,
) -> DriverDayResponse:
    """
    Run one dashboard load through the view state.

    A persisted filter for the same driver and date is restored with its
    time range; one for another driver or date counts as a selection change
    and its range is dropped. An explicit `time_range` wins over both. The
    response carries the updated filter JSON.
    """
    state = DriverDayViewState(policy=policy)
    persisted = FilterState.from_json(persisted_filter)
    if persisted.driver_id == driver_day.driver_id and persisted.day == driver_day.date:
        state.restore(persisted)

    generation = state.select_driver_and_date(driver_day.driver_id, driver_day.date)
    if time_range is not None:
        state.apply_time_range(time_range)
    state.complete_fetch(generation, driver_day)
    state.select_stop(selected_stop_id)

    return build_driver_day_response(
        driver_day,
        state.filter.time_range,
        policy,
        state.selected_stop_id,
        persisted_filter=state.filter.to_json(),
    )
