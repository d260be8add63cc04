"""
Dashboard view state.

Tracks the selected driver, date, time range and stop for one viewer:

- changing driver or date clears the time range, except on the single
  update that restores a persisted filter;
- applying a time range clears a selected stop that falls outside it;
- fetch results are tagged with a generation so a superseded fetch is
  discarded (last write wins).

The filter part round-trips through JSON with the range stored as a pair of
ISO strings, which is what the dashboard keeps in client-local storage.
"""

import json
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional

from daytrack.app.core.dates import to_local_naive
from daytrack.app.domain.driver_day.time_filter import filter_stops, reconcile_selection
from daytrack.app.models.enums import StopContainmentPolicy
from daytrack.app.schemas.driver_day import DriverDay, Stop, TimeRange


def _parse_instant(value: str) -> datetime:
    return to_local_naive(datetime.fromisoformat(value.replace("Z", "+00:00")))


@dataclass
class FilterState:
    """Persisted dashboard filter."""
    driver_id: Optional[str] = None
    day: Optional[date] = None
    time_range: Optional[TimeRange] = None

    def to_json(self) -> str:
        return json.dumps({
            "driverId": self.driver_id,
            "date": self.day.isoformat() if self.day else None,
            "timeRange": (
                {"start": self.time_range.start.isoformat(), "end": self.time_range.end.isoformat()}
                if self.time_range else None
            ),
        })

    @classmethod
    def from_json(cls, raw: Optional[str]) -> "FilterState":
        """Restore a persisted filter; unreadable input gives an empty filter."""
        if not raw:
            return cls()
        try:
            data = json.loads(raw)
            time_range = None
            if data.get("timeRange"):
                time_range = TimeRange(
                    start=_parse_instant(data["timeRange"]["start"]),
                    end=_parse_instant(data["timeRange"]["end"]),
                )
            return cls(
                driver_id=str(data["driverId"]) if data.get("driverId") is not None else None,
                day=date.fromisoformat(data["date"]) if data.get("date") else None,
                time_range=time_range,
            )
        except (ValueError, TypeError, KeyError, AttributeError):
            return cls()


@dataclass
class DriverDayViewState:
    policy: StopContainmentPolicy = StopContainmentPolicy.ARRIVAL_ONLY
    filter: FilterState = field(default_factory=FilterState)
    driver_day: Optional[DriverDay] = None
    selected_stop_id: Optional[str] = None
    generation: int = 0
    _restoring: bool = False

    def restore(self, persisted: FilterState) -> None:
        """Load a persisted filter; the next selection change keeps its range."""
        self.filter = persisted
        self._restoring = True

    def select_driver_and_date(self, driver_id: Optional[str], day: Optional[date]) -> int:
        """
        Change the driver/date selection and start a new fetch.

        Returns:
            The generation token the fetch result must be completed with
        """
        if self._restoring:
            self._restoring = False
        else:
            self.filter.time_range = None
        self.filter.driver_id = driver_id
        self.filter.day = day
        self.driver_day = None
        self.selected_stop_id = None
        self.generation += 1
        return self.generation

    def complete_fetch(self, generation: int, driver_day: DriverDay) -> bool:
        """Store a fetch result unless a newer fetch has started since."""
        if generation != self.generation:
            return False
        self.driver_day = driver_day
        self._reconcile()
        return True

    def apply_time_range(self, time_range: Optional[TimeRange]) -> None:
        self.filter.time_range = time_range
        self._reconcile()

    def select_stop(self, stop_id: Optional[str]) -> None:
        """Select a stop, or toggle it off when it is already selected."""
        if stop_id is not None and stop_id == self.selected_stop_id:
            stop_id = None
        self.selected_stop_id = reconcile_selection(stop_id, self.visible_stops)

    @property
    def visible_stops(self) -> List[Stop]:
        if self.driver_day is None:
            return []
        return filter_stops(self.driver_day.stops, self.filter.time_range, self.policy)

    def _reconcile(self) -> None:
        self.selected_stop_id = reconcile_selection(self.selected_stop_id, self.visible_stops)
