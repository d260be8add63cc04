"""
Sleep session state machine.

Two states, Idle and Active(start_time):

    start: Idle -> Active(now)
    end:   Active(start) -> Idle, emitting one completed sleep

Starting while Active or ending while Idle is rejected.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple

from daytrack.app.core.exceptions import InvalidOperationError


@dataclass(frozen=True)
class SleepState:
    start_time: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.start_time is not None


IDLE = SleepState()


@dataclass(frozen=True)
class CompletedSleep:
    start_time: datetime
    end_time: datetime

    @property
    def duration_ms(self) -> int:
        return int((self.end_time - self.start_time).total_seconds() * 1000)


def start_sleep(state: SleepState, now: datetime) -> SleepState:
    if state.is_active:
        raise InvalidOperationError(
            "Sleep session already active",
            details={"start_time": state.start_time.isoformat()},
        )
    return SleepState(start_time=now)


def end_sleep(state: SleepState, now: datetime) -> Tuple[SleepState, CompletedSleep]:
    if not state.is_active:
        raise InvalidOperationError("No active sleep session")
    if now < state.start_time:
        raise InvalidOperationError("Sleep cannot end before it started")
    return IDLE, CompletedSleep(start_time=state.start_time, end_time=now)
