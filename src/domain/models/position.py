from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .gtfs import TransitRoute, Trip
from .stop import Stop


class RunningState(str, Enum):
    MOVING = "MOVING"
    AT_STOP = "AT_STOP"
    # Only built by callers, never by the simulator.
    SCHEDULED = "SCHEDULED"
    ENDED = "ENDED"

    @property
    def is_live(self) -> bool:
        return self in (RunningState.MOVING, RunningState.AT_STOP)


@dataclass(frozen=True, slots=True)
class TrainPosition:
    """Where a trip is at one tick. Recomputed every tick, never persisted."""

    trip_id: str
    lat: float
    lon: float
    bearing: float
    state: RunningState
    prev_stop: Stop | None = None
    next_stop: Stop | None = None
    route: TransitRoute | None = None
    trip: Trip | None = None
    progress: float | None = None
    speed_kmh: float | None = None
