from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable

from src.domain.algorithms.position_simulator import placeholder_position
from src.domain.models import RunningState, ScheduleStore, TrainPosition

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class TrainTracker:
    """Remembers trains across ticks so that vanished trains can be shown as ENDED.

    The simulator is stateless; this is the caller-side memory layered on top.
    """

    store: ScheduleStore
    _live: dict[str, TrainPosition] = field(default_factory=dict, init=False)
    _ended: dict[str, TrainPosition] = field(default_factory=dict, init=False)

    @property
    def live(self) -> tuple[TrainPosition, ...]:
        return tuple(self._live.values())

    def observe(self, positions: Iterable[TrainPosition]) -> list[TrainPosition]:
        """Record one tick of live positions.

        Returns ENDED records for trains that were live on the previous tick
        and are missing from this one.
        """

        current = {p.trip_id: p for p in positions}

        newly_ended: list[TrainPosition] = []
        for trip_id in self._live.keys() - current.keys():
            ended = placeholder_position(self.store, trip_id, RunningState.ENDED)
            if ended is None:
                continue
            self._ended[trip_id] = ended
            newly_ended.append(ended)

        for trip_id in current.keys() & self._ended.keys():
            del self._ended[trip_id]

        self._live = current
        if newly_ended:
            logger.debug("%d trains ended", len(newly_ended))
        return newly_ended

    def was_observed(self, trip_id: str) -> bool:
        return trip_id in self._live or trip_id in self._ended

    def status(self, trip_id: str) -> TrainPosition | None:
        """Latest known record for a trip: live, ENDED or a SCHEDULED placeholder."""

        live = self._live.get(trip_id)
        if live is not None:
            return live
        ended = self._ended.get(trip_id)
        if ended is not None:
            return ended
        return placeholder_position(self.store, trip_id, RunningState.SCHEDULED)
