from __future__ import annotations

from abc import ABC, abstractmethod

from src.domain.models.gtfs import ScheduleStore


class IGtfsRepository(ABC):
    """Port for loading a static GTFS schedule into an in-memory store."""

    @abstractmethod
    def load_schedule(self) -> ScheduleStore:
        raise NotImplementedError
