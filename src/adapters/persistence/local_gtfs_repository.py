from __future__ import annotations

import os
import zipfile
from dataclasses import dataclass
from pathlib import Path

from src.adapters.persistence.gtfs_parser import (
    build_schedule,
    build_schedule_from_zip,
    read_directory_tables,
)
from src.app.ports.output import IGtfsRepository
from src.domain.exceptions import ScheduleUnavailable
from src.domain.models.gtfs import ScheduleStore


@dataclass(slots=True)
class LocalGtfsRepository(IGtfsRepository):
    """Loads a GTFS schedule from a directory of .txt files or a .zip archive.

    Env vars:
      - GTFS_PATH: directory containing stops.txt, trips.txt, stop_times.txt,
        calendar.txt ... or a path to google_transit.zip
    """

    base_path: str | Path | None = None

    def _base(self) -> Path:
        value = self.base_path or os.getenv("GTFS_PATH") or "data/gtfs"
        return Path(value)

    def load_schedule(self) -> ScheduleStore:
        base = self._base()
        if not base.exists():
            raise ScheduleUnavailable(f"GTFS path not found: {base}")

        if base.is_dir():
            return build_schedule(read_directory_tables(base))

        try:
            return build_schedule_from_zip(base)
        except zipfile.BadZipFile as exc:
            raise ScheduleUnavailable(f"Not a GTFS zip archive: {base}") from exc
