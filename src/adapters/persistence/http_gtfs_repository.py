from __future__ import annotations

import logging
import os
import zipfile
from dataclasses import dataclass

import httpx

from src.adapters.persistence.gtfs_parser import build_schedule_from_zip
from src.app.ports.output import IGtfsRepository
from src.domain.exceptions import ScheduleUnavailable
from src.domain.models.gtfs import ScheduleStore

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT_S = 60.0


@dataclass(slots=True)
class HttpGtfsRepository(IGtfsRepository):
    """Downloads a GTFS zip archive over HTTP.

    Env vars:
      - GTFS_URL: URL of the archive (e.g. an operator's google_transit.zip)
      - GTFS_HTTP_TIMEOUT_S: request timeout when none is passed (default 60)
    """

    url: str | None = None
    timeout_s: float | None = None
    transport: httpx.BaseTransport | None = None

    def __post_init__(self) -> None:
        if self.url is None:
            self.url = os.getenv("GTFS_URL")
        if self.timeout_s is None:
            self.timeout_s = float(
                os.getenv("GTFS_HTTP_TIMEOUT_S") or _DEFAULT_TIMEOUT_S
            )

    def load_schedule(self) -> ScheduleStore:
        if not self.url:
            raise ScheduleUnavailable("Missing GTFS_URL")

        logger.info("Downloading GTFS archive from %s", self.url)
        try:
            with httpx.Client(
                timeout=self.timeout_s, follow_redirects=True, transport=self.transport
            ) as client:
                resp = client.get(self.url)
                resp.raise_for_status()
                content = resp.content
        except httpx.HTTPError as exc:
            raise ScheduleUnavailable(f"Failed to fetch GTFS data: {exc}") from exc

        try:
            return build_schedule_from_zip(content)
        except zipfile.BadZipFile as exc:
            raise ScheduleUnavailable(
                f"Downloaded file is not a zip archive: {self.url}"
            ) from exc
