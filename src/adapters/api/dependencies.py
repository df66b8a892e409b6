from __future__ import annotations

import os
from functools import lru_cache

from src.adapters.persistence.http_gtfs_repository import HttpGtfsRepository
from src.adapters.persistence.local_gtfs_repository import LocalGtfsRepository
from src.adapters.persistence.s3_gtfs_repository import S3GtfsRepository
from src.app.ports.output import IGtfsRepository
from src.app.services.live_trains_service import LiveTrainsService


def get_gtfs_repository() -> IGtfsRepository:
    """Pick the schedule source from the environment.

    GTFS_URL wins over GTFS_S3_BUCKET, which wins over GTFS_PATH.
    """

    if os.getenv("GTFS_URL"):
        return HttpGtfsRepository()
    if os.getenv("GTFS_S3_BUCKET"):
        return S3GtfsRepository()
    return LocalGtfsRepository()


@lru_cache(maxsize=1)
def get_live_trains_service() -> LiveTrainsService:
    # One instance per process: it owns the loaded schedule and tracker state.
    return LiveTrainsService(
        gtfs_repository=get_gtfs_repository(),
        timezone_name=os.getenv("TRANSIT_TIMEZONE"),
    )
