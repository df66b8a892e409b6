from __future__ import annotations

import logging
import os
import time

from src.adapters.api.dependencies import get_gtfs_repository
from src.app.services.live_trains_service import LiveTrainsService, TrainsSnapshot
from src.domain.algorithms.time_codec import format_gtfs_time

logger = logging.getLogger("src.worker")


def _log_snapshot(snapshot: TrainsSnapshot) -> None:
    logger.info(
        "%s %s: %d trains running (%d trips active today)",
        snapshot.service_date.isoformat(),
        format_gtfs_time(snapshot.seconds_since_midnight),
        len(snapshot.positions),
        snapshot.active_trip_count,
    )
    for ended in snapshot.ended:
        headsign = ended.trip.headsign if ended.trip else ""
        logger.info("Trip %s ended %s", ended.trip_id, headsign)


def main() -> None:
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    service = LiveTrainsService(
        gtfs_repository=get_gtfs_repository(),
        timezone_name=os.getenv("TRANSIT_TIMEZONE"),
    )
    service.schedule()

    tick_s = float(os.getenv("SIMULATION_TICK_S", "1.0"))
    loop = os.getenv("WORKER_LOOP", "1").strip().lower() not in {"0", "false", "no"}

    while True:
        started = time.monotonic()
        _log_snapshot(service.tick())
        if not loop:
            return
        # A late tick just yields a slightly stale snapshot; never catch up.
        time.sleep(max(0.0, tick_s - (time.monotonic() - started)))


if __name__ == "__main__":
    main()
