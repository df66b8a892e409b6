from __future__ import annotations

import csv
import io
import logging
import zipfile
from pathlib import Path
from typing import IO, Callable, Iterable, Mapping

from src.domain.algorithms.time_codec import parse_gtfs_time
from src.domain.models import (
    CalendarException,
    CalendarRule,
    ExceptionType,
    GeoPoint,
    ScheduleStore,
    Stop,
    StopTime,
    TransitRoute,
    Trip,
)

logger = logging.getLogger(__name__)

Row = Mapping[str, str]
TableReader = Callable[[str], Iterable[Row] | None]

_DAY_COLUMNS = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)


def _text(row: Row, column: str) -> str | None:
    return (row.get(column) or "").strip() or None


def _read_csv(fp: IO[str]) -> list[Row]:
    return list(csv.DictReader(fp))


def read_directory_tables(base: Path) -> TableReader:
    def read(name: str) -> list[Row] | None:
        path = base / name
        if not path.exists():
            return None
        with path.open("r", encoding="utf-8-sig", newline="") as fp:
            return _read_csv(fp)

    return read


def read_zip_tables(archive: zipfile.ZipFile) -> TableReader:
    def read(name: str) -> list[Row] | None:
        # Some archives wrap the tables in a top-level folder.
        member = next(
            (
                n
                for n in archive.namelist()
                if n == name or n.endswith("/" + name)
            ),
            None,
        )
        if member is None:
            return None
        with archive.open(member) as raw:
            fp = io.TextIOWrapper(raw, encoding="utf-8-sig", newline="")
            return _read_csv(fp)

    return read


def _table(read_table: TableReader, name: str) -> Iterable[Row]:
    rows = read_table(name)
    if rows is None:
        logger.warning("%s not found in GTFS source", name)
        return ()
    return rows


def _parse_stops(rows: Iterable[Row]) -> dict[str, Stop]:
    stops_by_id: dict[str, Stop] = {}
    for row in rows:
        stop_id = _text(row, "stop_id")
        if not stop_id:
            continue
        try:
            location = GeoPoint(lat=float(row["stop_lat"]), lon=float(row["stop_lon"]))
        except (TypeError, ValueError, KeyError):
            logger.debug("Skipping stop %s with invalid coordinates", stop_id)
            continue
        stops_by_id[stop_id] = Stop(
            id=stop_id, name=_text(row, "stop_name") or stop_id, location=location
        )
    return stops_by_id


def _parse_routes(rows: Iterable[Row]) -> dict[str, TransitRoute]:
    routes_by_id: dict[str, TransitRoute] = {}
    for row in rows:
        route_id = _text(row, "route_id")
        if not route_id:
            continue
        routes_by_id[route_id] = TransitRoute(
            route_id=route_id,
            short_name=_text(row, "route_short_name"),
            long_name=_text(row, "route_long_name"),
            route_type=_text(row, "route_type"),
            color=_text(row, "route_color"),
            text_color=_text(row, "route_text_color"),
        )
    return routes_by_id


def _parse_trips(rows: Iterable[Row]) -> dict[str, Trip]:
    trips_by_id: dict[str, Trip] = {}
    for row in rows:
        trip_id = _text(row, "trip_id")
        if not trip_id:
            continue
        trips_by_id[trip_id] = Trip(
            trip_id=trip_id,
            route_id=_text(row, "route_id") or "",
            service_id=_text(row, "service_id") or "",
            headsign=_text(row, "trip_headsign") or "",
            short_name=_text(row, "trip_short_name"),
            direction_id=_text(row, "direction_id"),
        )
    return trips_by_id


def _parse_stop_times(
    rows: Iterable[Row], trips_by_id: Mapping[str, Trip]
) -> dict[str, tuple[StopTime, ...]]:
    grouped: dict[str, list[StopTime]] = {}
    dropped = 0
    for row in rows:
        trip_id = _text(row, "trip_id")
        stop_id = _text(row, "stop_id")
        if not trip_id or not stop_id:
            continue
        if trip_id not in trips_by_id:
            dropped += 1
            continue

        arrival = (row.get("arrival_time") or "").strip()
        departure = (row.get("departure_time") or "").strip()
        try:
            stop_time = StopTime(
                trip_id=trip_id,
                stop_id=stop_id,
                stop_sequence=int(row.get("stop_sequence") or 0),
                arrival_time=arrival,
                departure_time=departure,
                arrival_s=parse_gtfs_time(arrival),
                departure_s=parse_gtfs_time(departure),
            )
        except ValueError:
            logger.debug("Skipping malformed stop_time for trip %s", trip_id)
            continue
        grouped.setdefault(trip_id, []).append(stop_time)

    if dropped:
        logger.info("Dropped %d stop_times referencing unknown trips", dropped)

    return {
        trip_id: tuple(sorted(entries, key=lambda st: st.stop_sequence))
        for trip_id, entries in grouped.items()
    }


def _parse_calendar(rows: Iterable[Row]) -> dict[str, CalendarRule]:
    calendar_by_service: dict[str, CalendarRule] = {}
    for row in rows:
        service_id = _text(row, "service_id")
        if not service_id:
            continue
        try:
            start_date = int(row["start_date"])
            end_date = int(row["end_date"])
        except (TypeError, ValueError, KeyError):
            continue
        days = {day: _text(row, day) == "1" for day in _DAY_COLUMNS}
        calendar_by_service[service_id] = CalendarRule(
            service_id=service_id, start_date=start_date, end_date=end_date, **days
        )
    return calendar_by_service


def _parse_calendar_dates(
    rows: Iterable[Row],
) -> dict[str, tuple[CalendarException, ...]]:
    grouped: dict[str, list[CalendarException]] = {}
    for row in rows:
        service_id = _text(row, "service_id")
        if not service_id:
            continue
        try:
            exception = CalendarException(
                service_id=service_id,
                date=int(row["date"]),
                exception_type=ExceptionType(int(row["exception_type"])),
            )
        except (TypeError, ValueError, KeyError):
            continue
        grouped.setdefault(service_id, []).append(exception)
    return {service_id: tuple(entries) for service_id, entries in grouped.items()}


def build_schedule(read_table: TableReader) -> ScheduleStore:
    """Build a ScheduleStore from GTFS tables.

    Missing tables are logged and treated as empty. Rows with blank keys or
    unparseable numbers are skipped, and stop_times of unknown trips are dropped.
    """

    trips_by_id = _parse_trips(_table(read_table, "trips.txt"))
    store = ScheduleStore(
        stops_by_id=_parse_stops(_table(read_table, "stops.txt")),
        routes_by_id=_parse_routes(_table(read_table, "routes.txt")),
        trips_by_id=trips_by_id,
        stop_times_by_trip=_parse_stop_times(
            _table(read_table, "stop_times.txt"), trips_by_id
        ),
        calendar_by_service=_parse_calendar(_table(read_table, "calendar.txt")),
        exceptions_by_service=_parse_calendar_dates(
            _table(read_table, "calendar_dates.txt")
        ),
    )
    logger.info(
        "Loaded schedule: %d stops, %d routes, %d trips, %d services",
        len(store.stops_by_id),
        len(store.routes_by_id),
        len(store.trips_by_id),
        len(store.calendar_by_service),
    )
    return store


def build_schedule_from_zip(content: bytes | Path) -> ScheduleStore:
    source: IO[bytes] | Path = (
        io.BytesIO(content) if isinstance(content, bytes) else content
    )
    with zipfile.ZipFile(source) as archive:
        return build_schedule(read_zip_tables(archive))
