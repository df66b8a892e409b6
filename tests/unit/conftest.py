from __future__ import annotations

from typing import Callable

import pytest

from src.domain.algorithms.time_codec import format_gtfs_time
from src.domain.models import (
    CalendarRule,
    GeoPoint,
    ScheduleStore,
    Stop,
    StopTime,
    TransitRoute,
    Trip,
)

StopTimeFactory = Callable[[str, str, int, int, int], StopTime]


def _stop_time(
    trip_id: str, stop_id: str, seq: int, arr_s: int, dep_s: int
) -> StopTime:
    return StopTime(
        trip_id=trip_id,
        stop_id=stop_id,
        stop_sequence=seq,
        arrival_time=format_gtfs_time(arr_s),
        departure_time=format_gtfs_time(dep_s),
        arrival_s=arr_s,
        departure_s=dep_s,
    )


def _weekly(service_id: str, days: str, start: int, end: int) -> CalendarRule:
    names = (
        "monday",
        "tuesday",
        "wednesday",
        "thursday",
        "friday",
        "saturday",
        "sunday",
    )
    return CalendarRule(
        service_id=service_id,
        start_date=start,
        end_date=end,
        **{name: flag == "1" for name, flag in zip(names, days)},
    )


@pytest.fixture
def stop_time() -> StopTimeFactory:
    return _stop_time


@pytest.fixture
def weekly_rule() -> Callable[[str, str, int, int], CalendarRule]:
    return _weekly


@pytest.fixture
def line_store() -> ScheduleStore:
    """Madrid -> Guadalajara -> Zaragoza style line with a weekday and a weekend trip.

    T1 (weekdays): A 08:00 -> B 08:20/08:21 -> C 09:00
    T2 (weekends): A 08:00 -> C 09:00
    """

    stops = {
        "A": Stop(id="A", name="Alpha", location=GeoPoint(lat=40.0, lon=-3.0)),
        "B": Stop(id="B", name="Beta", location=GeoPoint(lat=41.0, lon=-3.0)),
        "C": Stop(id="C", name="Gamma", location=GeoPoint(lat=41.0, lon=-2.0)),
    }
    return ScheduleStore(
        stops_by_id=stops,
        routes_by_id={
            "R1": TransitRoute(route_id="R1", short_name="AVE", route_type="2"),
        },
        trips_by_id={
            "T1": Trip(
                trip_id="T1",
                route_id="R1",
                service_id="WEEKDAY",
                headsign="Gamma",
                short_name="03202",
            ),
            "T2": Trip(
                trip_id="T2", route_id="R1", service_id="WEEKEND", headsign="Gamma"
            ),
        },
        stop_times_by_trip={
            "T1": (
                _stop_time("T1", "A", 1, 28800, 28800),
                _stop_time("T1", "B", 2, 30000, 30060),
                _stop_time("T1", "C", 3, 32400, 32400),
            ),
            "T2": (
                _stop_time("T2", "A", 1, 28800, 28800),
                _stop_time("T2", "C", 2, 32400, 32400),
            ),
        },
        calendar_by_service={
            "WEEKDAY": _weekly("WEEKDAY", "1111100", 20240101, 20241231),
            "WEEKEND": _weekly("WEEKEND", "0000011", 20240101, 20241231),
        },
        exceptions_by_service={},
    )
