from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

from .stop import Stop


@dataclass(frozen=True, slots=True)
class TransitRoute:
    """Route metadata (subset of GTFS routes.txt)."""

    route_id: str
    short_name: str | None = None
    long_name: str | None = None
    route_type: str | None = None
    color: str | None = None  # hex without '#'
    text_color: str | None = None  # hex without '#'


@dataclass(frozen=True, slots=True)
class Trip:
    trip_id: str
    route_id: str
    service_id: str
    headsign: str = ""
    short_name: str | None = None  # train number shown to passengers
    direction_id: str | None = None


@dataclass(frozen=True, slots=True)
class StopTime:
    """One scheduled visit of a trip to a stop.

    `arrival_s` / `departure_s` are seconds since service day midnight
    (GTFS time semantics; may exceed 24h).
    """

    trip_id: str
    stop_id: str
    stop_sequence: int
    arrival_time: str
    departure_time: str
    arrival_s: int
    departure_s: int


_WEEKDAYS = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)


@dataclass(frozen=True, slots=True)
class CalendarRule:
    """Weekly pattern of a service with an inclusive YYYYMMDD validity window."""

    service_id: str
    monday: bool
    tuesday: bool
    wednesday: bool
    thursday: bool
    friday: bool
    saturday: bool
    sunday: bool
    start_date: int
    end_date: int

    def runs_on(self, weekday: int) -> bool:
        # weekday follows date.weekday(): 0 = Monday
        return bool(getattr(self, _WEEKDAYS[weekday]))

    def covers(self, date_int: int) -> bool:
        return self.start_date <= date_int <= self.end_date


class ExceptionType(IntEnum):
    ADDED = 1
    REMOVED = 2


@dataclass(frozen=True, slots=True)
class CalendarException:
    service_id: str
    date: int
    exception_type: ExceptionType


@dataclass(frozen=True, slots=True)
class ScheduleStore:
    """In-memory representation of the static schedule.

    Built once per dataset load and never mutated afterwards. Stop times are
    grouped per trip and sorted by stop_sequence.
    """

    stops_by_id: dict[str, Stop]
    routes_by_id: dict[str, TransitRoute]
    trips_by_id: dict[str, Trip]
    stop_times_by_trip: dict[str, tuple[StopTime, ...]]
    calendar_by_service: dict[str, CalendarRule]
    exceptions_by_service: dict[str, tuple[CalendarException, ...]]

    def route_for(self, trip_id: str) -> TransitRoute | None:
        trip = self.trips_by_id.get(trip_id)
        if trip is None:
            return None
        return self.routes_by_id.get(trip.route_id)

    def first_stop(self, trip_id: str) -> Stop | None:
        times = self.stop_times_by_trip.get(trip_id)
        if not times:
            return None
        return self.stops_by_id.get(times[0].stop_id)


def empty_schedule() -> ScheduleStore:
    return ScheduleStore(
        stops_by_id={},
        routes_by_id={},
        trips_by_id={},
        stop_times_by_trip={},
        calendar_by_service={},
        exceptions_by_service={},
    )
