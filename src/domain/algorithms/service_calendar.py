from __future__ import annotations

from datetime import date

from src.domain.models import ExceptionType, ScheduleStore


def date_to_int(d: date) -> int:
    """Return the GTFS YYYYMMDD integer form of a date."""

    return d.year * 10000 + d.month * 100 + d.day


def active_service_ids(store: ScheduleStore, on: date) -> frozenset[str]:
    """Service ids running on `on` (a date in the reference zone).

    Weekly rules are scanned first; calendar_dates exceptions are applied
    afterwards and independently of the rule window, so an ADDED entry can
    activate a service with no weekly rule at all.
    """

    date_int = date_to_int(on)
    weekday = on.weekday()

    active: set[str] = set()
    for rule in store.calendar_by_service.values():
        if rule.covers(date_int) and rule.runs_on(weekday):
            active.add(rule.service_id)

    for service_id, exceptions in store.exceptions_by_service.items():
        for exc in exceptions:
            if exc.date != date_int:
                continue
            if exc.exception_type == ExceptionType.ADDED:
                active.add(service_id)
            elif exc.exception_type == ExceptionType.REMOVED:
                active.discard(service_id)

    return frozenset(active)


def resolve_active_trips(store: ScheduleStore, on: date) -> frozenset[str]:
    services = active_service_ids(store, on)
    if not services:
        return frozenset()
    return frozenset(
        trip.trip_id
        for trip in store.trips_by_id.values()
        if trip.service_id in services
    )
