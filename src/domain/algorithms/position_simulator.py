from __future__ import annotations

from typing import Iterable

from src.domain.algorithms.geo_utils import haversine_distance_m, initial_bearing_deg
from src.domain.models import RunningState, ScheduleStore, TrainPosition


def locate_trip(
    store: ScheduleStore, trip_id: str, now_s: int
) -> TrainPosition | None:
    """Place one trip at `now_s` seconds since midnight, assuming it runs on time.

    Returns None when the trip is not running at `now_s`: fewer than two stop
    times, not started yet, already finished, or no segment matches (gaps in
    malformed schedules). None is a normal outcome, not an error.
    """

    times = store.stop_times_by_trip.get(trip_id)
    if not times or len(times) < 2:
        return None

    if now_s < times[0].departure_s or now_s > times[-1].arrival_s:
        return None

    trip = store.trips_by_id.get(trip_id)
    route = store.routes_by_id.get(trip.route_id) if trip is not None else None

    for i, current in enumerate(times):
        nxt = times[i + 1] if i + 1 < len(times) else None

        if current.arrival_s <= now_s <= current.departure_s:
            stop = store.stops_by_id.get(current.stop_id)
            if stop is None:
                return None
            return TrainPosition(
                trip_id=trip_id,
                lat=stop.lat,
                lon=stop.lon,
                bearing=0.0,
                state=RunningState.AT_STOP,
                prev_stop=stop,
                next_stop=(
                    store.stops_by_id.get(nxt.stop_id) if nxt is not None else None
                ),
                route=route,
                trip=trip,
                speed_kmh=0.0,
            )

        if nxt is not None and current.departure_s < now_s < nxt.arrival_s:
            stop_a = store.stops_by_id.get(current.stop_id)
            stop_b = store.stops_by_id.get(nxt.stop_id)
            if stop_a is None or stop_b is None:
                return None

            duration_s = nxt.arrival_s - current.departure_s
            fraction = (now_s - current.departure_s) / duration_s
            point = stop_a.location.interpolate(stop_b.location, fraction)
            speed_kmh = haversine_distance_m(stop_a.location, stop_b.location) / (
                duration_s / 3.6
            )

            return TrainPosition(
                trip_id=trip_id,
                lat=point.lat,
                lon=point.lon,
                bearing=initial_bearing_deg(stop_a.location, stop_b.location),
                state=RunningState.MOVING,
                prev_stop=stop_a,
                next_stop=stop_b,
                route=route,
                trip=trip,
                progress=fraction,
                speed_kmh=speed_kmh,
            )

    return None


def simulate_positions(
    store: ScheduleStore, active_trip_ids: Iterable[str], now_s: int
) -> list[TrainPosition]:
    """Compute one position per active trip that is running at `now_s`.

    Pure function: the caller samples the clock and decides the cadence.
    """

    out: list[TrainPosition] = []
    for trip_id in active_trip_ids:
        position = locate_trip(store, trip_id, now_s)
        if position is not None:
            out.append(position)
    return out


def placeholder_position(
    store: ScheduleStore, trip_id: str, state: RunningState
) -> TrainPosition | None:
    """Build a SCHEDULED or ENDED record parked at the trip's first stop."""

    if state.is_live:
        raise ValueError(f"Placeholder cannot be {state.value}")

    stop = store.first_stop(trip_id)
    if stop is None:
        return None

    return TrainPosition(
        trip_id=trip_id,
        lat=stop.lat,
        lon=stop.lon,
        bearing=0.0,
        state=state,
        route=store.route_for(trip_id),
        trip=store.trips_by_id.get(trip_id),
    )
