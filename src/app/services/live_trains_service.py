from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

from src.app.ports.output import IGtfsRepository
from src.app.services.train_tracker import TrainTracker
from src.domain.algorithms.position_simulator import (
    locate_trip,
    placeholder_position,
    simulate_positions,
)
from src.domain.algorithms.service_calendar import (
    active_service_ids,
    resolve_active_trips,
)
from src.domain.algorithms.time_codec import (
    reference_timezone,
    seconds_since_midnight,
    service_date,
)
from src.domain.exceptions import TripNotFound, TripNotPlaceable
from src.domain.models import (
    RunningState,
    ScheduleStore,
    Stop,
    StopTime,
    TrainPosition,
    TransitRoute,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TrainsSnapshot:
    taken_at: datetime
    service_date: date
    seconds_since_midnight: int
    active_trip_count: int
    positions: tuple[TrainPosition, ...]
    ended: tuple[TrainPosition, ...] = ()


@dataclass(slots=True)
class LiveTrainsService:
    """Supports the live train map.

    - Loads the static schedule once and keeps it until `reload()`.
    - Resolves the active trips once per service date.
    - Produces a fresh snapshot of train positions on every tick.
    """

    gtfs_repository: IGtfsRepository
    gtfs_repository: IGtfsRepository
    timezone_name: str | None = None

    _tz: ZoneInfo = field(init=False, repr=False)
    _lock: threading.RLock = field(
        default_factory=threading.RLock, init=False, repr=False
    )
    _store: ScheduleStore | None = field(default=None, init=False, repr=False)
    _tracker: TrainTracker | None = field(default=None, init=False, repr=False)
    _active_date: date | None = field(default=None, init=False, repr=False)
    _active_trip_ids: frozenset[str] = field(
        default=frozenset(), init=False, repr=False
    )
    _last_tick_at: datetime | None = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        self._tz = reference_timezone(self.timezone_name)

    @property
    def tz(self) -> ZoneInfo:
        return self._tz

    def schedule(self) -> ScheduleStore:
        store, _ = self._loaded()
        return store

    def reload(self) -> ScheduleStore:
        store = self.gtfs_repository.load_schedule()
        with self._lock:
            self._install(store)
        return store

    def _loaded(self) -> tuple[ScheduleStore, TrainTracker]:
        with self._lock:
            if self._store is None or self._tracker is None:
                return self._install(self.gtfs_repository.load_schedule())
            return self._store, self._tracker

    def _install(self, store: ScheduleStore) -> tuple[ScheduleStore, TrainTracker]:
        tracker = TrainTracker(store=store)
        self._store = store
        self._tracker = tracker
        self._active_date = None
        self._active_trip_ids = frozenset()
        self._last_tick_at = None
        return store, tracker

    def _roll_day(
        self, store: ScheduleStore, tracker: TrainTracker, on: date
    ) -> tuple[frozenset[str], TrainTracker]:
        # Caller holds the lock. ENDED / SCHEDULED memory belongs to one service day.
        if on == self._active_date:
            return self._active_trip_ids, tracker
        tracker = TrainTracker(store=store)
        self._tracker = tracker
        self._active_trip_ids = resolve_active_trips(store, on)
        self._active_date = on
        self._last_tick_at = None
        logger.info(
            "%d trips active on %s", len(self._active_trip_ids), on.isoformat()
        )
        return self._active_trip_ids, tracker

    def _now(self, now: datetime | None) -> datetime:
        return now if now is not None else datetime.now(timezone.utc)

    def active_trip_ids(self, on: date) -> frozenset[str]:
        with self._lock:
            store, tracker = self._loaded()
            active, _ = self._roll_day(store, tracker, on)
            return active

    def trips_on(self, on: date) -> frozenset[str]:
        """Active trips for any date, without disturbing the per-day cache."""

        with self._lock:
            if on == self._active_date:
                return self._active_trip_ids
        return resolve_active_trips(self.schedule(), on)

    def active_services(self, on: date | None = None) -> frozenset[str]:
        day = on if on is not None else service_date(self._now(None), self._tz)
        return active_service_ids(self.schedule(), day)

    def tick(
        self, *, now: datetime | None = None, route_ids: set[str] | None = None
    ) -> TrainsSnapshot:
        with self._lock:
            now = self._now(now)
            day = service_date(now, self._tz)
            now_s = seconds_since_midnight(now, self._tz)

            store, tracker = self._loaded()
            active, tracker = self._roll_day(store, tracker, day)
            positions = simulate_positions(store, sorted(active), now_s)

            if self._last_tick_at is not None and now < self._last_tick_at:
                logger.debug("Stale tick at %s not recorded", now.isoformat())
                ended = []
            else:
                self._last_tick_at = now
                ended = tracker.observe(positions)

        if route_ids:
            positions = [
                p for p in positions if p.trip and p.trip.route_id in route_ids
            ]
            ended = [p for p in ended if p.trip and p.trip.route_id in route_ids]

        return TrainsSnapshot(
            taken_at=now,
            service_date=day,
            seconds_since_midnight=now_s,
            active_trip_count=len(active),
            positions=tuple(positions),
            ended=tuple(ended),
        )

    def trip_status(
        self, trip_id: str, *, now: datetime | None = None
    ) -> TrainPosition:
        """Return the live position of a trip, or an ENDED / SCHEDULED placeholder.

        Raises `TripNotFound` for unknown ids and `TripNotPlaceable` when the trip
        exists but its first stop cannot be resolved to coordinates.
        """

        now = self._now(now)
        day = service_date(now, self._tz)
        with self._lock:
            store, tracker = self._loaded()
            if trip_id not in store.trips_by_id:
                raise TripNotFound(trip_id)

            active, tracker = self._roll_day(store, tracker, day)
            if trip_id in active:
                live = locate_trip(
                    store, trip_id, seconds_since_midnight(now, self._tz)
                )
                if live is not None:
                    return live
            observed = tracker.was_observed(trip_id)

        state = RunningState.ENDED if observed else RunningState.SCHEDULED
        placeholder = placeholder_position(store, trip_id, state)
        if placeholder is None:
            raise TripNotPlaceable(trip_id)
        return placeholder

    def trip_timeline(self, trip_id: str) -> tuple[tuple[StopTime, Stop | None], ...]:
        store = self.schedule()
        if trip_id not in store.trips_by_id:
            raise TripNotFound(trip_id)
        return tuple(
            (st, store.stops_by_id.get(st.stop_id))
            for st in store.stop_times_by_trip.get(trip_id, ())
        )

    def list_routes(self) -> tuple[TransitRoute, ...]:
        routes = list(self.schedule().routes_by_id.values())
        routes.sort(key=lambda r: (r.short_name or "", r.long_name or "", r.route_id))
        return tuple(routes)
