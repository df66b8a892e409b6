from __future__ import annotations

from datetime import date, datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query

from src.adapters.api.dependencies import get_live_trains_service
from src.adapters.api.schemas.trains import (
    ActiveServicesSchema,
    GeoPointSchema,
    StopSchema,
    TimelineEntrySchema,
    TrainSchema,
    TrainsResponseSchema,
    TransitRouteSchema,
    TripSchema,
    TripTimelineSchema,
)
from src.app.services.live_trains_service import LiveTrainsService
from src.domain.algorithms.time_codec import format_gtfs_time, service_date
from src.domain.exceptions import TripNotFound, TripNotPlaceable
from src.domain.models import Stop, TrainPosition, TransitRoute

router = APIRouter(tags=["trains"])


def _stop_to_schema(stop: Stop | None) -> StopSchema | None:
    if stop is None:
        return None
    return StopSchema(
        stop_id=stop.id,
        name=stop.name,
        location=GeoPointSchema(lat=stop.lat, lon=stop.lon),
    )


def _route_to_schema(route: TransitRoute) -> TransitRouteSchema:
    return TransitRouteSchema(
        route_id=route.route_id,
        short_name=route.short_name,
        long_name=route.long_name,
        route_type=route.route_type,
        color=route.color,
        text_color=route.text_color,
    )


def _train_to_schema(p: TrainPosition) -> TrainSchema:
    return TrainSchema(
        trip_id=p.trip_id,
        lat=p.lat,
        lon=p.lon,
        bearing=p.bearing,
        status=p.state.value,
        prev_stop=_stop_to_schema(p.prev_stop),
        next_stop=_stop_to_schema(p.next_stop),
        route=_route_to_schema(p.route) if p.route else None,
        trip=(
            TripSchema(
                trip_id=p.trip.trip_id,
                route_id=p.trip.route_id,
                service_id=p.trip.service_id,
                headsign=p.trip.headsign,
                short_name=p.trip.short_name,
                direction_id=p.trip.direction_id,
            )
            if p.trip
            else None
        ),
        progress=p.progress,
        speed_kmh=p.speed_kmh,
    )


@router.get("/trains", response_model=TrainsResponseSchema)
def list_trains(
    route_id: list[str] | None = Query(default=None),
    service: LiveTrainsService = Depends(get_live_trains_service),
) -> TrainsResponseSchema:
    snapshot = service.tick(route_ids=set(route_id) if route_id else None)
    return TrainsResponseSchema(
        fetched_at=snapshot.taken_at,
        service_date=snapshot.service_date,
        clock=format_gtfs_time(snapshot.seconds_since_midnight),
        seconds_since_midnight=snapshot.seconds_since_midnight,
        active_trip_count=snapshot.active_trip_count,
        trains=[_train_to_schema(p) for p in snapshot.positions],
    )


@router.get("/trains/{trip_id}", response_model=TrainSchema)
def get_train(
    trip_id: str,
    service: LiveTrainsService = Depends(get_live_trains_service),
) -> TrainSchema:
    try:
        position = service.trip_status(trip_id)
    except TripNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except TripNotPlaceable as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return _train_to_schema(position)


@router.get("/trains/{trip_id}/stops", response_model=TripTimelineSchema)
def get_train_stops(
    trip_id: str,
    service: LiveTrainsService = Depends(get_live_trains_service),
) -> TripTimelineSchema:
    try:
        timeline = service.trip_timeline(trip_id)
    except TripNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return TripTimelineSchema(
        trip_id=trip_id,
        stops=[
            TimelineEntrySchema(
                stop_sequence=st.stop_sequence,
                stop_id=st.stop_id,
                stop=_stop_to_schema(stop),
                arrival_time=st.arrival_time,
                departure_time=st.departure_time,
                arrival_s=st.arrival_s,
                departure_s=st.departure_s,
            )
            for st, stop in timeline
        ],
    )


@router.get("/routes", response_model=list[TransitRouteSchema])
def list_routes(
    service: LiveTrainsService = Depends(get_live_trains_service),
) -> list[TransitRouteSchema]:
    return [_route_to_schema(r) for r in service.list_routes()]


@router.get("/services/active", response_model=ActiveServicesSchema)
def get_active_services(
    on: date | None = Query(default=None, alias="date"),
    service: LiveTrainsService = Depends(get_live_trains_service),
) -> ActiveServicesSchema:
    day = on or service_date(datetime.now(timezone.utc), service.tz)
    return ActiveServicesSchema(
        service_date=day,
        service_ids=sorted(service.active_services(day)),
        trip_count=len(service.trips_on(day)),
    )
