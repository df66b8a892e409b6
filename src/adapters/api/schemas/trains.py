from __future__ import annotations

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field


class GeoPointSchema(BaseModel):
    lat: float = Field(..., ge=-90.0, le=90.0)
    lon: float = Field(..., ge=-180.0, le=180.0)


class StopSchema(BaseModel):
    stop_id: str
    name: str
    location: GeoPointSchema


class TransitRouteSchema(BaseModel):
    route_id: str
    short_name: str | None = None
    long_name: str | None = None
    route_type: str | None = None
    color: str | None = None
    text_color: str | None = None


class TripSchema(BaseModel):
    trip_id: str
    route_id: str
    service_id: str
    headsign: str
    short_name: str | None = None
    direction_id: str | None = None


class TrainSchema(BaseModel):
    trip_id: str
    lat: float
    lon: float
    bearing: float = Field(..., ge=0.0, lt=360.0)
    status: Literal["MOVING", "AT_STOP", "SCHEDULED", "ENDED"]
    prev_stop: StopSchema | None = None
    next_stop: StopSchema | None = None
    route: TransitRouteSchema | None = None
    trip: TripSchema | None = None
    progress: float | None = None
    speed_kmh: float | None = None


class TrainsResponseSchema(BaseModel):
    fetched_at: datetime
    service_date: date
    clock: str
    seconds_since_midnight: int
    active_trip_count: int
    trains: list[TrainSchema]


class TimelineEntrySchema(BaseModel):
    stop_sequence: int
    stop_id: str
    stop: StopSchema | None = None
    arrival_time: str
    departure_time: str
    arrival_s: int
    departure_s: int


class TripTimelineSchema(BaseModel):
    trip_id: str
    stops: list[TimelineEntrySchema]


class ActiveServicesSchema(BaseModel):
    service_date: date
    service_ids: list[str]
    trip_count: int
