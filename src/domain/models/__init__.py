from .geo import GeoPoint
from .gtfs import (
    CalendarException,
    CalendarRule,
    ExceptionType,
    ScheduleStore,
    StopTime,
    TransitRoute,
    Trip,
)
from .position import RunningState, TrainPosition
from .stop import Stop

__all__ = [
    "GeoPoint",
    "Stop",
    "TransitRoute",
    "Trip",
    "StopTime",
    "CalendarRule",
    "CalendarException",
    "ExceptionType",
    "ScheduleStore",
    "RunningState",
    "TrainPosition",
]
