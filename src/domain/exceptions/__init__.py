from .schedule import (
    ScheduleError,
    ScheduleUnavailable,
    TripNotFound,
    TripNotPlaceable,
)

__all__ = ["ScheduleError", "ScheduleUnavailable", "TripNotFound", "TripNotPlaceable"]
