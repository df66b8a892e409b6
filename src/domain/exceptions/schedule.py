class ScheduleError(Exception):
    """Base exception for schedule loading and lookup failures."""


class ScheduleUnavailable(ScheduleError):
    """Raised when the schedule source cannot be read."""


class TripNotFound(ScheduleError):
    """Raised when a trip id does not exist in the loaded schedule."""

    def __init__(self, trip_id: str) -> None:
        super().__init__(f"Unknown trip: {trip_id}")
        self.trip_id = trip_id


class TripNotPlaceable(ScheduleError):
    """Raised when a known trip has no first stop with coordinates."""

    def __init__(self, trip_id: str) -> None:
        super().__init__(f"Trip has no resolvable first stop: {trip_id}")
        self.trip_id = trip_id
