from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class GeoPoint:
    lat: float
    lon: float

    def __post_init__(self) -> None:
        if not (-90.0 <= self.lat <= 90.0):
            raise ValueError(f"Invalid latitude: {self.lat}")
        if not (-180.0 <= self.lon <= 180.0):
            raise ValueError(f"Invalid longitude: {self.lon}")

    def interpolate(self, other: GeoPoint, fraction: float) -> GeoPoint:
        """Planar blend towards `other`: fraction 0 gives self, 1 gives other."""

        return GeoPoint(
            lat=self.lat + (other.lat - self.lat) * fraction,
            lon=self.lon + (other.lon - self.lon) * fraction,
        )
