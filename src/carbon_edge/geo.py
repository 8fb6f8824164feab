"""Geodesic helpers: coordinates, great-circle distance and network estimates."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Final

from carbon_edge.errors import InvalidCoordinateError

__all__ = [
    "EARTH_RADIUS_KM",
    "Coordinate",
    "distance_km",
    "estimate_latency_ms",
    "estimate_network_hops",
]

EARTH_RADIUS_KM: Final[float] = 6371.0

_MIN_HOPS: Final[int] = 3
_MAX_HOPS: Final[int] = 30
_KM_PER_HOP: Final[float] = 150.0
_KM_PER_MS: Final[float] = 20.0
_BASE_LATENCY_MS: Final[int] = 10


@dataclass(frozen=True, slots=True)
class Coordinate:
    """A validated latitude/longitude pair in decimal degrees."""

    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        lat = self.latitude
        lon = self.longitude
        if not (math.isfinite(lat) and math.isfinite(lon)):
            raise InvalidCoordinateError(lat, lon)
        if abs(lat) > 90.0 or abs(lon) > 180.0:
            raise InvalidCoordinateError(lat, lon)


def distance_km(a: Coordinate, b: Coordinate) -> float:
    """Return the haversine great-circle distance between two coordinates.

    Args:
        a: First coordinate.
        b: Second coordinate.

    Returns:
        Distance in kilometres on a sphere of radius :data:`EARTH_RADIUS_KM`.
    """

    if a == b:
        return 0.0

    lat1 = math.radians(a.latitude)
    lat2 = math.radians(b.latitude)
    delta_lat = math.radians(b.latitude - a.latitude)
    delta_lon = math.radians(b.longitude - a.longitude)

    sin_lat = math.sin(delta_lat / 2.0) ** 2
    sin_lon = math.cos(lat1) * math.cos(lat2) * math.sin(delta_lon / 2.0) ** 2
    h = min(1.0, sin_lat + sin_lon)
    return 2.0 * EARTH_RADIUS_KM * math.asin(math.sqrt(h))


def estimate_network_hops(distance: float) -> int:
    """Estimate router hops for a path of ``distance`` kilometres."""

    hops = _MIN_HOPS + math.floor(max(distance, 0.0) / _KM_PER_HOP)
    return max(_MIN_HOPS, min(hops, _MAX_HOPS))


def estimate_latency_ms(distance: float) -> int:
    """Estimate round-trip latency assuming 20 km per ms plus 10 ms overhead."""

    return math.floor(max(distance, 0.0) / _KM_PER_MS) + _BASE_LATENCY_MS
