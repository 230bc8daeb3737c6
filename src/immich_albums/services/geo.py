"""Great-circle distance helpers."""

import math
from collections.abc import Iterable

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Return the great-circle distance in kilometres between two points."""
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    delta_lat = math.radians(lat2 - lat1)
    delta_lon = math.radians(lon2 - lon1)

    a = (
        math.sin(delta_lat / 2) ** 2
        + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(delta_lon / 2) ** 2
    )
    a = min(a, 1.0)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def mean_point(points: Iterable[tuple[float, float]]) -> tuple[float, float]:
    """Return the arithmetic mean of (lat, lon) pairs."""
    sum_lat = 0.0
    sum_lon = 0.0
    count = 0
    for lat, lon in points:
        sum_lat += lat
        sum_lon += lon
        count += 1
    if count == 0:
        raise ValueError("mean_point() requires at least one point")
    return sum_lat / count, sum_lon / count
