"""Great-circle distances between pet locations."""

from __future__ import annotations

import math
from typing import Iterable, Optional, Sequence, Tuple

EARTH_RADIUS_KM = 6371
EARTH_RADIUS_MILES = 3959

Coordinate = Tuple[Optional[float], Optional[float]]


def distance_between(
    lat1: Optional[float],
    lon1: Optional[float],
    lat2: Optional[float],
    lon2: Optional[float],
    *,
    unit: str = "miles",
) -> Optional[float]:
    """Haversine distance rounded to two decimals, or ``None`` if a coordinate is missing."""
    if any(value is None for value in (lat1, lon1, lat2, lon2)):
        return None

    lat1_rad = math.radians(float(lat1))
    lat2_rad = math.radians(float(lat2))
    dlat_rad = math.radians(float(lat2) - float(lat1))
    dlon_rad = math.radians(float(lon2) - float(lon1))

    a = (
        math.sin(dlat_rad / 2) ** 2
        + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(dlon_rad / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    radius = EARTH_RADIUS_MILES if unit == "miles" else EARTH_RADIUS_KM
    return round(radius * c, 2)


def total_route_distance(coordinates: Sequence[Coordinate], *, unit: str = "miles") -> float:
    """Sum of consecutive leg distances; legs with missing coordinates are skipped."""
    if len(coordinates) < 2:
        return 0.0
    total = 0.0
    for (lat1, lon1), (lat2, lon2) in _pairwise(coordinates):
        leg = distance_between(lat1, lon1, lat2, lon2, unit=unit)
        if leg is not None:
            total += leg
    return round(total, 2)


def within_distance(
    lat1: Optional[float],
    lon1: Optional[float],
    lat2: Optional[float],
    lon2: Optional[float],
    threshold_miles: float,
) -> bool:
    distance = distance_between(lat1, lon1, lat2, lon2)
    if distance is None:
        return False
    return distance <= threshold_miles


def _pairwise(items: Sequence[Coordinate]) -> Iterable[Tuple[Coordinate, Coordinate]]:
    return zip(items, items[1:])
