# staffpunch/services/geofence.py
"""
Great-circle distance (haversine) and the geofence test built on it.

Input ranges are validated upstream by the punch schema; these functions only
promise not to raise on odd floats. NaN distances never count as in range.
"""
import math
from typing import NamedTuple

EARTH_RADIUS_METERS = 6_371_000.0
DEFAULT_RADIUS_METERS = 300.0


class Coordinate(NamedTuple):
    lat: float
    lon: float


def distance_meters(a: Coordinate, b: Coordinate) -> float:
    if not all(math.isfinite(v) for v in (a.lat, a.lon, b.lat, b.lon)):
        return math.nan
    phi1 = math.radians(a.lat)
    phi2 = math.radians(b.lat)
    d_phi = math.radians(b.lat - a.lat)
    d_lambda = math.radians(b.lon - a.lon)

    h = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    if math.isnan(h):
        return math.nan
    # rounding can push h a hair outside [0, 1] for antipodal points
    h = min(1.0, max(0.0, h))
    return EARTH_RADIUS_METERS * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def is_within_range(a: Coordinate, b: Coordinate, radius_meters: float = DEFAULT_RADIUS_METERS) -> bool:
    # inclusive: exactly on the circle is inside
    return distance_meters(a, b) <= radius_meters
