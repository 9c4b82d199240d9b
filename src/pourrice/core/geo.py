from __future__ import annotations
from dataclasses import dataclass
from math import asin, cos, floor, isfinite, nan, radians, sin, sqrt

"""
Geospatial helpers.

A tiny geometry layer for "how far is this restaurant" questions. Nothing here
validates coordinate ranges; non-finite input (NaN, infinity) yields a NaN distance so
callers can filter it out.
"""

EARTH_RADIUS_M = 6_371_000


@dataclass(frozen=True)
class GeoPoint:
    """A latitude/longitude pair in decimal degrees."""

    lat: float
    lon: float


def distance_m(a: GeoPoint, b: GeoPoint) -> float:
    """Compute great-circle (haversine) distance in meters between two points."""
    if not all(isfinite(v) for v in (a.lat, a.lon, b.lat, b.lon)):
        return nan
    lat1 = radians(a.lat)
    lat2 = radians(b.lat)
    dlat = radians(b.lat - a.lat)
    dlon = radians(b.lon - a.lon)

    h = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlon / 2) ** 2
    s = sqrt(h)
    # sqrt(h) can overshoot 1.0 by an ulp near antipodal points.
    if s > 1.0:
        s = 1.0
    return 2 * EARTH_RADIUS_M * asin(s)


def format_distance(meters: float) -> str:
    """Render a distance for display: `"250m"` below one kilometre, `"2.5km"` otherwise."""
    if meters < 1000:
        return f"{int(floor(meters + 0.5))}m"
    return f"{meters / 1000:.1f}km"
