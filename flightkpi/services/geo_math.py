"""Great-circle and unit conversion primitives.

Spherical-earth formulas are adequate at the regional scales handled here
(a few hundred kilometers); no ellipsoid model is attempted.
"""

from __future__ import annotations

import math

EARTH_RADIUS_KM = 6371.0
EARTH_RADIUS_M = EARTH_RADIUS_KM * 1000.0
KM_PER_NM = 1.852
FEET_TO_METERS = 0.3048
FEET_PER_FLIGHT_LEVEL = 100


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in kilometers between two points in degrees."""

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlmb = math.radians(lon2 - lon1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlmb / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def haversine_nm(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in nautical miles."""

    return haversine_km(lat1, lon1, lat2, lon2) / KM_PER_NM


def initial_bearing_deg(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Initial bearing in degrees from (lat1, lon1) to (lat2, lon2), in [0, 360)."""

    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dlmb = math.radians(lon2 - lon1)
    y = math.sin(dlmb) * math.cos(phi2)
    x = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(phi2) * math.cos(dlmb)
    brng = math.degrees(math.atan2(y, x))
    return (brng + 360.0) % 360.0


def destination_point(
    lat: float, lon: float, bearing_deg: float, distance_km: float
) -> tuple[float, float]:
    """Project a point along a great circle by ``distance_km`` at ``bearing_deg``."""

    brng = math.radians(bearing_deg)
    phi1 = math.radians(lat)
    lam1 = math.radians(lon)

    delta = distance_km / EARTH_RADIUS_KM
    sin_phi2 = math.sin(phi1) * math.cos(delta) + math.cos(phi1) * math.sin(delta) * math.cos(brng)
    phi2 = math.asin(max(-1.0, min(1.0, sin_phi2)))

    y = math.sin(brng) * math.sin(delta) * math.cos(phi1)
    x = math.cos(delta) - math.sin(phi1) * math.sin(phi2)
    lam2 = lam1 + math.atan2(y, x)

    lon2 = (math.degrees(lam2) + 540) % 360 - 180
    return math.degrees(phi2), lon2


def interpolate_along_bearing(
    lat1: float, lon1: float, lat2: float, lon2: float, fraction: float
) -> tuple[float, float]:
    """Point at ``fraction`` of the great-circle distance from the first point.

    Travels along the initial bearing, so ``fraction`` 0 returns the start
    and 1 lands on (or within rounding of) the end.
    """

    if fraction <= 0.0:
        return lat1, lon1
    if fraction >= 1.0:
        return lat2, lon2

    distance = haversine_km(lat1, lon1, lat2, lon2)
    if distance == 0.0:
        return lat1, lon1
    bearing = initial_bearing_deg(lat1, lon1, lat2, lon2)
    return destination_point(lat1, lon1, bearing, distance * fraction)


def lerp(a: float, b: float, fraction: float) -> float:
    return a + (b - a) * fraction


def flight_level_to_meters(flight_level: float) -> float:
    """FL30 -> 30 * 100 ft -> 914.4 m."""

    return flight_level * FEET_PER_FLIGHT_LEVEL * FEET_TO_METERS


__all__ = [
    "EARTH_RADIUS_KM",
    "EARTH_RADIUS_M",
    "FEET_PER_FLIGHT_LEVEL",
    "FEET_TO_METERS",
    "KM_PER_NM",
    "destination_point",
    "flight_level_to_meters",
    "haversine_km",
    "haversine_nm",
    "initial_bearing_deg",
    "interpolate_along_bearing",
    "lerp",
]
