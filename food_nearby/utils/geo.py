"""
Distance helpers.

``blended_distance`` is the one every provider adapter uses, so distances are
comparable no matter which provider a record came from.
"""

import math

from food_nearby.models import Coordinates

EARTH_RADIUS_M = 6371000.0
METERS_PER_DEGREE = 111320.0
BLEND_THRESHOLD_M = 1000.0


def to_radians(degrees: float) -> float:
    return degrees * math.pi / 180.0


def haversine_distance(a: Coordinates, b: Coordinates) -> float:
    """Great-circle distance in meters."""
    phi1 = to_radians(a.lat)
    phi2 = to_radians(b.lat)
    dphi = to_radians(b.lat - a.lat)
    dlambda = to_radians(b.lng - a.lng)
    h = (
        math.sin(dphi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    )
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def planar_distance(a: Coordinates, b: Coordinates) -> float:
    """Local flat-earth approximation in meters."""
    lat_meters = (b.lat - a.lat) * METERS_PER_DEGREE
    mean_lat = to_radians((a.lat + b.lat) / 2)
    lng_meters = (b.lng - a.lng) * METERS_PER_DEGREE * math.cos(mean_lat)
    return math.sqrt(lat_meters * lat_meters + lng_meters * lng_meters)


def blended_distance(a: Coordinates, b: Coordinates) -> float:
    """Planar distance, averaged with haversine once it exceeds 1 km.

    Args:
        a: First point
        b: Second point

    Returns:
        Distance in meters
    """
    planar = planar_distance(a, b)
    if planar > BLEND_THRESHOLD_M:
        return (planar + haversine_distance(a, b)) / 2
    return planar
