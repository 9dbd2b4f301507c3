import math
from typing import Optional

from app.schemas.location import LocationReading

EARTH_RADIUS_KM = 6371.0

COMPASS_POINTS = ["N", "NE", "E", "SE", "S", "SW", "W", "NW"]


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance between two points, in kilometres."""
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def bearing_degrees(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """
    Initial bearing from the first point to the second, clockwise from
    true north, in [0, 360).
    """
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_lng = math.radians(lng2 - lng1)
    x = math.sin(d_lng) * math.cos(phi2)
    y = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(phi2) * math.cos(d_lng)
    return (math.degrees(math.atan2(x, y)) + 360) % 360


def compass_direction(bearing: float) -> str:
    return COMPASS_POINTS[int(((bearing % 360) + 22.5) // 45) % 8]


def is_usable_fix(reading: Optional[LocationReading], max_accuracy_m: float = 100.0) -> bool:
    """
    Whether a device location reading is good enough to place a marker.
    Readings without an accuracy figure are accepted.
    """
    if reading is None:
        return False
    if reading.accuracy is None:
        return True
    return reading.accuracy <= max_accuracy_m
