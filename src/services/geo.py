# src/services/geo.py

"""Great-circle distance helpers."""

import math

from src.config.settings import Settings


def haversine_km(
    lat1: float, lon1: float, lat2: float, lon2: float,
) -> float:
    """Distance in kilometres between two lat/lon pairs (haversine)."""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1))
        * math.cos(math.radians(lat2))
        * math.sin(d_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return Settings.EARTH_RADIUS_KM * c
