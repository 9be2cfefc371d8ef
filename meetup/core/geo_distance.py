"""Great-circle distance — pure helpers for nearby-location search.

Invariants:
    - Coordinates are (longitude, latitude) in degrees, WGS84 sphere approximation
    - Distances are in meters
"""

import math

EARTH_RADIUS_METERS: float = 6_371_008.8

MIN_LONGITUDE, MAX_LONGITUDE = -180.0, 180.0
MIN_LATITUDE, MAX_LATITUDE = -90.0, 90.0


def coordinates_error(longitude: float, latitude: float) -> str | None:
    """Return a reason string if the point is out of range, else None."""
    if not MIN_LONGITUDE <= longitude <= MAX_LONGITUDE:
        return "longitude must be between -180 and 180, both inclusive"
    if not MIN_LATITUDE <= latitude <= MAX_LATITUDE:
        return "latitude must be between -90 and 90, both inclusive"
    return None


def haversine_meters(
    origin: tuple[float, float], target: tuple[float, float],
) -> float:
    lon1, lat1 = map(math.radians, origin)
    lon2, lat2 = map(math.radians, target)
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    )
    return 2 * EARTH_RADIUS_METERS * math.asin(min(1.0, math.sqrt(a)))
