"""Great-circle distance helpers."""
from __future__ import annotations

import math
from typing import NamedTuple

EARTH_RADIUS_KM = 6371.0


class Point(NamedTuple):
    lat: float
    lng: float


def haversine_distance_km(a, b) -> float:
    """Return the great-circle distance between two ``(lat, lng)`` points in km.

    Symmetric; ``0.0`` for identical points.
    """
    lat1, lng1 = a
    lat2, lng2 = b
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlmb = math.radians(lng2 - lng1)

    h = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlmb / 2) ** 2
    # rounding can push h a hair above 1 for antipodal points
    h = min(1.0, max(0.0, h))
    return 2 * EARTH_RADIUS_KM * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def coerce_point(value) -> Point | None:
    """Turn a captured location into a :class:`Point`.

    Accepts ``(lat, lng)`` pairs and mappings with ``lat``/``lng`` (or
    ``latitude``/``longitude``) keys.  Returns ``None`` for ``None``.

    Raises
    ------
    ValueError
        If the value is malformed or out of range.
    """
    if value is None:
        return None
    if isinstance(value, dict):
        lat = value.get("lat", value.get("latitude"))
        lng = value.get("lng", value.get("longitude"))
    else:
        try:
            lat, lng = value
        except (TypeError, ValueError):
            raise ValueError(f"Malformed location: {value!r}") from None
    try:
        lat, lng = float(lat), float(lng)
    except (TypeError, ValueError):
        raise ValueError(f"Malformed location: {value!r}") from None
    if not (math.isfinite(lat) and math.isfinite(lng)):
        raise ValueError(f"Malformed location: {value!r}")
    if not -90 <= lat <= 90 or not -180 <= lng <= 180:
        raise ValueError(f"Location out of range: ({lat}, {lng})")
    return Point(lat, lng)
