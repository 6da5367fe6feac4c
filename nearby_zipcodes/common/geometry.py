"""Geometry helpers: bounding rectangles and great-circle distance."""

from __future__ import annotations

import math

from nearby_zipcodes.common.constants import MEAN_EARTH_RADIUS_KM
from nearby_zipcodes.common.models import Rectangle


def bounding_rectangle(lat: float, lon: float, half_width: float) -> Rectangle:
    return Rectangle(
        min_lon=lon - half_width,
        min_lat=lat - half_width,
        max_lon=lon + half_width,
        max_lat=lat + half_width,
    )


def great_circle_distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two points on Earth in kilometers.

    Uses the haversine formula on a sphere of mean radius 6371 km. Inputs are
    decimal degrees.
    """
    rlat1, rlon1 = math.radians(lat1), math.radians(lon1)
    rlat2, rlon2 = math.radians(lat2), math.radians(lon2)

    dlat = rlat2 - rlat1
    dlon = rlon2 - rlon1

    a = math.sin(dlat / 2) ** 2 + math.cos(rlat1) * math.cos(rlat2) * math.sin(dlon / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return MEAN_EARTH_RADIUS_KM * c
