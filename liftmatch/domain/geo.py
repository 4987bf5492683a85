"""
Great-circle primitives. Pure functions of Coordinates.

Kilometres are the canonical unit. Miles only appear at the boundaries
(ETA heuristic input, corridor radius, display) through km_to_miles/miles_to_km.
"""

import math

import numpy as np

from liftmatch.domain.models import Coordinate

EARTH_RADIUS_KM = 6371.0
KM_PER_MILE = 1.609344


def distance_km(a: Coordinate, b: Coordinate) -> float:
    """Haversine distance in km."""
    lat1_r = math.radians(a.lat)
    lat2_r = math.radians(b.lat)
    dlat = math.radians(b.lat - a.lat)
    dlon = math.radians(b.lng - a.lng)
    h = math.sin(dlat / 2) ** 2 + math.cos(lat1_r) * math.cos(lat2_r) * math.sin(dlon / 2) ** 2
    c = 2 * math.asin(math.sqrt(min(1.0, h)))
    return EARTH_RADIUS_KM * c


def distances_km_from(origin: Coordinate, lats: np.ndarray, lngs: np.ndarray) -> np.ndarray:
    """Vectorised haversine from one origin to N points. Same formula as distance_km."""
    lats_r = np.radians(np.asarray(lats, dtype=float))
    lngs_r = np.radians(np.asarray(lngs, dtype=float))
    lat0 = math.radians(origin.lat)
    lng0 = math.radians(origin.lng)
    h = np.sin((lats_r - lat0) / 2) ** 2 + math.cos(lat0) * np.cos(lats_r) * np.sin((lngs_r - lng0) / 2) ** 2
    return EARTH_RADIUS_KM * 2 * np.arcsin(np.sqrt(np.minimum(1.0, h)))


def bearing(a: Coordinate, b: Coordinate) -> float:
    """Initial compass bearing from a to b, degrees in [0, 360)."""
    lat1, lat2 = math.radians(a.lat), math.radians(b.lat)
    dlon = math.radians(b.lng - a.lng)
    y = math.sin(dlon) * math.cos(lat2)
    x = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(dlon)
    return (math.degrees(math.atan2(y, x)) + 360.0) % 360.0


def angle_diff(a: float, b: float) -> float:
    """Minimal absolute difference between two bearings, degrees in [0, 180]."""
    d = abs(a - b) % 360.0
    return 360.0 - d if d > 180.0 else d


def km_to_miles(km: float) -> float:
    return km / KM_PER_MILE


def miles_to_km(miles: float) -> float:
    return miles * KM_PER_MILE
