"""
Great-circle distance utilities.

Used to derive the cumulative ride distance that accompanies the unified
record in API responses.
"""

import numpy as np
from numpy.typing import ArrayLike, NDArray


EARTH_RADIUS_M = 6371000.0  # mean radius


def haversine_distance(lat1: ArrayLike, lon1: ArrayLike, lat2: ArrayLike, lon2: ArrayLike):
    """
    Calculate great-circle distance between two points (or arrays of points).

    Args:
        lat1, lon1: First point coordinates in degrees
        lat2, lon2: Second point coordinates in degrees

    Returns:
        Distance in meters
    """
    lat1_rad = np.radians(lat1)
    lat2_rad = np.radians(lat2)
    dlat = np.radians(np.subtract(lat2, lat1))
    dlon = np.radians(np.subtract(lon2, lon1))

    a = np.sin(dlat / 2)**2 + np.cos(lat1_rad) * np.cos(lat2_rad) * np.sin(dlon / 2)**2
    c = 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))

    return EARTH_RADIUS_M * c


def cumulative_distance(
    lat: NDArray[np.float64],
    lon: NDArray[np.float64],
) -> NDArray[np.float64]:
    """
    Running sum of haversine segment lengths, starting at 0.

    Segments touching an invalid (NaN) position contribute nothing, so the
    distance holds flat across GPS dropouts.
    """
    lat = np.asarray(lat, dtype=np.float64)
    lon = np.asarray(lon, dtype=np.float64)
    if len(lat) == 0:
        return np.array([], dtype=np.float64)

    segments = haversine_distance(lat[:-1], lon[:-1], lat[1:], lon[1:])
    segments = np.where(np.isnan(segments), 0.0, segments)
    return np.concatenate(([0.0], np.cumsum(segments)))
