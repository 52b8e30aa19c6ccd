"""Great-circle distance helpers."""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np
from numpy.typing import NDArray

from .models import TrackPoint

EARTH_RADIUS_M = 6_371_000.0

MetricArray = NDArray[np.float64]

__all__ = ["EARTH_RADIUS_M", "distance", "haversine", "haversine_array"]


def haversine(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Return the Haversine distance in metres between two coordinates."""

    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)
    a = (
        math.sin(dphi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    )
    # Rounding can push ``a`` a hair above 1 for antipodal points.
    a = min(1.0, a)
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def distance(a: TrackPoint, b: TrackPoint) -> float:
    """Return the great-circle distance in metres between two track points."""

    return haversine(a.latitude, a.longitude, b.latitude, b.longitude)


def haversine_array(
    latitudes: Sequence[float] | MetricArray,
    longitudes: Sequence[float] | MetricArray,
) -> MetricArray:
    """Return distances between consecutive coordinates as a numpy array.

    The result has one element fewer than the inputs (empty for fewer than two
    coordinates).
    """

    lat = np.radians(np.asarray(latitudes, dtype=float))
    lon = np.radians(np.asarray(longitudes, dtype=float))
    if lat.shape != lon.shape:
        raise ValueError("latitudes and longitudes must be the same length")
    if lat.size < 2:
        return np.empty(0, dtype=float)
    dphi = np.diff(lat)
    dlambda = np.diff(lon)
    a = (
        np.sin(dphi / 2) ** 2
        + np.cos(lat[:-1]) * np.cos(lat[1:]) * np.sin(dlambda / 2) ** 2
    )
    a = np.minimum(a, 1.0)
    return EARTH_RADIUS_M * 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))
