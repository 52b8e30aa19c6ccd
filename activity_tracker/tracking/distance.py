"""Cumulative distance over a (smoothed) point sequence."""

from __future__ import annotations

from typing import Sequence

import numpy as np

from .. import config
from ..geo import haversine_array
from ..models import TrackPoint

__all__ = ["accumulate"]


def accumulate(
    points: Sequence[TrackPoint],
    noise_floor_m: float = config.DISTANCE_NOISE_FLOOR_M,
) -> float:
    """Return the total distance in metres, rounded to centimetres.

    The sum is recomputed from scratch on every call; segments no longer than
    ``noise_floor_m`` contribute nothing so stationary jitter cannot creep into
    the total.
    """

    if len(points) < 2:
        return 0.0
    segments = haversine_array(
        [p.latitude for p in points], [p.longitude for p in points]
    )
    total = float(np.sum(segments[segments > noise_floor_m]))
    return round(max(total, 0.0), 2)
