"""Sliding-window positional smoothing applied ahead of distance maths."""

from __future__ import annotations

from typing import List, Sequence

import numpy as np

from ..models import TrackPoint

__all__ = ["smooth"]


def smooth(points: Sequence[TrackPoint], window_size: int) -> List[TrackPoint]:
    """Return moving-average smoothed copies of ``points``.

    Each output point is the mean of a centered window of ``window_size``
    points when one fits, otherwise of the trailing window ending at that
    point. Points with neither (the start of a short sequence) pass through
    unchanged. The input sequence is never modified.
    """

    if window_size < 1:
        raise ValueError("window_size must be >= 1")
    count = len(points)
    if count == 0:
        return []
    if window_size == 1:
        return list(points)

    coords = np.array([(p.latitude, p.longitude) for p in points], dtype=float)
    # Prefix sums make every window mean O(1).
    prefix = np.vstack((np.zeros((1, 2)), np.cumsum(coords, axis=0)))
    before = window_size // 2
    after = window_size - before - 1

    smoothed: List[TrackPoint] = []
    for idx in range(count):
        start = idx - before
        stop = idx + after + 1
        if start < 0 or stop > count:
            start, stop = idx - window_size + 1, idx + 1
        if start < 0:
            smoothed.append(points[idx])
            continue
        mean = (prefix[stop] - prefix[start]) / window_size
        smoothed.append(TrackPoint(float(mean[0]), float(mean[1])))
    return smoothed
