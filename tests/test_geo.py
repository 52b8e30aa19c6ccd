"""Haversine distance properties."""

from __future__ import annotations

import numpy as np
import pytest

from activity_tracker.geo import distance, haversine, haversine_array
from activity_tracker.models import TrackPoint


@pytest.mark.parametrize(
    "a, b",
    [
        (TrackPoint(0.0, 0.0), TrackPoint(0.001, 0.0)),
        (TrackPoint(51.5007, -0.1246), TrackPoint(48.8584, 2.2945)),
        (TrackPoint(-33.8568, 151.2153), TrackPoint(35.6586, 139.7454)),
        (TrackPoint(89.9, 10.0), TrackPoint(-89.9, -170.0)),
    ],
)
def test_distance_is_symmetric(a: TrackPoint, b: TrackPoint) -> None:
    assert distance(a, b) == pytest.approx(distance(b, a))


def test_distance_zero_for_identical_points() -> None:
    point = TrackPoint(41.0082, 28.9784)
    assert distance(point, point) == 0.0


def test_thousandth_degree_latitude_at_equator_is_about_111m() -> None:
    meters = distance(TrackPoint(0.0, 0.0), TrackPoint(0.001, 0.0))
    assert meters == pytest.approx(111.0, rel=0.01)


def test_distance_grows_with_separation() -> None:
    origin = TrackPoint(10.0, 10.0)
    steps = [distance(origin, TrackPoint(10.0 + d, 10.0)) for d in (0.001, 0.01, 0.1, 1.0)]
    assert steps == sorted(steps)
    assert len(set(steps)) == len(steps)


def test_london_paris_distance() -> None:
    # Westminster to the Eiffel Tower is roughly 341 km.
    meters = haversine(51.5007, -0.1246, 48.8584, 2.2945)
    assert meters == pytest.approx(341_000, rel=0.02)


def test_haversine_array_matches_scalar() -> None:
    lats = [0.0, 0.001, 0.001, 0.0]
    lons = [0.0, 0.0, 0.001, 0.001]
    expected = [haversine(lats[i], lons[i], lats[i + 1], lons[i + 1]) for i in range(3)]
    result = haversine_array(lats, lons)
    assert result.shape == (3,)
    assert np.allclose(result, expected)


def test_haversine_array_short_inputs() -> None:
    assert haversine_array([], []).size == 0
    assert haversine_array([1.0], [2.0]).size == 0
    with pytest.raises(ValueError):
        haversine_array([1.0, 2.0], [1.0])
