"""Cumulative distance with a jitter noise floor."""

from __future__ import annotations

import pytest

from activity_tracker.models import TrackPoint
from activity_tracker.tracking.distance import accumulate

from conftest import north_of


def _track(step_m, count):
    lat = 0.0
    points = [TrackPoint(lat, 0.0)]
    for _ in range(count):
        lat = north_of(lat, step_m)
        points.append(TrackPoint(lat, 0.0))
    return points


def test_fewer_than_two_points_is_zero() -> None:
    assert accumulate([]) == 0.0
    assert accumulate([TrackPoint(1.0, 1.0)]) == 0.0


def test_segments_below_noise_floor_ignored() -> None:
    assert accumulate(_track(0.8, 50), noise_floor_m=1.0) == 0.0


def test_sums_segments_above_floor() -> None:
    assert accumulate(_track(10.0, 5)) == pytest.approx(50.0, abs=0.05)


def test_thousandth_degree_is_about_111m() -> None:
    total = accumulate([TrackPoint(0.0, 0.0), TrackPoint(0.001, 0.0)])
    assert total == pytest.approx(111.19, abs=0.01)


def test_rounded_to_centimetres() -> None:
    total = accumulate(_track(3.3333, 3))
    assert total == round(total, 2)


def test_recomputation_is_idempotent() -> None:
    points = _track(7.0, 12)
    assert accumulate(points) == accumulate(points)
    assert accumulate(points) >= 0.0
