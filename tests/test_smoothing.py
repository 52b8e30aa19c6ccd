"""Moving-average smoothing of track points."""

from __future__ import annotations

import pytest

from activity_tracker.models import TrackPoint
from activity_tracker.tracking.smoothing import smooth


def _line(values):
    return [TrackPoint(float(v), 0.0) for v in values]


def test_output_has_same_length_and_input_untouched() -> None:
    points = _line([0, 1, 2, 3, 4])
    original = list(points)

    result = smooth(points, 3)

    assert len(result) == len(points)
    assert points == original
    assert result is not points


def test_centered_then_trailing_windows() -> None:
    result = smooth(_line([0, 1, 2, 3, 4]), 3)
    assert [p.latitude for p in result] == pytest.approx([0.0, 1.0, 2.0, 3.0, 3.0])


def test_short_sequences_pass_through() -> None:
    points = _line([0, 7])
    assert smooth(points, 3) == points


def test_window_of_one_is_identity() -> None:
    points = _line([3, 1, 4, 1, 5])
    assert smooth(points, 1) == points


def test_empty_input() -> None:
    assert smooth([], 3) == []


def test_spike_is_damped() -> None:
    result = smooth(_line([0, 0, 9, 0, 0]), 3)
    assert result[2].latitude == pytest.approx(3.0)


@pytest.mark.parametrize("window", [0, -2])
def test_invalid_window_rejected(window) -> None:
    with pytest.raises(ValueError):
        smooth(_line([0, 1]), window)
