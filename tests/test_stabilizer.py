"""Tests for initial stable-fix acquisition."""

from __future__ import annotations

import pytest

from activity_tracker.errors import (
    NoStableFixError,
    PermissionDeniedError,
    PositionTimeoutError,
    PositionUnavailableError,
)
from activity_tracker.tracking.stabilizer import stabilize

from conftest import FakePositionSource, make_fix, north_of


def _run(source, **kwargs):
    sleeps = []
    params = dict(
        max_attempts=10,
        poll_interval_ms=1000,
        accuracy_gate_m=20.0,
        stability_radius_m=5.0,
        required_stable_readings=3,
    )
    params.update(kwargs)
    result = stabilize(source, sleep=sleeps.append, **params)
    return result, sleeps


def test_three_close_accurate_fixes_stabilize() -> None:
    fixes = [
        make_fix(0.0, 0.0, accuracy=8, ts=0),
        make_fix(north_of(0.0, 1.0), 0.0, accuracy=6, ts=1000),
        make_fix(north_of(0.0, 2.0), 0.0, accuracy=5, ts=2000),
        make_fix(5.0, 5.0, accuracy=5, ts=3000),
    ]
    source = FakePositionSource(fixes)

    anchor, sleeps = _run(source)

    assert anchor == fixes[2]
    assert len(source.requests) == 3
    assert sleeps == [1.0, 1.0]
    assert all(opts.max_age_ms == 0 for opts in source.requests)
    assert all(opts.high_accuracy for opts in source.requests)


def test_inaccurate_fixes_are_not_candidates() -> None:
    fixes = [
        make_fix(0.0, 0.0, accuracy=5, ts=0),
        make_fix(0.0, 0.0, accuracy=45, ts=1000),
        make_fix(0.0, 0.0, accuracy=5, ts=2000),
        make_fix(0.0, 0.0, accuracy=5, ts=3000),
    ]
    anchor, _ = _run(FakePositionSource(fixes))
    # The inaccurate reading is skipped without breaking the run.
    assert anchor == fixes[3]


def test_distant_candidate_resets_run() -> None:
    far = north_of(0.0, 50.0)
    fixes = [
        make_fix(0.0, 0.0, ts=0),
        make_fix(0.0, 0.0, ts=1000),
        make_fix(far, 0.0, ts=2000),
        make_fix(far, 0.0, ts=3000),
        make_fix(far, 0.0, ts=4000),
    ]
    source = FakePositionSource(fixes)
    anchor, _ = _run(source)
    assert anchor == fixes[4]
    assert len(source.requests) == 5


def test_exhaustion_returns_last_observed_fix() -> None:
    fixes = [
        make_fix(0.0, 0.0, accuracy=5, ts=0),
        make_fix(north_of(0.0, 30.0), 0.0, accuracy=5, ts=1000),
        make_fix(north_of(0.0, 60.0), 0.0, accuracy=80, ts=2000),
    ]
    anchor, sleeps = _run(FakePositionSource(fixes), max_attempts=3)
    assert anchor == fixes[2]
    assert len(sleeps) == 2


def test_timeouts_count_as_failed_attempts() -> None:
    fixes = [
        PositionTimeoutError("timeout"),
        PositionUnavailableError("no signal"),
        make_fix(0.0, 0.0, ts=2000),
        make_fix(0.0, 0.0, ts=3000),
        make_fix(0.0, 0.0, ts=4000),
    ]
    source = FakePositionSource(fixes)
    anchor, _ = _run(source)
    assert anchor == fixes[4]
    assert len(source.requests) == 5


def test_no_fix_at_all_raises_no_stable_fix() -> None:
    source = FakePositionSource([PositionTimeoutError("timeout")] * 3)
    with pytest.raises(NoStableFixError) as excinfo:
        _run(source, max_attempts=3)
    assert isinstance(excinfo.value.__cause__, PositionTimeoutError)


def test_permission_denied_surfaces_immediately() -> None:
    source = FakePositionSource(
        [PermissionDeniedError("denied"), make_fix(0.0, 0.0, ts=0)]
    )
    with pytest.raises(PermissionDeniedError):
        _run(source)
    assert len(source.requests) == 1


def test_single_reading_requirement_returns_first_candidate() -> None:
    fixes = [make_fix(0.0, 0.0, accuracy=50, ts=0), make_fix(1.0, 1.0, accuracy=3, ts=1)]
    anchor, _ = _run(FakePositionSource(fixes), required_stable_readings=1)
    assert anchor == fixes[1]


def test_invalid_arguments() -> None:
    with pytest.raises(ValueError):
        _run(FakePositionSource([]), max_attempts=0)


def test_unknown_accuracy_is_never_a_candidate() -> None:
    nan = float("nan")
    fixes = [make_fix(0.0, 0.0, accuracy=nan, ts=ts) for ts in (0, 1000, 2000)]
    fixes += [make_fix(0.0, 0.0, accuracy=5, ts=ts) for ts in (3000, 4000, 5000)]
    source = FakePositionSource(fixes)

    anchor, _ = _run(source)

    assert anchor == fixes[5]
    assert len(source.requests) == 6


def test_unknown_accuracy_never_used_as_fallback() -> None:
    nan = float("nan")
    fixes = [
        make_fix(0.0, 0.0, accuracy=60, ts=0),
        make_fix(1.0, 1.0, accuracy=nan, ts=1000),
    ]
    anchor, _ = _run(FakePositionSource(fixes), max_attempts=2)
    assert anchor == fixes[0]


def test_only_unknown_accuracy_raises() -> None:
    source = FakePositionSource([make_fix(accuracy=float("nan"))] * 2)
    with pytest.raises(NoStableFixError):
        _run(source, max_attempts=2)
