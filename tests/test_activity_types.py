"""Activity types, thresholds table and config helpers."""

from __future__ import annotations

from dataclasses import replace
import math

import pytest

from activity_tracker import config
from activity_tracker.activity_types import (
    DEFAULT_THRESHOLDS,
    ActivityType,
    build_thresholds_table,
    normalize_activity_type,
    validate_thresholds_table,
)
from activity_tracker.errors import ThresholdsConfigError


@pytest.mark.parametrize(
    "value, expected",
    [
        ("Walk", ActivityType.WALK),
        ("walk", ActivityType.WALK),
        (" JOG ", ActivityType.JOG),
        ("drive", ActivityType.DRIVE),
        (ActivityType.DRIVE, ActivityType.DRIVE),
    ],
)
def test_normalize_activity_type(value, expected) -> None:
    assert normalize_activity_type(value) is expected


@pytest.mark.parametrize("value", [None, "", "cycle"])
def test_normalize_rejects_unknown(value) -> None:
    with pytest.raises(ValueError):
        normalize_activity_type(value)


def test_default_table_covers_every_activity() -> None:
    assert set(DEFAULT_THRESHOLDS) == set(ActivityType)
    walk = DEFAULT_THRESHOLDS[ActivityType.WALK]
    assert walk.max_speed_mps == 3.0
    assert walk.min_segment_m == 3.0
    assert walk.initial_jump_limit_m == 30.0
    assert DEFAULT_THRESHOLDS[ActivityType.JOG].max_speed_mps == 7.0
    assert math.isinf(DEFAULT_THRESHOLDS[ActivityType.DRIVE].max_speed_mps)
    assert DEFAULT_THRESHOLDS[ActivityType.DRIVE].initial_jump_limit_m == 150.0


def test_validate_missing_activity() -> None:
    table = dict(DEFAULT_THRESHOLDS)
    del table[ActivityType.JOG]
    with pytest.raises(ThresholdsConfigError, match="JOG"):
        validate_thresholds_table(table)


def test_validate_finite_drive_limit() -> None:
    table = dict(DEFAULT_THRESHOLDS)
    table[ActivityType.DRIVE] = replace(table[ActivityType.DRIVE], max_speed_mps=50.0)
    with pytest.raises(ThresholdsConfigError):
        validate_thresholds_table(table)


def test_build_uses_config_overrides(monkeypatch) -> None:
    monkeypatch.setattr(config, "WALK_MAX_SPEED_MPS", 2.5)
    assert build_thresholds_table()[ActivityType.WALK].max_speed_mps == 2.5

    monkeypatch.setattr(config, "MAX_ACCURACY_M", 0.0)
    with pytest.raises(ThresholdsConfigError):
        build_thresholds_table()


def test_env_helpers(monkeypatch) -> None:
    monkeypatch.setenv("TRACKER_TEST_FLOAT", "2.5")
    monkeypatch.setenv("TRACKER_TEST_INT", "oops")
    monkeypatch.setenv("TRACKER_TEST_BOOL", "off")
    assert config._env_float("TRACKER_TEST_FLOAT", 1.0) == 2.5
    assert config._env_int("TRACKER_TEST_INT", 7) == 7
    assert config._env_bool("TRACKER_TEST_BOOL", True) is False
    assert config._env_float("TRACKER_TEST_UNSET", 9.0) == 9.0
