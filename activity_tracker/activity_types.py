"""Activity types and the per-activity filter thresholds table."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import math
from typing import Any, Mapping

from . import config
from .errors import ThresholdsConfigError

__all__ = [
    "ActivityType",
    "Thresholds",
    "normalize_activity_type",
    "build_thresholds_table",
    "validate_thresholds_table",
    "DEFAULT_THRESHOLDS",
]


class ActivityType(str, Enum):
    WALK = "Walk"
    JOG = "Jog"
    DRIVE = "Drive"


@dataclass(frozen=True, slots=True)
class Thresholds:
    """Filter tunables for one activity type."""

    max_speed_mps: float
    min_segment_m: float
    initial_jump_limit_m: float
    initial_jump_point_count: int
    max_accuracy_m: float
    stationary_speed_mps: float
    fast_motion_speed_mps: float
    fast_min_segment_m: float


def normalize_activity_type(value: Any) -> ActivityType:
    """Return the :class:`ActivityType` named by ``value``.

    Accepts enum members or their names/values in any casing. Anything else
    raises ``ValueError`` so a typo never silently selects a default activity.
    """

    if isinstance(value, ActivityType):
        return value
    if value is None:
        raise ValueError("Activity type is required")
    normalized = str(value).strip().lower()
    for member in ActivityType:
        if normalized in (member.name.lower(), member.value.lower()):
            return member
    raise ValueError(f"Unknown activity type: {value!r}")


def build_thresholds_table() -> dict[ActivityType, Thresholds]:
    """Assemble the thresholds table from the configured constants."""

    table = {
        ActivityType.WALK: Thresholds(
            max_speed_mps=config.WALK_MAX_SPEED_MPS,
            min_segment_m=config.WALK_MIN_SEGMENT_M,
            initial_jump_limit_m=config.WALK_INITIAL_JUMP_LIMIT_M,
            initial_jump_point_count=config.INITIAL_JUMP_POINT_COUNT,
            max_accuracy_m=config.MAX_ACCURACY_M,
            stationary_speed_mps=config.WALK_STATIONARY_SPEED_MPS,
            fast_motion_speed_mps=config.FAST_MOTION_SPEED_MPS,
            fast_min_segment_m=config.FAST_MIN_SEGMENT_M,
        ),
        ActivityType.JOG: Thresholds(
            max_speed_mps=config.JOG_MAX_SPEED_MPS,
            min_segment_m=config.JOG_MIN_SEGMENT_M,
            initial_jump_limit_m=config.JOG_INITIAL_JUMP_LIMIT_M,
            initial_jump_point_count=config.INITIAL_JUMP_POINT_COUNT,
            max_accuracy_m=config.MAX_ACCURACY_M,
            stationary_speed_mps=config.JOG_STATIONARY_SPEED_MPS,
            fast_motion_speed_mps=config.FAST_MOTION_SPEED_MPS,
            fast_min_segment_m=config.FAST_MIN_SEGMENT_M,
        ),
        ActivityType.DRIVE: Thresholds(
            max_speed_mps=math.inf,
            min_segment_m=config.DRIVE_MIN_SEGMENT_M,
            initial_jump_limit_m=config.DRIVE_INITIAL_JUMP_LIMIT_M,
            initial_jump_point_count=config.INITIAL_JUMP_POINT_COUNT,
            max_accuracy_m=config.MAX_ACCURACY_M,
            stationary_speed_mps=config.DRIVE_STATIONARY_SPEED_MPS,
            fast_motion_speed_mps=config.FAST_MOTION_SPEED_MPS,
            fast_min_segment_m=config.FAST_MIN_SEGMENT_M,
        ),
    }
    validate_thresholds_table(table)
    return table


def validate_thresholds_table(table: Mapping[ActivityType, Thresholds]) -> None:
    """Raise :class:`ThresholdsConfigError` unless every activity is covered.

    Args:
        table: Candidate mapping of activity type to thresholds.

    Raises:
        ThresholdsConfigError: When an activity is missing, a distance or
            accuracy limit is not positive, or DRIVE carries a finite speed
            limit.
    """

    missing = [member.name for member in ActivityType if member not in table]
    if missing:
        raise ThresholdsConfigError(
            f"Thresholds missing for activity types: {', '.join(missing)}"
        )
    for activity, thresholds in table.items():
        if thresholds.max_accuracy_m <= 0 or thresholds.max_speed_mps <= 0:
            raise ThresholdsConfigError(
                f"{activity.name}: accuracy and speed limits must be positive"
            )
        if thresholds.min_segment_m < 0 or thresholds.fast_min_segment_m < 0:
            raise ThresholdsConfigError(
                f"{activity.name}: segment floors must not be negative"
            )
        if thresholds.initial_jump_point_count < 0:
            raise ThresholdsConfigError(
                f"{activity.name}: initial_jump_point_count must not be negative"
            )
    if not math.isinf(table[ActivityType.DRIVE].max_speed_mps):
        raise ThresholdsConfigError("DRIVE must not carry a speed limit")


DEFAULT_THRESHOLDS = build_thresholds_table()
