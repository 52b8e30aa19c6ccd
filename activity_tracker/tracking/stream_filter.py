"""Per-fix accept/reject decisions for a session being tracked."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging
from typing import Mapping, Optional

from .. import config
from ..activity_types import (
    ActivityType,
    DEFAULT_THRESHOLDS,
    Thresholds,
    validate_thresholds_table,
)
from ..geo import distance
from ..models import Fix, Session, TrackPoint

_LOGGER = logging.getLogger(__name__)

__all__ = ["FilterDecision", "RejectReason", "StreamFilter"]


class RejectReason(str, Enum):
    ACCURACY = "accuracy"
    STATIONARY_SPEED = "stationary_speed"
    SPEED_LIMIT = "speed_limit"
    INITIAL_JUMP = "initial_jump"
    STATIONARY_CLUSTER = "stationary_cluster"
    MIN_SEGMENT = "min_segment"


@dataclass(frozen=True, slots=True)
class FilterDecision:
    """Outcome of :meth:`StreamFilter.consider` for one fix."""

    accepted: bool
    point: Optional[TrackPoint] = None
    reason: Optional[RejectReason] = None
    segment_m: Optional[float] = None
    estimated_speed_mps: Optional[float] = None

    @classmethod
    def reject(
        cls,
        reason: RejectReason,
        *,
        segment_m: Optional[float] = None,
        estimated_speed_mps: Optional[float] = None,
    ) -> "FilterDecision":
        return cls(
            False,
            reason=reason,
            segment_m=segment_m,
            estimated_speed_mps=estimated_speed_mps,
        )


class StreamFilter:
    """Apply the accuracy, speed and jump rules to incoming fixes.

    Checks run in a fixed order and the first failing check decides the
    rejection reason. Only an accepted fix changes the session: its point is
    appended and becomes the new anchor.
    """

    def __init__(
        self,
        thresholds: Mapping[ActivityType, Thresholds] | None = None,
        *,
        speed_epsilon_mps: float = config.SPEED_EPSILON_MPS,
    ) -> None:
        table = dict(thresholds) if thresholds is not None else DEFAULT_THRESHOLDS
        validate_thresholds_table(table)
        self._thresholds = table
        self._speed_epsilon = speed_epsilon_mps

    def consider(self, fix: Fix, session: Session) -> FilterDecision:
        limits = self._thresholds[session.activity_type]
        speed = fix.speed_mps
        point_count = len(session.points)

        if not fix.accuracy_m <= limits.max_accuracy_m:
            return FilterDecision.reject(RejectReason.ACCURACY)

        if speed is not None and speed < self._speed_epsilon and point_count >= 1:
            return FilterDecision.reject(RejectReason.STATIONARY_SPEED)

        if speed is not None and speed > limits.max_speed_mps:
            return FilterDecision.reject(RejectReason.SPEED_LIMIT)

        point = fix.to_point()
        if session.anchor is None:
            # Nothing to measure against yet.
            return self._accept(fix, point, session, None, None)

        segment_m = distance(session.anchor, point)
        estimated = self._estimated_speed(fix, session, segment_m)

        if (
            point_count < limits.initial_jump_point_count
            and segment_m > limits.initial_jump_limit_m
        ):
            return FilterDecision.reject(
                RejectReason.INITIAL_JUMP,
                segment_m=segment_m,
                estimated_speed_mps=estimated,
            )

        reported_still = speed is None or speed < limits.stationary_speed_mps
        estimated_still = (
            estimated is not None and estimated < limits.stationary_speed_mps
        )
        if reported_still and estimated_still and point_count > 1:
            return FilterDecision.reject(
                RejectReason.STATIONARY_CLUSTER,
                segment_m=segment_m,
                estimated_speed_mps=estimated,
            )

        floor_m = limits.min_segment_m
        if estimated is not None and estimated > limits.fast_motion_speed_mps:
            floor_m = max(floor_m, limits.fast_min_segment_m)
        if segment_m < floor_m:
            return FilterDecision.reject(
                RejectReason.MIN_SEGMENT,
                segment_m=segment_m,
                estimated_speed_mps=estimated,
            )

        return self._accept(fix, point, session, segment_m, estimated)

    @staticmethod
    def _estimated_speed(
        fix: Fix, session: Session, segment_m: float
    ) -> Optional[float]:
        if session.last_fix_time_ms is None:
            return None
        elapsed_s = (fix.timestamp_ms - session.last_fix_time_ms) / 1000.0
        if elapsed_s <= 0:
            return None
        return segment_m / elapsed_s

    @staticmethod
    def _accept(
        fix: Fix,
        point: TrackPoint,
        session: Session,
        segment_m: Optional[float],
        estimated: Optional[float],
    ) -> FilterDecision:
        session.points.append(point)
        session.anchor = point
        session.last_fix_time_ms = fix.timestamp_ms
        _LOGGER.debug(
            "Accepted fix #%d segment=%s est_speed=%s",
            len(session.points),
            f"{segment_m:.1f}m" if segment_m is not None else "n/a",
            f"{estimated:.2f}m/s" if estimated is not None else "n/a",
        )
        return FilterDecision(
            True,
            point=point,
            segment_m=segment_m,
            estimated_speed_mps=estimated,
        )
