"""Correct implausible distance spikes early in a session."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import FrozenSet, Iterable

from .. import config
from ..activity_types import ActivityType

_LOGGER = logging.getLogger(__name__)

__all__ = ["SanityMonitor", "SanityResult"]


@dataclass(frozen=True, slots=True)
class SanityResult:
    distance_m: float
    anomaly: bool = False
    original_distance_m: float | None = None


class SanityMonitor:
    """Reset the headline distance when it jumps too far too soon.

    Only the derived distance is corrected; recorded points stay untouched.
    """

    def __init__(
        self,
        jump_ceiling_m: float = config.SANITY_JUMP_CEILING_M,
        early_window_seconds: float = config.SANITY_EARLY_WINDOW_SECONDS,
        activities: Iterable[ActivityType] = (ActivityType.WALK,),
    ) -> None:
        self.jump_ceiling_m = jump_ceiling_m
        self.early_window_seconds = early_window_seconds
        self.activities: FrozenSet[ActivityType] = frozenset(activities)

    def check(
        self,
        distance_m: float,
        elapsed_seconds: float,
        activity_type: ActivityType,
    ) -> SanityResult:
        if (
            activity_type in self.activities
            and elapsed_seconds <= self.early_window_seconds
            and distance_m > self.jump_ceiling_m
        ):
            _LOGGER.warning(
                "Implausible early distance %.1fm after %ss (%s); resetting to 0",
                distance_m,
                elapsed_seconds,
                activity_type.value,
            )
            return SanityResult(0.0, anomaly=True, original_distance_m=distance_m)
        return SanityResult(max(distance_m, 0.0))
