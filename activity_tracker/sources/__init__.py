"""Position sources feeding fixes into the tracker."""

from .base import (
    PositionOptions,
    PositionSource,
    SubscriptionHandle,
    stabilization_options,
    tracking_options,
)
from .replay import ReplayPositionSource, load_fixes

__all__ = [
    "PositionOptions",
    "PositionSource",
    "SubscriptionHandle",
    "stabilization_options",
    "tracking_options",
    "ReplayPositionSource",
    "load_fixes",
]
