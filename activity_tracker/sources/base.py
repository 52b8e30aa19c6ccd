"""Position source protocol and request options."""

from __future__ import annotations

from dataclasses import dataclass
import itertools
from typing import Callable, Protocol

from .. import config
from ..errors import PositionSourceError
from ..models import Fix

FixCallback = Callable[[Fix], None]
ErrorCallback = Callable[[PositionSourceError], None]

__all__ = [
    "FixCallback",
    "ErrorCallback",
    "PositionOptions",
    "PositionSource",
    "SubscriptionHandle",
    "stabilization_options",
    "tracking_options",
]

_handle_ids = itertools.count(1)


@dataclass(frozen=True, slots=True)
class PositionOptions:
    """Request options passed through unchanged to the position source."""

    high_accuracy: bool = True
    timeout_ms: int = config.POSITION_REQUEST_TIMEOUT_MS
    max_age_ms: int = 0


@dataclass(frozen=True, slots=True)
class SubscriptionHandle:
    id: int

    @classmethod
    def next(cls) -> "SubscriptionHandle":
        return cls(next(_handle_ids))


class PositionSource(Protocol):
    """Anything able to deliver fixes, one-shot or as a watch subscription."""

    def subscribe(
        self,
        on_fix: FixCallback,
        on_error: ErrorCallback,
        options: PositionOptions,
    ) -> SubscriptionHandle: ...

    def unsubscribe(self, handle: SubscriptionHandle) -> None: ...

    def get_current_fix(self, options: PositionOptions) -> Fix: ...


def stabilization_options() -> PositionOptions:
    """Options for stabilization polls: fresh fixes only."""

    return PositionOptions(
        high_accuracy=config.POSITION_HIGH_ACCURACY,
        timeout_ms=config.POSITION_REQUEST_TIMEOUT_MS,
        max_age_ms=0,
    )


def tracking_options() -> PositionOptions:
    """Options for the steady-state watch subscription."""

    return PositionOptions(
        high_accuracy=config.POSITION_HIGH_ACCURACY,
        timeout_ms=config.POSITION_REQUEST_TIMEOUT_MS,
        max_age_ms=config.TRACKING_MAX_AGE_MS,
    )
