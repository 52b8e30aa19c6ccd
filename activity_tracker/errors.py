"""Central error types used across the application."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from .models import SessionRecord


class TrackingError(RuntimeError):
    """Base error for tracking pipeline failures."""


class PositionSourceError(TrackingError):
    """Base error for failures reported by the position source."""


class PermissionDeniedError(PositionSourceError):
    """Raised when the user or platform refuses access to location data."""


class PositionUnavailableError(PositionSourceError):
    """Raised when the source cannot currently produce a position."""


class PositionTimeoutError(PositionSourceError):
    """Raised when a position request exceeds its timeout."""


class NoStableFixError(TrackingError):
    """Raised when stabilization never obtains a single fix."""


class TrackerStateError(TrackingError):
    """Raised when a lifecycle operation is invalid for the current state."""


class ThresholdsConfigError(TrackingError):
    """Raised when the activity thresholds table is incomplete or invalid."""


class SaveFailedError(TrackingError):
    """Raised when a finished session could not be persisted.

    The packaged record is attached so the caller can retry the save.
    """

    def __init__(self, message: str, record: "SessionRecord | None" = None):
        super().__init__(message)
        self.record = record


__all__ = [
    "TrackingError",
    "PositionSourceError",
    "PermissionDeniedError",
    "PositionUnavailableError",
    "PositionTimeoutError",
    "NoStableFixError",
    "TrackerStateError",
    "ThresholdsConfigError",
    "SaveFailedError",
]
