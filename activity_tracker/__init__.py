"""Real-time GPS activity tracking package."""

from .activity_types import ActivityType, Thresholds
from .errors import TrackingError, SaveFailedError, NoStableFixError
from .models import Fix, TrackPoint, SessionRecord, TrackerSnapshot
from .tracking import ActivityTracker, TrackerConfig

__all__ = [
    "ActivityType",
    "Thresholds",
    "TrackingError",
    "SaveFailedError",
    "NoStableFixError",
    "Fix",
    "TrackPoint",
    "SessionRecord",
    "TrackerSnapshot",
    "ActivityTracker",
    "TrackerConfig",
]
