"""Dataclasses describing fixes, tracked sessions and their snapshots."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from .activity_types import ActivityType


@dataclass(frozen=True, slots=True)
class Fix:
    """One raw reading from the position source."""

    latitude: float
    longitude: float
    accuracy_m: float
    speed_mps: Optional[float]
    timestamp_ms: int

    def to_point(self) -> "TrackPoint":
        return TrackPoint(self.latitude, self.longitude)


@dataclass(frozen=True, slots=True)
class TrackPoint:
    latitude: float
    longitude: float

    def as_pair(self) -> List[float]:
        return [self.latitude, self.longitude]


class SessionState(str, Enum):
    IDLE = "idle"
    STABILIZING = "stabilizing"
    TRACKING = "tracking"
    STOPPING = "stopping"


@dataclass
class SessionDiagnostics:
    """Counters collected while a session is tracked."""

    rejections: Counter = field(default_factory=Counter)
    accepted: int = 0
    anomalies: int = 0
    source_errors: int = 0


@dataclass
class Session:
    id: str
    activity_type: ActivityType
    state: SessionState
    start_time: datetime
    anchor: Optional[TrackPoint] = None
    points: List[TrackPoint] = field(default_factory=list)
    cumulative_distance_m: float = 0.0
    # Timestamp of the most recently accepted fix.
    last_fix_time_ms: Optional[int] = None
    # Timestamp of the anchor fix; start of the fix timeline.
    start_fix_time_ms: Optional[int] = None
    elapsed_seconds: int = 0
    diagnostics: SessionDiagnostics = field(default_factory=SessionDiagnostics)


@dataclass(frozen=True)
class SessionRecord:
    """A finished session packaged for the persistence collaborator."""

    session_id: str
    activity_type: ActivityType
    start_time: datetime
    end_time: datetime
    points: tuple[TrackPoint, ...]
    distance_m: float
    elapsed_seconds: int
    user_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Return the payload written by session stores."""
        payload: Dict[str, Any] = {
            "id": self.session_id,
            "activity_type": self.activity_type.value,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
            "route_data": {"positions": [p.as_pair() for p in self.points]},
            "distance": self.distance_m,
            "elapsed_seconds": self.elapsed_seconds,
        }
        if self.user_id is not None:
            payload["user_id"] = self.user_id
        return payload


@dataclass(frozen=True, slots=True)
class TrackerSnapshot:
    """Read-only view handed to observers on each accepted point and tick."""

    state: SessionState
    elapsed_seconds: int
    distance_m: float
    point_count: int
    last_error: Optional[str] = None


@dataclass(frozen=True, slots=True)
class TrackerEvent:
    """Observability event (rejections, anomalies, source errors)."""

    kind: str
    reason: str
    detail: Dict[str, Any] = field(default_factory=dict)


__all__ = [
    "Fix",
    "TrackPoint",
    "SessionState",
    "SessionDiagnostics",
    "Session",
    "SessionRecord",
    "TrackerSnapshot",
    "TrackerEvent",
]
