"""Real-time tracking pipeline: stabilize, filter, smooth, accumulate."""

from .distance import accumulate
from .sanity import SanityMonitor, SanityResult
from .smoothing import smooth
from .stabilizer import stabilize
from .stream_filter import FilterDecision, RejectReason, StreamFilter
from .ticker import ElapsedTimeTicker
from .tracker import ActivityTracker, TrackerConfig

__all__ = [
    "accumulate",
    "SanityMonitor",
    "SanityResult",
    "smooth",
    "stabilize",
    "FilterDecision",
    "RejectReason",
    "StreamFilter",
    "ElapsedTimeTicker",
    "ActivityTracker",
    "TrackerConfig",
]
