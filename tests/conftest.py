"""Global pytest fixtures & helpers.

Adds project root to path and provides fakes for the tracker's collaborators
(position source, ticker, session store, clock) plus fix/session factories so
the individual test modules stay short.
"""
from __future__ import annotations

import os
import sys
from collections import deque
from datetime import datetime, timezone
from typing import Callable, List, Optional

import pytest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from activity_tracker.activity_types import ActivityType
from activity_tracker.errors import PositionSourceError, SaveFailedError
from activity_tracker.geo import EARTH_RADIUS_M
from activity_tracker.models import Fix, Session, SessionRecord, SessionState, TrackPoint
from activity_tracker.sources.base import PositionOptions, SubscriptionHandle

METERS_PER_DEGREE = EARTH_RADIUS_M * 3.141592653589793 / 180.0


# --- Factory helpers -------------------------------------------------
def north_of(lat: float, meters: float) -> float:
    """Latitude ``meters`` north of ``lat`` (exact on a meridian)."""
    return lat + meters / METERS_PER_DEGREE


def make_fix(lat=0.0, lon=0.0, *, accuracy=5.0, speed=None, ts=0):
    return Fix(latitude=lat, longitude=lon, accuracy_m=accuracy, speed_mps=speed, timestamp_ms=ts)


def make_session(activity=ActivityType.WALK, anchor=TrackPoint(0.0, 0.0), ts=0):
    return Session(
        id="test-session",
        activity_type=activity,
        state=SessionState.TRACKING,
        start_time=datetime(2025, 1, 1, tzinfo=timezone.utc),
        anchor=anchor,
        points=[anchor],
        last_fix_time_ms=ts,
        start_fix_time_ms=ts,
    )


# --- Fakes -----------------------------------------------------------
class FakePositionSource:
    """Scripted one-shot answers plus a manually driven subscription."""

    def __init__(self, one_shot=()):
        self.one_shot = deque(one_shot)
        self.requests: List[PositionOptions] = []
        self.on_fix: Optional[Callable] = None
        self.on_error: Optional[Callable] = None
        self.handle: Optional[SubscriptionHandle] = None
        self.subscribe_options: Optional[PositionOptions] = None
        self.unsubscribed: List[SubscriptionHandle] = []

    def get_current_fix(self, options):
        self.requests.append(options)
        item = self.one_shot.popleft()
        if isinstance(item, PositionSourceError):
            raise item
        return item

    def subscribe(self, on_fix, on_error, options):
        self.on_fix, self.on_error = on_fix, on_error
        self.subscribe_options = options
        self.handle = SubscriptionHandle.next()
        return self.handle

    def unsubscribe(self, handle):
        self.unsubscribed.append(handle)
        if handle == self.handle:
            self.handle = None

    @property
    def subscribed(self) -> bool:
        return self.handle is not None

    def emit(self, fix):
        assert self.on_fix is not None, "no active subscription"
        self.on_fix(fix)

    def fail(self, error):
        assert self.on_error is not None, "no active subscription"
        self.on_error(error)


class FakeTicker:
    instances: List["FakeTicker"] = []

    def __init__(self, on_tick):
        self.on_tick = on_tick
        self.started = False
        self.cancelled = False
        FakeTicker.instances.append(self)

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        self.on_tick()


class MemoryStore:
    def __init__(self, failures: int = 0):
        self.saved: List[SessionRecord] = []
        self.attempts = 0
        self.failures = failures

    def save(self, record):
        self.attempts += 1
        if self.failures > 0:
            self.failures -= 1
            raise SaveFailedError("database unavailable")
        self.saved.append(record)
        return record.session_id


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# --- Fixtures --------------------------------------------------------
@pytest.fixture
def fake_ticker():
    FakeTicker.instances.clear()
    yield FakeTicker
    FakeTicker.instances.clear()


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def anchor_fix():
    return make_fix(0.0, 0.0, accuracy=4.0, ts=0)
