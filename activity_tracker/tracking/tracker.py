"""Session state machine orchestrating one tracked activity at a time.

Lifecycle: ``IDLE -> STABILIZING -> TRACKING -> STOPPING -> IDLE``. Fix
deliveries, ticks and start/stop requests arrive from different threads; every
mutation of the session happens while holding the tracker's lock so they are
applied one at a time. Stabilization runs outside the lock so the state stays
readable while it polls. Tearing down the subscription and the ticker also
happens outside the lock because both join producer threads that may be
waiting on it.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, replace
from datetime import datetime, timezone
import logging
import threading
import time
from typing import Any, Callable, List, Optional
import uuid

from .. import config
from ..activity_types import ActivityType, normalize_activity_type
from ..errors import (
    PermissionDeniedError,
    PositionSourceError,
    SaveFailedError,
    TrackerStateError,
    TrackingError,
)
from ..models import (
    Fix,
    Session,
    SessionRecord,
    SessionState,
    TrackerEvent,
    TrackerSnapshot,
)
from ..persistence.base import SessionStore
from ..sources.base import PositionSource, SubscriptionHandle, tracking_options
from .distance import accumulate
from .sanity import SanityMonitor
from .smoothing import smooth
from .stabilizer import stabilize
from .stream_filter import StreamFilter
from .ticker import ElapsedTimeTicker, Ticker

SnapshotCallback = Callable[[TrackerSnapshot], None]
EventCallback = Callable[[TrackerEvent], None]

__all__ = ["ActivityTracker", "TrackerConfig"]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class TrackerConfig:
    store: Optional[SessionStore] = None
    stabilizer: Callable[[PositionSource], Fix] = stabilize
    stream_filter: Optional[StreamFilter] = None
    sanity_monitor: Optional[SanityMonitor] = None
    ticker_factory: Callable[[Callable[[], None]], Ticker] = ElapsedTimeTicker
    smoothing_window: int = config.SMOOTHING_WINDOW_SIZE
    noise_floor_m: float = config.DISTANCE_NOISE_FLOOR_M
    user_id: Optional[str] = None
    on_snapshot: Optional[SnapshotCallback] = None
    on_event: Optional[EventCallback] = None
    clock: Callable[[], float] = time.monotonic
    now: Callable[[], datetime] = _utc_now
    logger: logging.Logger | None = None


class ActivityTracker:
    def __init__(
        self, source: PositionSource, config: TrackerConfig | None = None
    ) -> None:
        self.config = config or TrackerConfig()
        self._source = source
        self._log = self.config.logger or logging.getLogger(self.__class__.__name__)
        self._filter = self.config.stream_filter or StreamFilter()
        self._sanity = self.config.sanity_monitor or SanityMonitor()
        self._lock = threading.RLock()
        self._state = SessionState.IDLE
        self._session: Optional[Session] = None
        self._handle: Optional[SubscriptionHandle] = None
        self._ticker: Optional[Ticker] = None
        self._started_at: float = 0.0
        self._last_error: Optional[str] = None
        self._last_record: Optional[SessionRecord] = None
        self._pending: List[SessionRecord] = []
        self._start_cancelled = False

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------
    @property
    def state(self) -> SessionState:
        with self._lock:
            return self._state

    @property
    def session(self) -> Optional[Session]:
        """Copy of the current session; changing it does not affect tracking."""

        with self._lock:
            session = self._session
            if session is None:
                return None
            diagnostics = replace(
                session.diagnostics,
                rejections=Counter(session.diagnostics.rejections),
            )
            return replace(
                session, points=list(session.points), diagnostics=diagnostics
            )

    @property
    def last_error(self) -> Optional[str]:
        return self._last_error

    @property
    def last_record(self) -> Optional[SessionRecord]:
        return self._last_record

    @property
    def pending_records(self) -> List[SessionRecord]:
        with self._lock:
            return list(self._pending)

    def snapshot(self) -> TrackerSnapshot:
        with self._lock:
            return self._snapshot_locked()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def start(self, activity_type: ActivityType | str) -> Session:
        """Stabilize, then begin tracking a new session.

        The stabilizer runs without holding the tracker lock, so ``state``,
        :meth:`snapshot` and :meth:`stop` stay responsive while it polls. A
        :meth:`stop` issued during stabilization cancels the start once the
        stabilizer returns.

        Returns:
            The live session, owned by the tracker.

        Raises:
            TrackerStateError: A session is already starting or in progress,
                or the start was cancelled by :meth:`stop`.
            NoStableFixError, PositionSourceError: Stabilization failed; the
                tracker is back in ``IDLE``.
        """

        activity = normalize_activity_type(activity_type)
        with self._lock:
            if self._state is not SessionState.IDLE:
                raise TrackerStateError(
                    f"Cannot start while {self._state.value}; stop the current session first"
                )
            self._state = SessionState.STABILIZING
            self._start_cancelled = False
            self._last_error = None
            self._log.info("Stabilizing position for %s session", activity.value)
            self._notify(self._snapshot_locked())

        try:
            anchor_fix = self.config.stabilizer(self._source)
        except TrackingError as exc:
            self._abandon_start(str(exc))
            self._log.warning("Start aborted, no usable fix: %s", exc)
            self._emit(TrackerEvent("source_error", type(exc).__name__))
            raise
        except Exception as exc:
            self._abandon_start(str(exc))
            self._log.error("Stabilizer failed unexpectedly", exc_info=True)
            raise

        with self._lock:
            if self._start_cancelled:
                self._state = SessionState.IDLE
                self._start_cancelled = False
                self._log.info(
                    "Start of %s session cancelled during stabilization",
                    activity.value,
                )
                self._notify(self._snapshot_locked())
                raise TrackerStateError("Start cancelled while stabilizing")

            anchor = anchor_fix.to_point()
            session = Session(
                id=uuid.uuid4().hex,
                activity_type=activity,
                state=SessionState.TRACKING,
                start_time=self.config.now(),
                anchor=anchor,
                points=[anchor],
                cumulative_distance_m=0.0,
                last_fix_time_ms=anchor_fix.timestamp_ms,
                start_fix_time_ms=anchor_fix.timestamp_ms,
            )
            self._session = session
            self._started_at = self.config.clock()
            self._state = SessionState.TRACKING
            try:
                self._handle = self._source.subscribe(
                    self.handle_fix, self.handle_error, tracking_options()
                )
                self._ticker = self.config.ticker_factory(self.tick)
                self._ticker.start()
            except Exception:
                self._log.error("Failed to start fix subscription", exc_info=True)
                self._state = SessionState.STOPPING
                session.state = SessionState.STOPPING
                handle, ticker = self._detach_producers()
                self._teardown(handle, ticker)
                self._state = SessionState.IDLE
                session.state = SessionState.IDLE
                self._session = None
                raise
            self._log.info(
                "Tracking session %s (%s) anchored at %.6f,%.6f",
                session.id,
                activity.value,
                anchor.latitude,
                anchor.longitude,
            )
            self._notify(self._snapshot_locked())
            return session

    def stop(self) -> Optional[SessionRecord]:
        """Stop tracking and hand the finished session to the store.

        Called while stabilizing, it cancels the pending start instead.

        Returns:
            The packaged record, or ``None`` when nothing was tracking or the
            session had no points.

        Raises:
            SaveFailedError: The store rejected the record; it is kept in
                :attr:`pending_records` for :meth:`retry_pending`.
        """

        with self._lock:
            if self._state is SessionState.STABILIZING:
                self._start_cancelled = True
                self._log.info("Stop requested while stabilizing; cancelling start")
                return None
        record = self._finish()
        if record is None:
            return None
        self._persist(record)
        return record

    def retry_pending(self) -> List[str]:
        """Re-attempt saving records whose earlier save failed."""

        saved: List[str] = []
        for record in self.pending_records:
            try:
                saved.append(self._save(record))
            except SaveFailedError as exc:
                self._log.warning(
                    "Retry for session %s failed: %s", record.session_id, exc
                )
                continue
            with self._lock:
                self._pending.remove(record)
        return saved

    def close(self) -> None:
        """Stop an in-progress session; safe to call in any state."""

        if self.state in (SessionState.STABILIZING, SessionState.TRACKING):
            self.stop()

    def __enter__(self) -> "ActivityTracker":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Producer entry points
    # ------------------------------------------------------------------
    def handle_fix(self, fix: Fix) -> None:
        with self._lock:
            session = self._session
            if self._state is not SessionState.TRACKING or session is None:
                self._log.debug("Ignoring fix while %s", self._state.value)
                return
            decision = self._filter.consider(fix, session)
            if not decision.accepted:
                reason = decision.reason.value if decision.reason else "unknown"
                session.diagnostics.rejections[reason] += 1
                self._log.debug(
                    "Rejected fix ts=%s reason=%s accuracy=%.1fm speed=%s",
                    fix.timestamp_ms,
                    reason,
                    fix.accuracy_m,
                    fix.speed_mps,
                )
                self._emit(
                    TrackerEvent(
                        "rejected",
                        reason,
                        {
                            "timestamp_ms": fix.timestamp_ms,
                            "segment_m": decision.segment_m,
                        },
                    )
                )
                return
            session.diagnostics.accepted += 1
            self._update_distance(session, fix)
            self._notify(self._snapshot_locked())

    def handle_error(self, error: PositionSourceError) -> None:
        with self._lock:
            session = self._session
            if self._state is not SessionState.TRACKING or session is None:
                return
            session.diagnostics.source_errors += 1
            self._last_error = str(error)
            self._emit(
                TrackerEvent("source_error", type(error).__name__, {"message": str(error)})
            )
            fatal = isinstance(error, PermissionDeniedError)
            if not fatal:
                self._log.warning("Transient position error, still tracking: %s", error)
                self._notify(self._snapshot_locked())
                return
            self._log.warning("Stopping session %s: %s", session.id, error)

        record = self._finish()
        if record is None:
            return
        try:
            self._persist(record)
        except SaveFailedError as exc:
            self._log.warning(
                "Automatic stop could not save session %s: %s", record.session_id, exc
            )

    def tick(self) -> None:
        with self._lock:
            session = self._session
            if self._state is not SessionState.TRACKING or session is None:
                return
            session.elapsed_seconds = int(self.config.clock() - self._started_at)
            self._notify(self._snapshot_locked())

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _update_distance(self, session: Session, fix: Fix) -> None:
        smoothed = smooth(session.points, self.config.smoothing_window)
        total = accumulate(smoothed, self.config.noise_floor_m)
        elapsed = float(session.elapsed_seconds)
        if session.start_fix_time_ms is not None:
            elapsed = max(elapsed, (fix.timestamp_ms - session.start_fix_time_ms) / 1000.0)
        result = self._sanity.check(total, elapsed, session.activity_type)
        if result.anomaly:
            session.diagnostics.anomalies += 1
            self._emit(
                TrackerEvent(
                    "anomaly",
                    "early_distance_spike",
                    {
                        "distance_m": result.original_distance_m,
                        "elapsed_seconds": elapsed,
                    },
                )
            )
        session.cumulative_distance_m = result.distance_m

    def _abandon_start(self, error: str) -> None:
        with self._lock:
            self._state = SessionState.IDLE
            self._start_cancelled = False
            self._last_error = error
            self._notify(self._snapshot_locked())

    def _detach_producers(
        self,
    ) -> tuple[Optional[SubscriptionHandle], Optional[Ticker]]:
        handle, self._handle = self._handle, None
        ticker, self._ticker = self._ticker, None
        return handle, ticker

    def _teardown(
        self, handle: Optional[SubscriptionHandle], ticker: Optional[Ticker]
    ) -> None:
        try:
            if handle is not None:
                self._source.unsubscribe(handle)
        finally:
            if ticker is not None:
                ticker.cancel()

    def _finish(self) -> Optional[SessionRecord]:
        with self._lock:
            session = self._session
            if self._state is not SessionState.TRACKING or session is None:
                return None
            self._state = SessionState.STOPPING
            session.state = SessionState.STOPPING
            handle, ticker = self._detach_producers()

        try:
            self._teardown(handle, ticker)
        finally:
            with self._lock:
                session.elapsed_seconds = int(self.config.clock() - self._started_at)
                self._state = SessionState.IDLE
                session.state = SessionState.IDLE
                self._session = None

        if not session.points:
            self._log.info("Discarding session %s with no points", session.id)
            return None
        record = SessionRecord(
            session_id=session.id,
            activity_type=session.activity_type,
            start_time=session.start_time,
            end_time=self.config.now(),
            points=tuple(session.points),
            distance_m=session.cumulative_distance_m,
            elapsed_seconds=session.elapsed_seconds,
            user_id=self.config.user_id,
        )
        self._last_record = record
        diag = session.diagnostics
        self._log.info(
            "Session %s stopped: %d points, %.2fm, %ds (accepted=%d rejected=%d anomalies=%d)",
            session.id,
            len(record.points),
            record.distance_m,
            record.elapsed_seconds,
            diag.accepted,
            sum(diag.rejections.values()),
            diag.anomalies,
        )
        return record

    def _persist(self, record: SessionRecord) -> None:
        if self.config.store is None:
            self._log.info("No session store configured; session %s not saved", record.session_id)
            return
        try:
            self._save(record)
        except SaveFailedError as exc:
            with self._lock:
                self._pending.append(record)
                self._last_error = str(exc)
            raise

    def _save(self, record: SessionRecord) -> str:
        store = self.config.store
        if store is None:
            raise SaveFailedError("No session store configured", record)
        try:
            return store.save(record)
        except SaveFailedError as exc:
            if exc.record is None:
                exc.record = record
            raise
        except Exception as exc:
            raise SaveFailedError(
                f"Saving session {record.session_id} failed: {exc}", record
            ) from exc

    def _snapshot_locked(self) -> TrackerSnapshot:
        session = self._session
        return TrackerSnapshot(
            state=self._state,
            elapsed_seconds=session.elapsed_seconds if session else 0,
            distance_m=session.cumulative_distance_m if session else 0.0,
            point_count=len(session.points) if session else 0,
            last_error=self._last_error,
        )

    def _notify(self, snapshot: TrackerSnapshot) -> None:
        callback = self.config.on_snapshot
        if callback is None:
            return
        try:
            callback(snapshot)
        except Exception as exc:  # pragma: no cover - defensive logging
            self._log.error("Snapshot observer failed: %s", exc, exc_info=True)

    def _emit(self, event: TrackerEvent) -> None:
        callback = self.config.on_event
        if callback is None:
            return
        try:
            callback(event)
        except Exception as exc:  # pragma: no cover - defensive logging
            self._log.error("Event observer failed: %s", exc, exc_info=True)
