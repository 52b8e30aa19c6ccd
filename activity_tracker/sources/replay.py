"""Replay recorded fix logs through the position source interface.

Recorded logs let the full tracking pipeline run offline: the leading fixes
answer the stabilizer's one-shot requests and the remainder is streamed to the
watch subscription on a background thread, optionally paced by the recorded
timestamps.
"""

from __future__ import annotations

from collections import deque
import logging
import math
from pathlib import Path
import threading
import time
from typing import Callable, Deque, Iterable, Optional, Union

import pandas as pd

from ..errors import PositionSourceError, PositionUnavailableError
from ..models import Fix
from .base import (
    ErrorCallback,
    FixCallback,
    PositionOptions,
    SubscriptionHandle,
)

_LOGGER = logging.getLogger(__name__)

ReplayItem = Union[Fix, PositionSourceError]

__all__ = ["ReplayPositionSource", "load_fixes"]

_COLUMN_ALIASES = {
    "latitude": ("latitude", "lat"),
    "longitude": ("longitude", "lon", "lng"),
    "accuracy": ("accuracy_m", "accuracy", "accuracy_meters"),
    "speed": ("speed_mps", "speed"),
    "timestamp": ("timestamp_ms", "timestamp", "time"),
}


class ReplayPositionSource:
    """Serve a recorded sequence of fixes (and source errors) in order."""

    def __init__(
        self,
        items: Iterable[ReplayItem],
        *,
        realtime: bool = False,
        speedup: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if speedup <= 0:
            raise ValueError("speedup must be greater than zero")
        self._items: Deque[ReplayItem] = deque(items)
        self._realtime = realtime
        self._speedup = speedup
        self._sleep = sleep
        self._lock = threading.Lock()
        self._handle: Optional[SubscriptionHandle] = None
        self._thread: Optional[threading.Thread] = None
        self._stop = threading.Event()
        self._done = threading.Event()

    @property
    def remaining(self) -> int:
        with self._lock:
            return len(self._items)

    def get_current_fix(self, options: PositionOptions) -> Fix:
        item = self._pop()
        if item is None:
            raise PositionUnavailableError("Replay log exhausted")
        if isinstance(item, PositionSourceError):
            raise item
        _LOGGER.debug(
            "Replay one-shot fix ts=%s (timeout_ms=%s max_age_ms=%s)",
            item.timestamp_ms,
            options.timeout_ms,
            options.max_age_ms,
        )
        return item

    def subscribe(
        self,
        on_fix: FixCallback,
        on_error: ErrorCallback,
        options: PositionOptions,
    ) -> SubscriptionHandle:
        with self._lock:
            if self._handle is not None:
                raise RuntimeError("Replay source supports a single subscription")
            handle = SubscriptionHandle.next()
            self._handle = handle
            self._stop.clear()
            self._done.clear()
            self._thread = threading.Thread(
                target=self._run,
                args=(on_fix, on_error),
                name=f"replay-source-{handle.id}",
                daemon=True,
            )
        _LOGGER.info(
            "Replay subscription %s started (%d items, realtime=%s, max_age_ms=%s)",
            handle.id,
            self.remaining,
            self._realtime,
            options.max_age_ms,
        )
        self._thread.start()
        return handle

    def unsubscribe(self, handle: SubscriptionHandle) -> None:
        with self._lock:
            if self._handle != handle:
                return
            self._handle = None
            thread = self._thread
            self._thread = None
        self._stop.set()
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=5.0)
        _LOGGER.info("Replay subscription %s closed", handle.id)

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the subscription has delivered every item."""

        return self._done.wait(timeout)

    def _pop(self) -> Optional[ReplayItem]:
        with self._lock:
            if not self._items:
                return None
            return self._items.popleft()

    def _run(self, on_fix: FixCallback, on_error: ErrorCallback) -> None:
        previous_ts: Optional[int] = None
        try:
            while not self._stop.is_set():
                item = self._pop()
                if item is None:
                    break
                if isinstance(item, PositionSourceError):
                    self._deliver(on_error, item)
                    continue
                if self._realtime and previous_ts is not None:
                    gap_s = max(0, item.timestamp_ms - previous_ts) / 1000.0
                    if gap_s > 0 and self._stop.wait(gap_s / self._speedup):
                        break
                previous_ts = item.timestamp_ms
                self._deliver(on_fix, item)
        finally:
            self._done.set()

    def _deliver(self, callback: Callable, item: ReplayItem) -> None:
        try:
            callback(item)
        except Exception as exc:  # pragma: no cover - defensive logging
            _LOGGER.error(
                "Replay subscriber raised while handling %s: %s",
                type(item).__name__,
                exc,
                exc_info=True,
            )


def _resolve_column(frame: pd.DataFrame, key: str, required: bool) -> Optional[str]:
    lowered = {str(col).strip().lower(): col for col in frame.columns}
    for alias in _COLUMN_ALIASES[key]:
        if alias in lowered:
            return lowered[alias]
    if required:
        raise ValueError(f"Fix log is missing a {key} column")
    return None


def _finite(values: dict, column: str, timestamp_ms: int) -> float:
    raw = values[column]
    value = float(raw) if raw is not None else math.nan
    if not math.isfinite(value):
        raise ValueError(
            f"Fix log row at timestamp {timestamp_ms} has no usable {column} value"
        )
    return value


def _timestamps_ms(series: pd.Series) -> pd.Series:
    if pd.api.types.is_numeric_dtype(series):
        return series.astype("int64")
    parsed = pd.to_datetime(series, utc=True)
    epoch = pd.Timestamp(0, tz="UTC")
    return ((parsed - epoch) // pd.Timedelta(milliseconds=1)).astype("int64")


def load_fixes(path: str | Path) -> list[Fix]:
    """Read a recorded fix log (CSV or JSON records) into :class:`Fix` objects.

    Args:
        path: ``.csv`` or ``.json`` file. Columns may use ``lat``/``lon``/``lng``
            aliases; timestamps may be epoch milliseconds or ISO-8601 strings.
            A missing speed column or empty cell means the speed is unknown.

    Returns:
        Fixes sorted by timestamp.

    Raises:
        ValueError: A required column is absent, or a row has a blank or
            non-finite latitude, longitude or accuracy.
    """

    file_path = Path(path)
    if file_path.suffix.lower() == ".json":
        frame = pd.read_json(file_path, orient="records", convert_dates=False)
    else:
        frame = pd.read_csv(file_path)
    if frame.empty:
        return []

    lat_col = _resolve_column(frame, "latitude", required=True)
    lon_col = _resolve_column(frame, "longitude", required=True)
    acc_col = _resolve_column(frame, "accuracy", required=True)
    ts_col = _resolve_column(frame, "timestamp", required=True)
    speed_col = _resolve_column(frame, "speed", required=False)

    frame = frame.assign(resolved_ts_ms=_timestamps_ms(frame[ts_col])).sort_values(
        "resolved_ts_ms", kind="stable"
    )
    fixes: list[Fix] = []
    for values in frame.to_dict(orient="records"):
        speed: Optional[float] = None
        if speed_col is not None:
            raw_speed = values[speed_col]
            if raw_speed is not None and not math.isnan(float(raw_speed)):
                speed = float(raw_speed)
        timestamp_ms = int(values["resolved_ts_ms"])
        fixes.append(
            Fix(
                latitude=_finite(values, lat_col, timestamp_ms),
                longitude=_finite(values, lon_col, timestamp_ms),
                accuracy_m=_finite(values, acc_col, timestamp_ms),
                speed_mps=speed,
                timestamp_ms=timestamp_ms,
            )
        )
    _LOGGER.info("Loaded %d fixes from %s", len(fixes), file_path)
    return fixes
