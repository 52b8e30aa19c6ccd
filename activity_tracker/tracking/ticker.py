"""Elapsed-time ticker running independently of the fix stream."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional, Protocol

from .. import config

_LOGGER = logging.getLogger(__name__)

__all__ = ["Ticker", "ElapsedTimeTicker"]


class Ticker(Protocol):
    def start(self) -> None: ...

    def cancel(self) -> None: ...


class ElapsedTimeTicker:
    """Call ``on_tick`` every ``interval_s`` seconds on a daemon thread."""

    def __init__(
        self,
        on_tick: Callable[[], None],
        interval_s: float = config.TICKER_INTERVAL_SECONDS,
    ) -> None:
        if interval_s <= 0:
            raise ValueError("interval_s must be greater than zero")
        self._on_tick = on_tick
        self._interval = interval_s
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    def start(self) -> None:
        with self._lock:
            if self._thread is not None:
                return
            self._stop.clear()
            self._thread = threading.Thread(
                target=self._run, name="elapsed-ticker", daemon=True
            )
            self._thread.start()

    def cancel(self) -> None:
        with self._lock:
            thread = self._thread
            self._thread = None
        self._stop.set()
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=self._interval * 2 + 1.0)

    def _run(self) -> None:
        while not self._stop.wait(self._interval):
            try:
                self._on_tick()
            except Exception as exc:  # pragma: no cover - defensive logging
                _LOGGER.error("Tick handler failed: %s", exc, exc_info=True)
