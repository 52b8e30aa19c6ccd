"""Acquire a stable anchor fix before a session starts recording."""

from __future__ import annotations

import logging
import math
import time
from typing import Callable, Optional

from .. import config
from ..errors import (
    NoStableFixError,
    PermissionDeniedError,
    PositionSourceError,
)
from ..geo import distance
from ..models import Fix
from ..sources.base import PositionOptions, PositionSource, stabilization_options

_LOGGER = logging.getLogger(__name__)

__all__ = ["stabilize"]


def stabilize(
    source: PositionSource,
    max_attempts: int = config.STABILIZER_MAX_ATTEMPTS,
    poll_interval_ms: int = config.STABILIZER_POLL_INTERVAL_MS,
    accuracy_gate_m: float = config.STABILIZER_ACCURACY_GATE_M,
    stability_radius_m: float = config.STABILIZER_STABILITY_RADIUS_M,
    required_stable_readings: int = config.STABILIZER_REQUIRED_STABLE_READINGS,
    *,
    options: Optional[PositionOptions] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> Fix:
    """Poll ``source`` until consecutive accurate fixes agree on a position.

    A fix is a candidate only when its accuracy is below ``accuracy_gate_m``.
    Each candidate within ``stability_radius_m`` of the previous candidate
    extends the current run; any other candidate starts a new run of one. The
    first candidate completing a run of ``required_stable_readings`` is
    returned.

    Args:
        source: Position source answering one-shot requests.
        max_attempts: Upper bound on position requests.
        poll_interval_ms: Pause between requests.
        accuracy_gate_m: Candidate accuracy ceiling.
        stability_radius_m: Maximum hop between consecutive candidates.
        required_stable_readings: Run length that marks the fix as stable.
        options: Request options; defaults to fresh high-accuracy fixes.
        sleep: Injected for tests.

    Returns:
        The stable fix, or the last fix with a finite accuracy when attempts
        run out.

    Raises:
        PermissionDeniedError: The source refused access; never retried.
        NoStableFixError: Attempts ran out without a single usable fix.
    """

    if max_attempts < 1:
        raise ValueError("max_attempts must be >= 1")
    if required_stable_readings < 1:
        raise ValueError("required_stable_readings must be >= 1")
    request_options = options or stabilization_options()

    last_fix: Optional[Fix] = None
    last_candidate: Optional[Fix] = None
    last_error: Optional[PositionSourceError] = None
    run_length = 0

    for attempt in range(1, max_attempts + 1):
        if attempt > 1:
            sleep(poll_interval_ms / 1000.0)
        try:
            fix = source.get_current_fix(request_options)
        except PermissionDeniedError:
            _LOGGER.warning("Stabilization aborted: location permission denied")
            raise
        except PositionSourceError as exc:
            last_error = exc
            _LOGGER.info(
                "Stabilization attempt %d/%d failed: %s", attempt, max_attempts, exc
            )
            continue

        if math.isfinite(fix.accuracy_m):
            last_fix = fix
        if not fix.accuracy_m < accuracy_gate_m:
            _LOGGER.debug(
                "Stabilization attempt %d/%d: accuracy %.1fm above gate %.1fm",
                attempt,
                max_attempts,
                fix.accuracy_m,
                accuracy_gate_m,
            )
            continue

        if (
            last_candidate is not None
            and distance(last_candidate.to_point(), fix.to_point())
            <= stability_radius_m
        ):
            run_length += 1
        else:
            run_length = 1
        last_candidate = fix

        if run_length >= required_stable_readings:
            _LOGGER.info(
                "Stable fix acquired after %d attempts (accuracy %.1fm)",
                attempt,
                fix.accuracy_m,
            )
            return fix

    if last_fix is None:
        raise NoStableFixError(
            f"No usable position obtained after {max_attempts} attempts"
        ) from last_error

    _LOGGER.warning(
        "No stable fix after %d attempts; using last fix (accuracy %.1fm)",
        max_attempts,
        last_fix.accuracy_m,
    )
    return last_fix
