"""Replay a recorded fix log through the tracking pipeline.

Usage examples:

    # Replay a walk as fast as possible and print the summary
    python -m activity_tracker fixes.csv --activity walk

    # Pace the replay by the recorded timestamps (4x faster) and keep the result
    python -m activity_tracker fixes.json --activity jog --realtime --speedup 4 \
        --store-dir tracked_sessions

    # Insert the finished session into the configured REST table
    python -m activity_tracker fixes.csv --activity drive --rest
"""

from __future__ import annotations

import argparse
from functools import partial
import logging
from typing import Optional, Sequence

from .activity_types import ActivityType, normalize_activity_type
from .errors import SaveFailedError, TrackingError
from .models import SessionRecord, TrackerEvent
from .persistence import JsonDirectoryStore, RestSessionStore, SessionStore
from .sources import ReplayPositionSource, load_fixes
from .tracking import ActivityTracker, TrackerConfig, stabilize
from .utils import format_distance, format_duration

LOGGER = logging.getLogger("activity_tracker")


def _setup_logging(verbose: bool = False) -> None:
    if not logging.getLogger().hasHandlers():
        logging.basicConfig(
            level=logging.DEBUG if verbose else logging.INFO,
            format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        )


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Replay a recorded GPS fix log through the activity tracker."
    )
    parser.add_argument("fixes", help="CSV or JSON fix log")
    parser.add_argument(
        "--activity",
        default=ActivityType.WALK.value,
        choices=[member.value.lower() for member in ActivityType],
        type=str.lower,
        help="Activity type (default: walk)",
    )
    target = parser.add_mutually_exclusive_group()
    target.add_argument("--store-dir", help="Save the session as JSON in this directory")
    target.add_argument(
        "--rest",
        action="store_true",
        help="Save the session to SESSION_REST_URL/rest/v1/SESSION_REST_TABLE",
    )
    parser.add_argument("--user-id", help="User id attached to the saved session")
    parser.add_argument(
        "--realtime",
        action="store_true",
        help="Pace delivery by the recorded timestamps",
    )
    parser.add_argument(
        "--speedup", type=float, default=1.0, help="Realtime pacing multiplier"
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def _build_store(args: argparse.Namespace) -> Optional[SessionStore]:
    if args.rest:
        return RestSessionStore()
    if args.store_dir:
        return JsonDirectoryStore(args.store_dir)
    return None


def _print_summary(
    record: Optional[SessionRecord],
    rejections: dict[str, int],
    log_span_s: float,
) -> None:
    if record is None:
        print("No session recorded.")
        return
    print(f"Session:   {record.session_id}")
    print(f"Activity:  {record.activity_type.value}")
    print(f"Duration:  {format_duration(record.elapsed_seconds)}")
    print(f"Log span:  {format_duration(log_span_s)}")
    print(f"Distance:  {format_distance(record.distance_m)}")
    print(f"Points:    {len(record.points)}")
    if rejections:
        detail = ", ".join(f"{k}={v}" for k, v in sorted(rejections.items()))
        print(f"Rejected:  {detail}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    _setup_logging(args.verbose)

    try:
        fixes = load_fixes(args.fixes)
    except (FileNotFoundError, ValueError) as exc:
        LOGGER.error("Failed to load fix log '%s': %s", args.fixes, exc)
        return 1

    rejections: dict[str, int] = {}

    def _count(event: TrackerEvent) -> None:
        if event.kind == "rejected":
            rejections[event.reason] = rejections.get(event.reason, 0) + 1

    try:
        store = _build_store(args)
    except ValueError as exc:
        LOGGER.error("Invalid session store configuration: %s", exc)
        return 1

    source = ReplayPositionSource(
        fixes, realtime=args.realtime, speedup=args.speedup
    )
    stabilizer = stabilize
    if not args.realtime:
        # Recorded polls are already spaced; no need to wait between them.
        stabilizer = partial(stabilize, sleep=lambda _seconds: None)
    tracker = ActivityTracker(
        source,
        TrackerConfig(
            store=store,
            stabilizer=stabilizer,
            user_id=args.user_id,
            on_event=_count,
        ),
    )
    activity = normalize_activity_type(args.activity)

    try:
        tracker.start(activity)
    except TrackingError as exc:
        LOGGER.error("Could not start %s session: %s", activity.value, exc)
        return 1

    exit_code = 0
    try:
        source.wait()
    finally:
        try:
            tracker.stop()
        except SaveFailedError as exc:
            LOGGER.error("Session finished but was not saved: %s", exc)
            exit_code = 1
    log_span_s = (
        (fixes[-1].timestamp_ms - fixes[0].timestamp_ms) / 1000.0 if fixes else 0.0
    )
    _print_summary(tracker.last_record, rejections, log_span_s)
    return exit_code
