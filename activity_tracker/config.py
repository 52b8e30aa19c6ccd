"""Central configuration for the activity tracker.

All values are constants imported by the rest of the package. Each one can be
overridden through an environment variable of the same name (optionally via a
local `.env`). The per-activity filter thresholds are assembled into a single
table by :func:`activity_tracker.activity_types.build_thresholds_table`.
"""

from __future__ import annotations

import importlib
import os


def _env_float(key: str, default: float) -> float:
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _env_int(key: str, default: int) -> int:
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _env_bool(key: str, default: bool) -> bool:
    value = os.getenv(key)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return default


# Load .env variables when python-dotenv is available.
_load_dotenv = None
try:
    _dotenv_mod = importlib.import_module("dotenv")
    _load_dotenv = getattr(_dotenv_mod, "load_dotenv", None)
except Exception:
    _load_dotenv = None

if callable(_load_dotenv):
    # Load .env from the current directory or any parent folder.
    _load_dotenv()


# ---------------------------------------------------------------------------
# Stabilization
# ---------------------------------------------------------------------------
# Number of one-shot position requests made before settling for the last fix.
STABILIZER_MAX_ATTEMPTS = _env_int("STABILIZER_MAX_ATTEMPTS", 10)

# Delay between stabilization polls (milliseconds).
STABILIZER_POLL_INTERVAL_MS = _env_int("STABILIZER_POLL_INTERVAL_MS", 1000)

# Only fixes reporting an accuracy below this radius count as candidates.
STABILIZER_ACCURACY_GATE_M = _env_float("STABILIZER_ACCURACY_GATE_M", 20.0)

# Consecutive candidates must land within this radius of each other.
STABILIZER_STABILITY_RADIUS_M = _env_float("STABILIZER_STABILITY_RADIUS_M", 5.0)

# Length of the run of close candidates that marks the fix as stable.
STABILIZER_REQUIRED_STABLE_READINGS = _env_int(
    "STABILIZER_REQUIRED_STABLE_READINGS", 3
)

# Per-request timeout handed to the position source (milliseconds).
POSITION_REQUEST_TIMEOUT_MS = _env_int("POSITION_REQUEST_TIMEOUT_MS", 10000)


# ---------------------------------------------------------------------------
# Steady-state tracking
# ---------------------------------------------------------------------------
# Staleness tolerated for fixes delivered by the watch subscription. The
# stabilizer always asks for fresh fixes (max age zero).
TRACKING_MAX_AGE_MS = _env_int("TRACKING_MAX_AGE_MS", 2000)

# Ask the source for its high-accuracy mode (GPS rather than network fixes).
POSITION_HIGH_ACCURACY = _env_bool("POSITION_HIGH_ACCURACY", True)

# A reported speed below this value means the device says it is not moving.
SPEED_EPSILON_MPS = _env_float("SPEED_EPSILON_MPS", 0.1)

# Moving-average window applied to accepted points ahead of distance maths.
SMOOTHING_WINDOW_SIZE = _env_int("SMOOTHING_WINDOW_SIZE", 3)

# Segments at or below this length do not count toward the total distance.
DISTANCE_NOISE_FLOOR_M = _env_float("DISTANCE_NOISE_FLOOR_M", 1.0)

# Seconds between elapsed-time ticks.
TICKER_INTERVAL_SECONDS = _env_float("TICKER_INTERVAL_SECONDS", 1.0)


# ---------------------------------------------------------------------------
# Early-session sanity monitor
# ---------------------------------------------------------------------------
SANITY_JUMP_CEILING_M = _env_float("SANITY_JUMP_CEILING_M", 20.0)
SANITY_EARLY_WINDOW_SECONDS = _env_float("SANITY_EARLY_WINDOW_SECONDS", 30.0)


# ---------------------------------------------------------------------------
# Per-activity filter thresholds
# ---------------------------------------------------------------------------
# Reported speeds above this limit are rejected (DRIVE has no limit).
WALK_MAX_SPEED_MPS = _env_float("WALK_MAX_SPEED_MPS", 3.0)
JOG_MAX_SPEED_MPS = _env_float("JOG_MAX_SPEED_MPS", 7.0)

# Minimum distance from the last accepted point for a fix to be recorded.
WALK_MIN_SEGMENT_M = _env_float("WALK_MIN_SEGMENT_M", 3.0)
JOG_MIN_SEGMENT_M = _env_float("JOG_MIN_SEGMENT_M", 4.0)
DRIVE_MIN_SEGMENT_M = _env_float("DRIVE_MIN_SEGMENT_M", 10.0)

# Jumps larger than this are rejected while the trajectory is still short.
WALK_INITIAL_JUMP_LIMIT_M = _env_float("WALK_INITIAL_JUMP_LIMIT_M", 30.0)
JOG_INITIAL_JUMP_LIMIT_M = _env_float("JOG_INITIAL_JUMP_LIMIT_M", 40.0)
DRIVE_INITIAL_JUMP_LIMIT_M = _env_float("DRIVE_INITIAL_JUMP_LIMIT_M", 150.0)

# Number of recorded points below which the initial-jump gate applies.
INITIAL_JUMP_POINT_COUNT = _env_int("INITIAL_JUMP_POINT_COUNT", 3)

# Fixes reporting a worse accuracy than this are always rejected.
MAX_ACCURACY_M = _env_float("MAX_ACCURACY_M", 20.0)

# Reported and estimated speeds both below this count as standing still.
WALK_STATIONARY_SPEED_MPS = _env_float("WALK_STATIONARY_SPEED_MPS", 0.3)
JOG_STATIONARY_SPEED_MPS = _env_float("JOG_STATIONARY_SPEED_MPS", 0.3)
DRIVE_STATIONARY_SPEED_MPS = _env_float("DRIVE_STATIONARY_SPEED_MPS", 0.5)

# Above this estimated speed the minimum segment widens to FAST_MIN_SEGMENT_M.
FAST_MOTION_SPEED_MPS = _env_float("FAST_MOTION_SPEED_MPS", 15.0)
FAST_MIN_SEGMENT_M = _env_float("FAST_MIN_SEGMENT_M", 50.0)


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------
# Directory (absolute or relative) used by the JSON session store.
SESSION_STORE_DIR = os.getenv("SESSION_STORE_DIR", "tracked_sessions")

# REST table endpoint (PostgREST style, e.g. a Supabase project URL).
SESSION_REST_URL = os.getenv("SESSION_REST_URL", "")
SESSION_REST_API_KEY = os.getenv("SESSION_REST_API_KEY", "")
SESSION_REST_TABLE = os.getenv("SESSION_REST_TABLE", "workouts")

# HTTP session pool sizes and request timeout (seconds).
HTTP_POOL_CONNECTIONS = 4
HTTP_POOL_MAXSIZE = 4
REQUEST_TIMEOUT = _env_int("REQUEST_TIMEOUT", 15)
