"""General utility helpers shared across modules."""

from __future__ import annotations


def format_duration(seconds: float) -> str:
    """Format seconds into a zero-padded ``HH:MM:SS`` string."""

    total = max(0, int(seconds))
    hours, remainder = divmod(total, 3600)
    mins, sec = divmod(remainder, 60)
    return f"{hours:02d}:{mins:02d}:{sec:02d}"


def format_distance(meters: float) -> str:
    """Format a distance as whole metres below 1 km, else kilometres."""

    if meters < 1000:
        return f"{round(meters)} m"
    return f"{meters / 1000:.2f} km"
