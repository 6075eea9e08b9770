# livestats/analytics/intervals.py
"""Fixed-width time buckets over a session's span (epoch milliseconds)."""

from bisect import bisect_right
from datetime import datetime, timezone, tzinfo


def build_intervals(start: int, end: int, width_ms: int) -> list[int]:
    """
    Returns bucket starts start, start+w, start+2w, ... while < end.
    A partial last interval is included since it starts before end.
    """
    if width_ms <= 0:
        raise ValueError(f"Bucket width must be positive, got {width_ms}ms.")
    return list(range(start, end, width_ms))


def locate_bucket(timestamp: int, buckets: list[int]) -> int:
    """
    Returns the greatest bucket start <= timestamp.
    Timestamps before the first bucket clamp to it; anything past the
    last bucket start belongs to the last bucket.
    """
    if not buckets:
        raise ValueError("Cannot locate a timestamp in an empty bucket list.")
    idx = bisect_right(buckets, timestamp) - 1
    return buckets[max(idx, 0)]


def format_label(timestamp: int, tz: tzinfo | None = None) -> str:
    """Short time-of-day label, e.g. '20:30'. Local time when tz is None."""
    moment = datetime.fromtimestamp(timestamp / 1000, tz=timezone.utc)
    return moment.astimezone(tz).strftime("%H:%M")
