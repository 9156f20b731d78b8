"""Time sources for the rate limiter."""

from __future__ import annotations

import time


def wall_clock_ms() -> int:
    """Return UNIX time in integer milliseconds.

    Wall-clock time keeps ``reset_at`` meaningful as an epoch value in
    response headers.
    """

    return time.time_ns() // 1_000_000
