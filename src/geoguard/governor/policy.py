"""Rolling-window quota policy.

Pure functions only: no locking, no clock.  ``GovernorState`` calls
these while holding its lock.
"""

from __future__ import annotations

import math
from collections import deque
from collections.abc import Iterable
from datetime import datetime, timedelta
from typing import NamedTuple

from geoguard._constants import CALL_LOG_RETENTION, DAY_WINDOW, HOUR_WINDOW, MINUTE_WINDOW
from geoguard.config import GovernorConfig
from geoguard.models.governor import BlockReason, CallRecord

#: Block length applied when each window's ceiling trips.
BLOCK_DURATIONS: dict[BlockReason, timedelta] = {
    BlockReason.MINUTE_LIMIT: MINUTE_WINDOW,
    BlockReason.HOUR_LIMIT: HOUR_WINDOW,
    BlockReason.DAY_LIMIT: DAY_WINDOW,
}


class WindowCounts(NamedTuple):
    per_minute: int
    per_hour: int
    per_day: int


def count_windows(log: Iterable[CallRecord], now: datetime) -> WindowCounts:
    """Count calls with ``now - timestamp`` strictly inside each window."""
    minute = hour = day = 0
    for record in log:
        age = now - record.timestamp
        if age < DAY_WINDOW:
            day += 1
            if age < HOUR_WINDOW:
                hour += 1
                if age < MINUTE_WINDOW:
                    minute += 1
    return WindowCounts(minute, hour, day)


def tripped_ceiling(counts: WindowCounts, config: GovernorConfig) -> BlockReason:
    """Return the first ceiling that is met or exceeded (minute, hour, day order)."""
    if counts.per_minute >= config.max_per_minute:
        return BlockReason.MINUTE_LIMIT
    if counts.per_hour >= config.max_per_hour:
        return BlockReason.HOUR_LIMIT
    if counts.per_day >= config.max_per_day:
        return BlockReason.DAY_LIMIT
    return BlockReason.NONE


def block_expired(now: datetime, block_until: datetime | None) -> bool:
    return block_until is None or now >= block_until


def prune_log(log: deque[CallRecord], now: datetime) -> int:
    """Drop entries older than the retention window; return how many went.

    The log is chronological, so pruning stops at the first young entry.
    """
    removed = 0
    while log and now - log[0].timestamp >= CALL_LOG_RETENTION:
        log.popleft()
        removed += 1
    return removed


def seconds_until(now: datetime, until: datetime | None) -> int:
    """Whole seconds from *now* to *until*, rounded up; ``0`` once passed."""
    if until is None or now >= until:
        return 0
    return math.ceil((until - now).total_seconds())
