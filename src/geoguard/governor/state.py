"""Shared, lock-protected call governor state.

One ``GovernorState`` exists per running client.  Every ``CallGovernor``
handle, whatever its ceilings, reads and mutates this same log, because
the real-world quota is a single shared fact.
"""

from __future__ import annotations

import logging
import threading
from collections import Counter, deque
from collections.abc import Callable
from datetime import UTC, datetime

from geoguard.config import GovernorConfig
from geoguard.governor.policy import (
    BLOCK_DURATIONS,
    block_expired,
    count_windows,
    prune_log,
    seconds_until,
    tripped_ceiling,
)
from geoguard.models.governor import BlockReason, CallRecord, GovernorStatus

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class GovernorState:
    """Rolling call log plus the blocking-window state machine.

    All public methods take the same lock, so check-and-append is atomic:
    two callers racing for the last free slot can never both succeed.
    Every public method first heals an elapsed block.
    """

    def __init__(self, *, clock: Callable[[], datetime] = _utcnow) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._log: deque[CallRecord] = deque()
        self._blocked = False
        self._block_until: datetime | None = None
        self._block_reason = BlockReason.NONE

    @property
    def clock(self) -> Callable[[], datetime]:
        return self._clock

    # ------------------------------------------------------------------
    # Lock-held helpers
    # ------------------------------------------------------------------

    def _heal(self, now: datetime) -> None:
        if self._blocked and block_expired(now, self._block_until):
            _logger.info("Call block lifted (%s)", self._block_reason.label)
            self._clear_block()

    def _clear_block(self) -> None:
        self._blocked = False
        self._block_until = None
        self._block_reason = BlockReason.NONE

    def _permit(self, config: GovernorConfig, now: datetime) -> bool:
        self._heal(now)
        if self._blocked:
            return False

        prune_log(self._log, now)
        reason = tripped_ceiling(count_windows(self._log, now), config)
        if reason is BlockReason.NONE:
            return True

        self._blocked = True
        self._block_reason = reason
        self._block_until = now + BLOCK_DURATIONS[reason]
        _logger.info("Call block entered: %s until %s", reason.label, self._block_until.isoformat())
        return False

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def check(self, config: GovernorConfig) -> bool:
        """Return whether a call is permitted now; may enter the blocked state."""
        with self._lock:
            return self._permit(config, self._clock())

    def check_and_record(self, config: GovernorConfig, tag: str) -> bool:
        """Atomically check permission and append a record when granted."""
        with self._lock:
            now = self._clock()
            if not self._permit(config, now):
                return False
            self._log.append(CallRecord(timestamp=now, tag=tag))
            _logger.debug("Call recorded for %s (%d in log)", tag, len(self._log))
            return True

    def snapshot(self, config: GovernorConfig) -> GovernorStatus:
        """Build a status snapshot without entering the blocked state."""
        with self._lock:
            now = self._clock()
            self._heal(now)
            prune_log(self._log, now)
            counts = count_windows(self._log, now)

            if self._blocked:
                return GovernorStatus(
                    can_call=False,
                    remaining_calls_this_minute=0,
                    blocked=True,
                    block_reason=self._block_reason,
                    seconds_until_unblock=seconds_until(now, self._block_until),
                    calls_per_minute=counts.per_minute,
                    calls_per_hour=counts.per_hour,
                    calls_per_day=counts.per_day,
                )

            remaining = max(0, config.max_per_minute - counts.per_minute)
            return GovernorStatus(
                can_call=tripped_ceiling(counts, config) is BlockReason.NONE,
                remaining_calls_this_minute=remaining,
                blocked=False,
                calls_per_minute=counts.per_minute,
                calls_per_hour=counts.per_hour,
                calls_per_day=counts.per_day,
            )

    def sweep(self) -> int:
        """Prune expired log entries and clear an elapsed block.

        Returns the number of pruned entries.
        """
        with self._lock:
            now = self._clock()
            self._heal(now)
            removed = prune_log(self._log, now)
        if removed:
            _logger.debug("Sweep pruned %d call records", removed)
        return removed

    def reset(self) -> None:
        """Clear the call log and any block unconditionally."""
        with self._lock:
            self._log.clear()
            self._clear_block()

    def records(self) -> list[CallRecord]:
        """Copy of the call log, oldest first."""
        with self._lock:
            return list(self._log)

    def calls_by_tag(self) -> dict[str, int]:
        """Retained calls per tag.  Diagnostic only; tags share one quota."""
        with self._lock:
            prune_log(self._log, self._clock())
            return dict(Counter(record.tag for record in self._log))
