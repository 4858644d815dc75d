"""Single-window limiter with a cooldown period.

A lighter alternative to the rolling-window governor for resources with
one simple quota.  The counter resets once more than ``window`` has
passed since the last call; reaching ``max_calls`` blocks for
``cooldown`` (defaults to ``window``).
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from pydantic import BaseModel, ConfigDict

from geoguard.exceptions import GeoGuardConfigError
from geoguard.governor.policy import block_expired, seconds_until

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class CooldownStatus(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    can_call: bool
    remaining_calls: int
    seconds_until_reset: int
    blocked: bool


class CooldownLimiter:
    def __init__(
        self,
        max_calls: int,
        window: timedelta,
        *,
        cooldown: timedelta | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if isinstance(max_calls, bool) or not isinstance(max_calls, int) or max_calls <= 0:
            raise GeoGuardConfigError(f"max_calls must be a positive integer, got {max_calls!r}")
        if window <= timedelta(0):
            raise GeoGuardConfigError(f"window must be positive, got {window}")
        if cooldown is not None and cooldown <= timedelta(0):
            raise GeoGuardConfigError(f"cooldown must be positive, got {cooldown}")
        self._max_calls = max_calls
        self._window = window
        self._cooldown = cooldown or window
        self._clock = clock
        self._lock = threading.Lock()
        self._calls = 0
        self._last_call: datetime | None = None
        self._block_until: datetime | None = None

    def _in_window(self, now: datetime) -> bool:
        return self._last_call is not None and now - self._last_call <= self._window

    def _permit(self, now: datetime) -> bool:
        if self._block_until is not None:
            if not block_expired(now, self._block_until):
                return False
            self._block_until = None
            self._calls = 0

        if not self._in_window(now):
            self._calls = 0

        if self._calls >= self._max_calls:
            self._block_until = now + self._cooldown
            _logger.info("Cooldown started until %s", self._block_until.isoformat())
            return False
        return True

    def may_call(self) -> bool:
        with self._lock:
            return self._permit(self._clock())

    def record_call(self) -> bool:
        with self._lock:
            now = self._clock()
            if not self._permit(now):
                return False
            self._calls += 1
            self._last_call = now
            return True

    def status(self) -> CooldownStatus:
        with self._lock:
            now = self._clock()
            if self._block_until is not None and not block_expired(now, self._block_until):
                return CooldownStatus(
                    can_call=False,
                    remaining_calls=0,
                    seconds_until_reset=seconds_until(now, self._block_until),
                    blocked=True,
                )
            calls = self._calls if self._in_window(now) else 0
            remaining = max(0, self._max_calls - calls)
            return CooldownStatus(
                can_call=remaining > 0,
                remaining_calls=remaining,
                seconds_until_reset=0,
                blocked=False,
            )

    def reset(self) -> None:
        with self._lock:
            self._calls = 0
            self._last_call = None
            self._block_until = None
