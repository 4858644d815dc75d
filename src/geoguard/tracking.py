"""Helpers for consumers of a continuous position stream.

* :func:`is_same_place` is the movement dead zone.
* :class:`DebouncedLocationWriter` persists only the newest fix once the
  stream has been quiet for the debounce delay (trailing debounce).
* :class:`PositionTracker` wires a watch stream to the writer.
* :class:`MapRefreshGate` decides whether a metered map refresh may run.
"""

from __future__ import annotations

import asyncio
import logging

from geoguard._constants import DEAD_ZONE_DEGREES, DEFAULT_TAG, FALLBACK_ACCURACY_M
from geoguard.cache.cache import LocationCache
from geoguard.governor.governor import CallGovernor
from geoguard.models.location import CachedLocation, PositionFix

_logger = logging.getLogger(__name__)


def is_same_place(
    first: tuple[float, float],
    second: tuple[float, float],
    *,
    threshold: float = DEAD_ZONE_DEGREES,
) -> bool:
    """True when both latitude and longitude differ by less than *threshold* degrees."""
    return abs(first[0] - second[0]) < threshold and abs(first[1] - second[1]) < threshold


class DebouncedLocationWriter:
    """Trailing debounce in front of :meth:`LocationCache.save_to_cache`.

    Every :meth:`submit` replaces the pending fix and restarts the timer,
    so a burst of fixes results in one durable write of the last one.
    Must be used from a running event loop.
    """

    def __init__(self, cache: LocationCache, *, delay: float | None = None) -> None:
        self._cache = cache
        self._delay = cache.config.debounce_delay if delay is None else delay
        if self._delay <= 0:
            raise ValueError(f"delay must be positive, got {self._delay}")
        self._pending: PositionFix | None = None
        self._handle: asyncio.TimerHandle | None = None

    @property
    def pending(self) -> PositionFix | None:
        return self._pending

    def submit(self, fix: PositionFix) -> None:
        if not fix.has_coordinates:
            raise ValueError("fix must carry latitude and longitude")
        if not -90.0 <= fix.latitude <= 90.0 or not -180.0 <= fix.longitude <= 180.0:  # type: ignore[operator]
            raise ValueError(f"fix coordinates out of range: {fix.latitude}, {fix.longitude}")
        if fix.accuracy is not None and fix.accuracy < 0:
            raise ValueError(f"fix accuracy must be non-negative, got {fix.accuracy}")
        loop = asyncio.get_running_loop()
        self._pending = fix
        if self._handle is not None:
            self._handle.cancel()
        self._handle = loop.call_later(self._delay, self.flush)

    def flush(self) -> CachedLocation | None:
        """Write the pending fix now, if any."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        fix, self._pending = self._pending, None
        if fix is None:
            return None
        location = self._cache.save_to_cache(
            fix.latitude,  # type: ignore[arg-type]
            fix.longitude,  # type: ignore[arg-type]
            fix.accuracy or FALLBACK_ACCURACY_M,
            captured_at=fix.timestamp,
        )
        _logger.debug("Debounced position saved to cache")
        return location

    def cancel(self) -> None:
        """Drop the pending fix without writing it."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._pending = None


class PositionTracker:
    """Feeds a watch stream into the cache through a debounced writer.

    Fixes identical to the previous one (same coordinates and accuracy)
    are ignored entirely and do not restart the debounce timer.
    """

    def __init__(self, writer: DebouncedLocationWriter) -> None:
        self._writer = writer
        self._latest: PositionFix | None = None

    @property
    def latest(self) -> PositionFix | None:
        return self._latest

    def on_fix(self, fix: PositionFix) -> bool:
        """Handle one fix; return ``True`` if it was a new position."""
        if not fix.has_coordinates:
            return False
        previous = self._latest
        if previous is not None and (
            previous.latitude == fix.latitude
            and previous.longitude == fix.longitude
            and (previous.accuracy or FALLBACK_ACCURACY_M) == (fix.accuracy or FALLBACK_ACCURACY_M)
        ):
            return False
        try:
            self._writer.submit(fix)
        except ValueError as exc:
            _logger.warning("Dropping invalid fix: %s", exc)
            return False
        self._latest = fix
        return True

    def stop(self) -> None:
        """Stop tracking; a not-yet-written fix is discarded."""
        self._writer.cancel()


class MapRefreshGate:
    """Governs metered map refreshes for a moving position.

    A refresh is allowed when the governor grants a call and the position
    left the dead zone around the last refreshed position.  The call is
    recorded before the caller issues the metered request.
    """

    def __init__(
        self,
        governor: CallGovernor,
        *,
        tag: str = DEFAULT_TAG,
        threshold: float = DEAD_ZONE_DEGREES,
    ) -> None:
        self._governor = governor
        self._tag = tag
        self._threshold = threshold
        self._last_position: tuple[float, float] | None = None

    @property
    def last_position(self) -> tuple[float, float] | None:
        return self._last_position

    def _moved(self, position: tuple[float, float]) -> bool:
        if self._last_position is None:
            return True
        return not is_same_place(self._last_position, position, threshold=self._threshold)

    def should_refresh(self, latitude: float, longitude: float) -> bool:
        """Non-recording check used to decide whether to attempt a refresh."""
        if not self._governor.may_call(self._tag):
            return False
        return self._moved((latitude, longitude))

    def try_refresh(self, latitude: float, longitude: float) -> bool:
        """Claim a call for a refresh at this position.

        Returns ``False`` without recording when the position is inside
        the dead zone or the quota is exhausted.
        """
        position = (latitude, longitude)
        if not self._moved(position):
            return False
        if not self._governor.record_call(self._tag):
            _logger.warning("Rate limit exceeded for %s", self._tag)
            return False
        self._last_position = position
        return True
