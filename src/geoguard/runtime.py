"""Process-wide context object owning the shared governor and cache state."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from geoguard._constants import DEFAULT_TAG, SWEEP_INTERVAL_S
from geoguard.cache.cache import LocationCache
from geoguard.cache.providers import LocationProvider
from geoguard.cache.storage import KeyValueStorage
from geoguard.config import DEFAULT_PROFILE, CacheConfig, GovernorConfig
from geoguard.governor.governor import CallGovernor
from geoguard.governor.state import GovernorState
from geoguard.governor.sweep import CallLogSweeper
from geoguard.tracking import DebouncedLocationWriter, MapRefreshGate, PositionTracker

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class GeoGuard:
    """Owns exactly one :class:`GovernorState` and one :class:`LocationCache`.

    Construct one per running client and hand it (or the handles it
    creates) to every call site.  Tests construct their own isolated
    instances.

    Usage::

        async with GeoGuard(storage=FileStorage(path)) as guard:
            maps = guard.governor(MAPS_PROFILE)
            if maps.record_call("maps"):
                ...
            location = await guard.location_cache.get_current_location()
    """

    def __init__(
        self,
        *,
        storage: KeyValueStorage | None = None,
        provider: LocationProvider | None = None,
        cache_config: CacheConfig | None = None,
        clock: Callable[[], datetime] = _utcnow,
        sweep_interval: float = SWEEP_INTERVAL_S,
    ) -> None:
        self._governor_state = GovernorState(clock=clock)
        self._location_cache = LocationCache(
            storage=storage,
            provider=provider,
            config=cache_config,
            clock=clock,
        )
        self._sweeper = CallLogSweeper(self._governor_state, interval=sweep_interval)
        self._trackers: list[PositionTracker] = []

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> GeoGuard:
        self._sweeper.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        for tracker in self._trackers:
            tracker.stop()
        self._trackers.clear()
        await self._sweeper.stop()

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def governor_state(self) -> GovernorState:
        return self._governor_state

    @property
    def location_cache(self) -> LocationCache:
        return self._location_cache

    @property
    def sweeper(self) -> CallLogSweeper:
        return self._sweeper

    def governor(self, config: GovernorConfig = DEFAULT_PROFILE) -> CallGovernor:
        """New handle with its own ceilings over the shared call log."""
        return CallGovernor(self._governor_state, config)

    def map_refresh_gate(self, config: GovernorConfig, *, tag: str = DEFAULT_TAG) -> MapRefreshGate:
        return MapRefreshGate(self.governor(config), tag=tag)

    def position_tracker(self, *, delay: float | None = None) -> PositionTracker:
        """Tracker persisting fixes through a debounced writer; stopped on exit."""
        tracker = PositionTracker(DebouncedLocationWriter(self._location_cache, delay=delay))
        self._trackers.append(tracker)
        return tracker
