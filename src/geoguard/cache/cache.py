"""Stale-tolerant location cache.

Holds a single best-known location and resolves "where are we?" through
a fixed chain: live provider, then a non-expired cache entry, then the
built-in default.  The chain never fails.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Callable
from datetime import UTC, datetime

from pydantic import ValidationError

from geoguard._constants import DEFAULT_ACCURACY_M, DEFAULT_LATITUDE, DEFAULT_LONGITUDE, FALLBACK_ACCURACY_M
from geoguard._redact import redact_for_log
from geoguard.cache.providers import LocationProvider
from geoguard.cache.storage import KeyValueStorage, MemoryStorage
from geoguard.config import CacheConfig
from geoguard.exceptions import LocationUnavailableError, StorageError
from geoguard.models.location import CachedLocation, CacheStatus, LocationSource, PositionFix

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class LocationCache:
    """Single best-known location with TTL, persistence and fallback.

    The in-memory entry is loaded lazily from *storage* on first access.
    Reads and writes of the entry happen under one lock; the live
    acquisition in :meth:`get_current_location` runs without it, so a
    slow provider never stalls status reads.

    Storage problems are logged and swallowed: an unreadable blob counts
    as an empty cache and a failed write leaves the in-memory entry in
    place.
    """

    def __init__(
        self,
        *,
        storage: KeyValueStorage | None = None,
        provider: LocationProvider | None = None,
        config: CacheConfig | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._storage: KeyValueStorage = storage if storage is not None else MemoryStorage()
        self._provider = provider
        self._config = config or CacheConfig()
        self._clock = clock
        self._lock = threading.Lock()
        self._current: CachedLocation | None = None
        self._loaded = False

    @property
    def config(self) -> CacheConfig:
        return self._config

    @property
    def clock(self) -> Callable[[], datetime]:
        return self._clock

    # ------------------------------------------------------------------
    # Durable storage (lock held by callers)
    # ------------------------------------------------------------------

    def _ensure_loaded(self) -> None:
        if self._loaded:
            return
        self._current = self._load()
        self._loaded = True

    def _load(self) -> CachedLocation | None:
        key = self._config.storage_key
        try:
            blob = self._storage.get(key)
        except StorageError as exc:
            _logger.warning("Could not read location cache: %s", exc)
            return None
        if not blob:
            return None
        try:
            location = CachedLocation.from_blob(blob)
        except (ValidationError, ValueError) as exc:
            _logger.warning("Ignoring unreadable location cache blob under %r: %s", key, exc)
            return None
        _logger.debug("Loaded cached location %s", redact_for_log(location))
        return location

    def _persist(self, location: CachedLocation) -> None:
        try:
            self._storage.set(self._config.storage_key, location.to_blob())
        except StorageError as exc:
            _logger.warning("Could not persist location cache: %s", exc)

    def _erase(self) -> None:
        try:
            self._storage.delete(self._config.storage_key)
        except StorageError as exc:
            _logger.warning("Could not remove persisted location cache: %s", exc)

    def _valid_entry(self, now: datetime) -> CachedLocation | None:
        """Return the current entry if inside the TTL, evicting it from memory otherwise.

        The durable blob is left for the next save or clear to replace; an
        expired blob is rejected by the same TTL check after a reload.
        """
        self._ensure_loaded()
        current = self._current
        if current is None:
            return None
        if current.age(now) < self._config.ttl_delta:
            return current
        _logger.debug("Evicting cached location aged %dms", current.age_millis(now))
        self._current = None
        return None

    def _replace(self, location: CachedLocation) -> None:
        self._loaded = True
        self._current = location
        self._persist(location)
        _logger.debug("Location cache updated with %s", redact_for_log(location))

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def get_cache_status(self) -> CacheStatus:
        with self._lock:
            now = self._clock()
            entry = self._valid_entry(now)
        if entry is None:
            return CacheStatus(has_cache=False)
        return CacheStatus(
            has_cache=True,
            age_millis=entry.age_millis(now),
            source=entry.source,
            location=entry,
        )

    async def get_current_location(self) -> CachedLocation:
        """Best-effort position: live fix, then cache, then the default.

        Bounded by ``config.live_timeout``; never raises for acquisition
        or storage problems.
        """
        live = await self._acquire_live()
        if live is not None:
            with self._lock:
                self._replace(live)
            return live

        with self._lock:
            entry = self._valid_entry(self._clock())
        if entry is not None:
            return entry.with_source(LocationSource.CACHED)

        _logger.info("No live or cached location available, using default")
        return self.default_location()

    async def _acquire_live(self) -> CachedLocation | None:
        if self._provider is None:
            return None
        try:
            fix = await asyncio.wait_for(
                self._provider.get_position(maximum_age=self._config.maximum_age),
                timeout=self._config.live_timeout,
            )
        except TimeoutError:
            _logger.warning("Live location timed out after %.1fs", self._config.live_timeout)
            return None
        except LocationUnavailableError as exc:
            _logger.warning("Failed to get live location: %s", exc)
            return None
        except Exception:
            _logger.warning("Live location provider failed", exc_info=True)
            return None
        return self._from_fix(fix)

    def _from_fix(self, fix: PositionFix) -> CachedLocation | None:
        if not fix.has_coordinates:
            _logger.warning("Live fix has no coordinates")
            return None
        try:
            return CachedLocation(
                latitude=fix.latitude,
                longitude=fix.longitude,
                accuracy_meters=fix.accuracy if fix.accuracy else FALLBACK_ACCURACY_M,
                captured_at=self._clock(),
                source=LocationSource.LIVE,
            )
        except ValidationError as exc:
            _logger.warning("Discarding out-of-range live fix: %s", exc)
            return None

    def save_to_cache(
        self,
        latitude: float,
        longitude: float,
        accuracy_meters: float,
        captured_at: datetime | None = None,
    ) -> CachedLocation:
        """Replace the stored entry with a live fix and persist it.

        Last write wins: an older *captured_at* still replaces a newer
        entry.  *captured_at* defaults to now.
        """
        location = CachedLocation(
            latitude=latitude,
            longitude=longitude,
            accuracy_meters=accuracy_meters,
            captured_at=captured_at if captured_at is not None else self._clock(),
            source=LocationSource.LIVE,
        )
        with self._lock:
            self._replace(location)
        return location

    def clear_cache(self) -> None:
        with self._lock:
            self._loaded = True
            self._current = None
            self._erase()
        _logger.info("Location cache cleared")

    def get_last_known_position(self) -> CachedLocation | None:
        """Raw stored entry, without TTL filtering or acquisition."""
        with self._lock:
            self._ensure_loaded()
            return self._current

    def default_location(self) -> CachedLocation:
        return CachedLocation(
            latitude=DEFAULT_LATITUDE,
            longitude=DEFAULT_LONGITUDE,
            accuracy_meters=DEFAULT_ACCURACY_M,
            captured_at=self._clock(),
            source=LocationSource.DEFAULT,
        )
