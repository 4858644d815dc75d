"""geoguard - client-side API call governor and stale-tolerant location cache."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("geoguard")
except PackageNotFoundError:
    __version__ = "0+local"
from geoguard.cache import (
    FileStorage,
    HttpLocationProvider,
    KeyValueStorage,
    LocationCache,
    LocationProvider,
    MemoryStorage,
    StaticLocationProvider,
)
from geoguard.config import DEFAULT_PROFILE, MAPS_PROFILE, CacheConfig, GovernorConfig
from geoguard.exceptions import GeoGuardConfigError, GeoGuardError, LocationUnavailableError, StorageError
from geoguard.governor import CallGovernor, CallLogSweeper, CooldownLimiter, CooldownStatus, GovernorState
from geoguard.models import (
    BlockReason,
    CachedLocation,
    CacheStatus,
    CallRecord,
    GovernorStatus,
    LocationSource,
    PositionFix,
)
from geoguard.runtime import GeoGuard
from geoguard.tracking import DebouncedLocationWriter, MapRefreshGate, PositionTracker, is_same_place

__all__ = [
    "__version__",
    "BlockReason",
    "CacheConfig",
    "CacheStatus",
    "CachedLocation",
    "CallGovernor",
    "CallLogSweeper",
    "CallRecord",
    "CooldownLimiter",
    "CooldownStatus",
    "DEFAULT_PROFILE",
    "DebouncedLocationWriter",
    "FileStorage",
    "GeoGuard",
    "GeoGuardConfigError",
    "GeoGuardError",
    "GovernorConfig",
    "GovernorState",
    "GovernorStatus",
    "HttpLocationProvider",
    "KeyValueStorage",
    "LocationCache",
    "LocationProvider",
    "LocationSource",
    "LocationUnavailableError",
    "MAPS_PROFILE",
    "MapRefreshGate",
    "MemoryStorage",
    "PositionFix",
    "PositionTracker",
    "StaticLocationProvider",
    "StorageError",
    "is_same_place",
]
