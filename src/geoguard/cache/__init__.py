"""Location cache, its durable storage adapters and live providers."""

from geoguard.cache.cache import LocationCache
from geoguard.cache.providers import HttpLocationProvider, LocationProvider, StaticLocationProvider
from geoguard.cache.storage import FileStorage, KeyValueStorage, MemoryStorage

__all__ = [
    "FileStorage",
    "HttpLocationProvider",
    "KeyValueStorage",
    "LocationCache",
    "LocationProvider",
    "MemoryStorage",
    "StaticLocationProvider",
]
