"""Data models for geoguard."""

from geoguard.models.governor import BlockReason, CallRecord, GovernorStatus
from geoguard.models.location import CachedLocation, CacheStatus, LocationSource, PositionFix

__all__ = [
    "BlockReason",
    "CacheStatus",
    "CachedLocation",
    "CallRecord",
    "GovernorStatus",
    "LocationSource",
    "PositionFix",
]
