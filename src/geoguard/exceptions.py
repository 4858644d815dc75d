"""Custom exception hierarchy for geoguard.

Running out of call quota is *not* an error: the governor reports it
through boolean returns and status snapshots only.
"""

from __future__ import annotations


class GeoGuardError(Exception):
    """Base exception for all geoguard errors."""


class GeoGuardConfigError(GeoGuardError):
    """Invalid configuration (e.g. non-positive call ceilings)."""


class LocationUnavailableError(GeoGuardError):
    """A live position could not be acquired.

    Providers raise this for denied permission, missing hardware,
    transport failures and unparseable responses.  ``LocationCache``
    always recovers from it by falling back to the cache or the
    default location.
    """

    def __init__(self, message: str, *, provider: str = "") -> None:
        self.provider = provider
        super().__init__(message)


class StorageError(GeoGuardError):
    """The durable key-value store could not be read or written."""

    def __init__(self, message: str, *, key: str = "") -> None:
        self.key = key
        super().__init__(message)
