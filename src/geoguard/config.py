"""Configuration for geoguard."""

from __future__ import annotations

import dataclasses
import os
from datetime import timedelta
from typing import Any

from geoguard._constants import (
    CACHE_KEY,
    CACHE_TTL_S,
    DEBOUNCE_DELAY_S,
    LIVE_TIMEOUT_S,
    MAXIMUM_AGE_S,
)
from geoguard.exceptions import GeoGuardConfigError


def _require_positive_int(name: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise GeoGuardConfigError(f"{name} must be an integer, got {value!r}")
    if value <= 0:
        raise GeoGuardConfigError(f"{name} must be positive, got {value}")


def _require_positive_float(name: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise GeoGuardConfigError(f"{name} must be a number, got {value!r}")
    if value <= 0:
        raise GeoGuardConfigError(f"{name} must be positive, got {value}")


def _env_int(name: str, raw: str) -> int:
    try:
        return int(raw)
    except ValueError as exc:
        raise GeoGuardConfigError(f"{name} must be an integer, got {raw!r}") from exc


def _env_float(name: str, raw: str) -> float:
    try:
        return float(raw)
    except ValueError as exc:
        raise GeoGuardConfigError(f"{name} must be a number, got {raw!r}") from exc


@dataclasses.dataclass(frozen=True)
class GovernorConfig:
    """Call ceilings for one metered resource.

    Ceilings are inclusive: once a rolling window holds ``max_per_*``
    calls, the next permission check trips the block.

    Parameters
    ----------
    max_per_minute : int
        Calls allowed in any rolling 60 second window.
    max_per_hour : int
        Calls allowed in any rolling hour.
    max_per_day : int
        Calls allowed in any rolling 24 hours.
    """

    max_per_minute: int = 10
    max_per_hour: int = 100
    max_per_day: int = 1000

    def __post_init__(self) -> None:
        _require_positive_int("max_per_minute", self.max_per_minute)
        _require_positive_int("max_per_hour", self.max_per_hour)
        _require_positive_int("max_per_day", self.max_per_day)

    @classmethod
    def from_env(cls, **overrides: Any) -> GovernorConfig:
        """Create ceilings from ``GEOGUARD_MAX_PER_*`` environment variables.

        Explicit keyword arguments override environment values.
        """
        env = os.environ
        _ENV_CONFIG_MAP = {
            "GEOGUARD_MAX_PER_MINUTE": "max_per_minute",
            "GEOGUARD_MAX_PER_HOUR": "max_per_hour",
            "GEOGUARD_MAX_PER_DAY": "max_per_day",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _env_int(env_key, val)

        config_kwargs.update(overrides)
        return cls(**config_kwargs)


#: Generic metered resource.
DEFAULT_PROFILE = GovernorConfig(max_per_minute=10, max_per_hour=100, max_per_day=1000)

#: Conservative profile used in front of map tile providers.
MAPS_PROFILE = GovernorConfig(max_per_minute=5, max_per_hour=50, max_per_day=500)


@dataclasses.dataclass(frozen=True)
class CacheConfig:
    """Location cache tuning.

    Parameters
    ----------
    ttl : float
        Seconds a stored location stays usable.  Defaults to 5 minutes.
    live_timeout : float
        Seconds to wait for a live fix before falling back.
    maximum_age : float
        Seconds a provider may reuse its own previous fix instead of
        acquiring a new one.
    debounce_delay : float
        Quiet period in seconds before a tracked fix is persisted.
    storage_key : str
        Key of the location blob in the durable store.
    """

    ttl: float = CACHE_TTL_S
    live_timeout: float = LIVE_TIMEOUT_S
    maximum_age: float = MAXIMUM_AGE_S
    debounce_delay: float = DEBOUNCE_DELAY_S
    storage_key: str = CACHE_KEY

    def __post_init__(self) -> None:
        _require_positive_float("ttl", self.ttl)
        _require_positive_float("live_timeout", self.live_timeout)
        _require_positive_float("maximum_age", self.maximum_age)
        _require_positive_float("debounce_delay", self.debounce_delay)
        if not self.storage_key.strip():
            raise GeoGuardConfigError("storage_key must be non-empty")

    @property
    def ttl_delta(self) -> timedelta:
        return timedelta(seconds=self.ttl)

    @classmethod
    def from_env(cls, **overrides: Any) -> CacheConfig:
        """Create cache configuration from ``GEOGUARD_*`` environment variables.

        Explicit keyword arguments override environment values.
        """
        env = os.environ
        _ENV_FLOAT_MAP = {
            "GEOGUARD_CACHE_TTL": "ttl",
            "GEOGUARD_LIVE_TIMEOUT": "live_timeout",
            "GEOGUARD_MAXIMUM_AGE": "maximum_age",
            "GEOGUARD_DEBOUNCE_DELAY": "debounce_delay",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_FLOAT_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _env_float(env_key, val)

        key_env = env.get("GEOGUARD_STORAGE_KEY")
        if key_env is not None and "storage_key" not in overrides:
            config_kwargs["storage_key"] = key_env

        config_kwargs.update(overrides)
        return cls(**config_kwargs)
