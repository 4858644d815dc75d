"""Location models."""

from __future__ import annotations

import json
from datetime import datetime, timedelta
from enum import StrEnum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from geoguard.models._base import UtcTimestamp, safe_float, to_epoch_ms


class LocationSource(StrEnum):
    """Where a location handed to a caller came from."""

    LIVE = "live"
    CACHED = "cached"
    DEFAULT = "default"


class CachedLocation(BaseModel):
    """A best-known position.

    Value type: replaced wholesale on every update, never merged.
    Durable blobs use the keys ``latitude``, ``longitude``, ``accuracy``,
    ``timestamp`` (epoch milliseconds) and ``source``.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    latitude: float = Field(..., ge=-90.0, le=90.0)
    longitude: float = Field(..., ge=-180.0, le=180.0)
    accuracy_meters: float = Field(
        ...,
        ge=0.0,
        validation_alias=AliasChoices("accuracy_meters", "accuracy"),
    )
    captured_at: UtcTimestamp = Field(..., validation_alias=AliasChoices("captured_at", "timestamp"))
    source: LocationSource

    def age(self, now: datetime) -> timedelta:
        return now - self.captured_at

    def age_millis(self, now: datetime) -> int:
        return self.age(now) // timedelta(milliseconds=1)

    def with_source(self, source: LocationSource) -> CachedLocation:
        return self.model_copy(update={"source": source})

    def to_blob(self) -> str:
        """Serialize for the durable key-value store."""
        return json.dumps(
            {
                "latitude": self.latitude,
                "longitude": self.longitude,
                "accuracy": self.accuracy_meters,
                "timestamp": to_epoch_ms(self.captured_at),
                "source": self.source.value,
            },
            separators=(",", ":"),
        )

    @classmethod
    def from_blob(cls, blob: str | bytes) -> CachedLocation:
        """Parse a durable blob.

        Raises :class:`pydantic.ValidationError` for malformed input.
        """
        return cls.model_validate_json(blob)


class PositionFix(BaseModel):
    """A raw fix as reported by a positioning source.

    Numeric fields are ``None`` when absent or unparseable.  Providers
    differ in naming, so the common spellings are all accepted.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    latitude: float | None = Field(default=None, validation_alias=AliasChoices("latitude", "lat"))
    longitude: float | None = Field(
        default=None,
        validation_alias=AliasChoices("longitude", "lon", "lng"),
    )
    accuracy: float | None = Field(
        default=None,
        validation_alias=AliasChoices("accuracy", "accuracy_meters", "acc"),
    )
    timestamp: UtcTimestamp | None = Field(
        default=None,
        validation_alias=AliasChoices("timestamp", "time", "captured_at"),
    )
    raw: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _merge_nested_location(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        nested = values.get("location")
        merged = dict(values)
        if isinstance(nested, dict):
            merged.update(nested)
        merged.setdefault("raw", values)
        return merged

    @field_validator("latitude", "longitude", "accuracy", mode="before")
    @classmethod
    def _coerce_floats(cls, value: Any) -> float | None:
        return safe_float(value)

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None


class CacheStatus(BaseModel):
    """Snapshot of the location cache.

    ``has_cache`` is ``True`` only for a stored entry younger than the TTL;
    an expired entry is reported exactly like a missing one.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    has_cache: bool
    age_millis: int | None = None
    source: LocationSource | None = None
    location: CachedLocation | None = None
