"""Shared validators for geoguard models."""

from __future__ import annotations

import math
from datetime import UTC, datetime
from typing import Annotated, Any

from pydantic import AfterValidator, BeforeValidator

# Threshold to distinguish seconds from milliseconds.
_MS_THRESHOLD = 1_000_000_000_000


def safe_float(value: Any) -> float | None:
    """Convert *value* to float, returning ``None`` for blanks, junk and NaN."""
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result):
        return None
    return result


def parse_epoch_timestamp(value: Any) -> Any:
    """Convert an epoch timestamp (seconds **or** milliseconds) to a UTC datetime.

    Anything that is not a plain number is passed through for pydantic
    to validate (datetimes, ISO strings).
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return value
    try:
        ts = float(value)
        if ts >= _MS_THRESHOLD:
            ts /= 1000.0
        return datetime.fromtimestamp(ts, tz=UTC)
    except (OverflowError, OSError, ValueError) as exc:
        raise ValueError(f"timestamp out of range: {value!r}") from exc


def ensure_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def to_epoch_ms(value: datetime) -> int:
    return int(round(value.timestamp() * 1000))


UtcTimestamp = Annotated[datetime, BeforeValidator(parse_epoch_timestamp), AfterValidator(ensure_utc)]
"""Annotated type that accepts epoch ints (seconds or ms) and always yields aware UTC datetimes."""
