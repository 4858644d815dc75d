"""Helpers for privacy-safe debug logging.

Exact coordinates identify where a user is.  This module coarsens
position fields before they are emitted in DEBUG logs.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

_COORDINATE_KEYS: frozenset[str] = frozenset(
    {
        "latitude",
        "longitude",
        "lat",
        "lon",
        "lng",
    }
)

#: Three decimals is roughly 110 m, enough to debug without pinpointing a home.
_COORDINATE_DECIMALS = 3


def coarsen(value: float, *, decimals: int = _COORDINATE_DECIMALS) -> float:
    """Round a coordinate to *decimals* places."""
    return round(float(value), decimals)


def redact_for_log(value: Any, *, decimals: int = _COORDINATE_DECIMALS, _depth: int = 0) -> Any:
    """Return a copy of *value* with coordinate fields coarsened."""
    if _depth > 20:
        return "<max-depth>"

    if value is None or isinstance(value, (str, bool)):
        return value

    if isinstance(value, (int, float)):
        return value

    if hasattr(value, "model_dump"):
        return redact_for_log(value.model_dump(mode="json"), decimals=decimals, _depth=_depth + 1)

    if isinstance(value, Mapping):
        redacted: dict[str, Any] = {}
        for k, v in value.items():
            key = str(k)
            if key.lower() in _COORDINATE_KEYS and isinstance(v, (int, float)) and not isinstance(v, bool):
                redacted[key] = coarsen(v, decimals=decimals)
            else:
                redacted[key] = redact_for_log(v, decimals=decimals, _depth=_depth + 1)
        return redacted

    if isinstance(value, Sequence) and not isinstance(value, (bytes, bytearray)):
        return [redact_for_log(v, decimals=decimals, _depth=_depth + 1) for v in value]

    return repr(value)
