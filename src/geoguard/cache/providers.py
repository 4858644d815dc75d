"""Live positioning sources.

A provider either returns a :class:`PositionFix` or raises
:class:`LocationUnavailableError`.  The overall timeout is enforced by
``LocationCache``, not by providers.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Protocol

import aiohttp
from pydantic import ValidationError

from geoguard.exceptions import LocationUnavailableError
from geoguard.models.location import PositionFix

_logger = logging.getLogger(__name__)

#: Free IP geolocation endpoint returning ``{"lat": ..., "lon": ...}``.
DEFAULT_GEOLOCATION_URL = "http://ip-api.com/json/"


def _utcnow() -> datetime:
    return datetime.now(UTC)


class LocationProvider(Protocol):
    async def get_position(self, *, maximum_age: float) -> PositionFix:
        """Return a live fix, reusing one up to *maximum_age* seconds old."""
        ...


class StaticLocationProvider:
    """Serves a fixed position, or always fails when constructed with ``None``.

    Useful for stationary deployments and for tests.
    """

    def __init__(self, fix: PositionFix | None = None) -> None:
        self._fix = fix

    async def get_position(self, *, maximum_age: float) -> PositionFix:
        if self._fix is None:
            raise LocationUnavailableError("No static position configured", provider="static")
        return self._fix


class HttpLocationProvider:
    """Network geolocation over HTTP.

    The caller owns *session*.  A successful fix is remembered and served
    again without a round trip while it is younger than ``maximum_age``.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        *,
        url: str = DEFAULT_GEOLOCATION_URL,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._http = session
        self._url = url
        self._clock = clock
        self._last_fix: PositionFix | None = None
        self._last_fetched_at: datetime | None = None

    def _reusable(self, now: datetime, maximum_age: float) -> PositionFix | None:
        if self._last_fix is None or self._last_fetched_at is None:
            return None
        if now - self._last_fetched_at <= timedelta(seconds=maximum_age):
            return self._last_fix
        return None

    async def get_position(self, *, maximum_age: float) -> PositionFix:
        now = self._clock()
        recent = self._reusable(now, maximum_age)
        if recent is not None:
            _logger.debug("Reusing position fetched %s ago", now - self._last_fetched_at)  # type: ignore[operator]
            return recent

        _logger.debug("GET %s", self._url)
        try:
            async with self._http.get(self._url) as resp:
                body = await resp.read()
                if resp.status != 200:
                    raise LocationUnavailableError(
                        f"HTTP {resp.status} from {self._url}: {body[:200]!r}",
                        provider="http",
                    )
        except aiohttp.ClientError as exc:
            raise LocationUnavailableError(f"Request to {self._url} failed: {exc}", provider="http") from exc

        try:
            text = body.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise LocationUnavailableError(f"Response from {self._url} is not UTF-8: {exc}", provider="http") from exc

        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            raise LocationUnavailableError(f"Invalid JSON from {self._url}: {text[:200]}", provider="http") from exc

        if not isinstance(payload, dict):
            raise LocationUnavailableError(f"Unexpected payload from {self._url}", provider="http")

        try:
            fix = PositionFix.model_validate(payload)
        except ValidationError as exc:
            raise LocationUnavailableError(f"Unparseable position from {self._url}: {exc}", provider="http") from exc

        if not fix.has_coordinates:
            raise LocationUnavailableError(f"No coordinates in response from {self._url}", provider="http")

        self._last_fix = fix
        self._last_fetched_at = self._clock()
        return fix
