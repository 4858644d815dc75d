#!/usr/bin/env python3
"""Run the location fallback chain once and print governor/cache status.

Useful for checking a deployment's storage path and geolocation endpoint:

    python scripts/probe_location.py --storage ~/.cache/geoguard
    python scripts/probe_location.py --offline --clear
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

import aiohttp  # noqa: E402

from geoguard import (  # noqa: E402
    MAPS_PROFILE,
    CacheConfig,
    FileStorage,
    GeoGuard,
    HttpLocationProvider,
    MemoryStorage,
)
from geoguard.cache.providers import DEFAULT_GEOLOCATION_URL  # noqa: E402


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--storage", type=Path, default=None, help="Directory for the durable cache (default: memory)")
    parser.add_argument("--url", default=DEFAULT_GEOLOCATION_URL, help="Geolocation endpoint")
    parser.add_argument("--offline", action="store_true", help="Skip the live provider")
    parser.add_argument("--clear", action="store_true", help="Clear the cache before probing")
    parser.add_argument("--timeout", type=float, default=None, help="Live acquisition timeout in seconds")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


async def _probe(args: argparse.Namespace) -> dict[str, Any]:
    storage = FileStorage(args.storage) if args.storage is not None else MemoryStorage()
    overrides: dict[str, Any] = {}
    if args.timeout is not None:
        overrides["live_timeout"] = args.timeout
    cache_config = CacheConfig.from_env(**overrides)

    async with aiohttp.ClientSession() as http:
        provider = None if args.offline else HttpLocationProvider(http, url=args.url)
        async with GeoGuard(storage=storage, provider=provider, cache_config=cache_config) as guard:
            cache = guard.location_cache
            if args.clear:
                cache.clear_cache()
            maps = guard.governor(MAPS_PROFILE)
            permitted = maps.record_call("geolocation")
            location = await cache.get_current_location() if permitted else None
            return {
                "permitted": permitted,
                "location": location.model_dump(mode="json") if location is not None else None,
                "skipped": None if permitted else maps.status().block_reason.label or "quota exhausted",
                "cache": cache.get_cache_status().model_dump(mode="json"),
                "governor": maps.status().model_dump(mode="json"),
            }


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)
    report = asyncio.run(_probe(args))
    print(json.dumps(report, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
