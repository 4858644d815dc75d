from __future__ import annotations

import asyncio
from datetime import timedelta

import pytest

from geoguard.cache import LocationCache, MemoryStorage
from geoguard.config import GovernorConfig
from geoguard.governor import CallGovernor, GovernorState
from geoguard.models import PositionFix
from geoguard.tracking import DebouncedLocationWriter, MapRefreshGate, PositionTracker, is_same_place


def test_dead_zone() -> None:
    assert is_same_place((3.1390, 101.6869), (3.13895, 101.68695)) is True
    assert is_same_place((3.1390, 101.6869), (3.1395, 101.6869)) is False
    assert is_same_place((3.1390, 101.6869), (3.1390, 101.6875)) is False


@pytest.mark.asyncio
async def test_debounce_persists_only_last_fix_after_quiet_period(clock) -> None:
    storage = MemoryStorage()
    cache = LocationCache(storage=storage, clock=clock)
    writer = DebouncedLocationWriter(cache, delay=0.2)

    for offset in range(3):
        writer.submit(PositionFix(latitude=3.0 + offset, longitude=101.0, accuracy=10))
        await asyncio.sleep(0.02)

    assert cache.get_last_known_position() is None
    assert writer.pending is not None

    await asyncio.sleep(0.4)

    last = cache.get_last_known_position()
    assert last is not None
    assert last.latitude == 5.0
    assert writer.pending is None
    assert storage.get(cache.config.storage_key) is not None


@pytest.mark.asyncio
async def test_debounce_uses_fix_timestamp(clock) -> None:
    cache = LocationCache(clock=clock)
    writer = DebouncedLocationWriter(cache, delay=10)
    captured = clock() - timedelta(seconds=3)

    writer.submit(PositionFix(latitude=1.0, longitude=2.0, timestamp=captured))
    location = writer.flush()

    assert location is not None
    assert location.captured_at == captured
    assert location.accuracy_meters == 100


@pytest.mark.asyncio
async def test_cancel_drops_pending_fix(clock) -> None:
    cache = LocationCache(clock=clock)
    writer = DebouncedLocationWriter(cache, delay=0.01)
    writer.submit(PositionFix(latitude=1.0, longitude=2.0))

    writer.cancel()
    await asyncio.sleep(0.05)

    assert cache.get_last_known_position() is None


@pytest.mark.asyncio
async def test_tracker_ignores_duplicate_fixes(clock) -> None:
    cache = LocationCache(clock=clock)
    tracker = PositionTracker(DebouncedLocationWriter(cache, delay=10))

    assert tracker.on_fix(PositionFix(latitude=1.0, longitude=2.0, accuracy=100)) is True
    assert tracker.on_fix(PositionFix(latitude=1.0, longitude=2.0)) is False
    assert tracker.on_fix(PositionFix(latitude=1.0, longitude=2.0, accuracy=20)) is True
    assert tracker.on_fix(PositionFix()) is False

    tracker.stop()
    assert cache.get_last_known_position() is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "fix",
    [
        PositionFix(latitude=95.0, longitude=1.0),
        PositionFix(latitude=1.0, longitude=-200.0),
        PositionFix(latitude=1.0, longitude=2.0, accuracy=-5),
    ],
)
async def test_submit_rejects_fix_the_cache_would_refuse(clock, fix: PositionFix) -> None:
    cache = LocationCache(clock=clock)
    writer = DebouncedLocationWriter(cache, delay=0.01)

    with pytest.raises(ValueError):
        writer.submit(fix)

    assert writer.pending is None
    await asyncio.sleep(0.05)
    assert cache.get_last_known_position() is None


@pytest.mark.asyncio
async def test_invalid_fix_does_not_replace_pending_fix(clock) -> None:
    cache = LocationCache(clock=clock)
    writer = DebouncedLocationWriter(cache, delay=0.05)
    writer.submit(PositionFix(latitude=1.0, longitude=2.0, accuracy=10))

    with pytest.raises(ValueError):
        writer.submit(PositionFix(latitude=91.0, longitude=2.0))
    await asyncio.sleep(0.2)

    stored = cache.get_last_known_position()
    assert stored is not None
    assert stored.latitude == 1.0


@pytest.mark.asyncio
async def test_tracker_drops_out_of_range_fix(clock) -> None:
    cache = LocationCache(clock=clock)
    tracker = PositionTracker(DebouncedLocationWriter(cache, delay=10))
    good = PositionFix(latitude=1.0, longitude=2.0, accuracy=20)

    assert tracker.on_fix(good) is True
    assert tracker.on_fix(PositionFix(latitude=1.0, longitude=181.0)) is False
    assert tracker.latest is good

    tracker.stop()


def test_refresh_gate_skips_dead_zone_and_records_eagerly(clock) -> None:
    governor = CallGovernor(GovernorState(clock=clock), GovernorConfig(max_per_minute=5))
    gate = MapRefreshGate(governor)

    assert gate.should_refresh(3.1390, 101.6869) is True
    assert gate.try_refresh(3.1390, 101.6869) is True
    assert governor.status().calls_per_minute == 1

    assert gate.should_refresh(3.13895, 101.68695) is False
    assert gate.try_refresh(3.13895, 101.68695) is False
    assert governor.status().calls_per_minute == 1

    assert gate.try_refresh(3.1395, 101.6869) is True
    assert gate.last_position == (3.1395, 101.6869)


def test_refresh_gate_respects_quota(clock) -> None:
    governor = CallGovernor(GovernorState(clock=clock), GovernorConfig(max_per_minute=1))
    gate = MapRefreshGate(governor)

    assert gate.try_refresh(1.0, 1.0) is True
    assert gate.try_refresh(2.0, 2.0) is False
    assert gate.last_position == (1.0, 1.0)
    assert gate.should_refresh(3.0, 3.0) is False
