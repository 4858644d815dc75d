from __future__ import annotations

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from geoguard.models import BlockReason, CachedLocation, CallRecord, LocationSource, PositionFix


def test_cached_location_blob_format() -> None:
    location = CachedLocation(
        latitude=3.139,
        longitude=101.6869,
        accuracy_meters=25.0,
        captured_at=datetime(2026, 1, 1, tzinfo=UTC),
        source=LocationSource.LIVE,
    )

    blob = location.to_blob()

    assert blob == (
        '{"latitude":3.139,"longitude":101.6869,"accuracy":25.0,"timestamp":1767225600000,"source":"live"}'
    )
    assert CachedLocation.from_blob(blob) == location


def test_cached_location_accepts_epoch_seconds() -> None:
    location = CachedLocation.from_blob(
        '{"latitude": 1, "longitude": 2, "accuracy": 3, "timestamp": 1767225600, "source": "cached"}'
    )
    assert location.captured_at == datetime(2026, 1, 1, tzinfo=UTC)
    assert location.source is LocationSource.CACHED


def test_cached_location_rejects_unknown_source() -> None:
    with pytest.raises(ValidationError):
        CachedLocation.from_blob('{"latitude": 1, "longitude": 2, "accuracy": 3, "timestamp": 1, "source": "gsm"}')


def test_naive_datetimes_are_treated_as_utc() -> None:
    record = CallRecord(timestamp=datetime(2026, 1, 1), tag=" maps ")
    assert record.timestamp.tzinfo is UTC
    assert record.tag == "maps"


def test_call_record_requires_tag() -> None:
    with pytest.raises(ValidationError):
        CallRecord(timestamp=datetime(2026, 1, 1, tzinfo=UTC), tag="  ")


def test_position_fix_aliases_and_nesting() -> None:
    fix = PositionFix.model_validate({"location": {"lat": "3.1", "lng": 101.2}, "accuracy": "--"})

    assert (fix.latitude, fix.longitude) == (3.1, 101.2)
    assert fix.accuracy is None
    assert fix.has_coordinates is True
    assert "location" in fix.raw


def test_block_reason_labels() -> None:
    assert BlockReason.MINUTE_LIMIT.label == "Minute limit exceeded"
    assert BlockReason.HOUR_LIMIT.label == "Hour limit exceeded"
    assert BlockReason.NONE.label == ""
