from __future__ import annotations

from geoguard._redact import redact_for_log


def test_redact_for_log_coarsens_coordinates() -> None:
    payload = {
        "latitude": 3.139012,
        "longitude": 101.686955,
        "accuracy": 12.345678,
        "nested": [{"lat": 1.23456, "lng": -7.654321}],
    }

    redacted = redact_for_log(payload)

    assert redacted["latitude"] == 3.139
    assert redacted["longitude"] == 101.687
    assert redacted["accuracy"] == 12.345678
    assert redacted["nested"][0] == {"lat": 1.235, "lng": -7.654}
