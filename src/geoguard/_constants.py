"""Internal constants shared across the library."""

from datetime import timedelta

# ------------------------------------------------------------------
# Call governor windows
# ------------------------------------------------------------------

MINUTE_WINDOW = timedelta(seconds=60)
HOUR_WINDOW = timedelta(hours=1)
DAY_WINDOW = timedelta(hours=24)

#: Entries older than this are never kept in the call log.
CALL_LOG_RETENTION = DAY_WINDOW

#: Seconds between background sweeps of the call log.
SWEEP_INTERVAL_S: float = 60.0

DEFAULT_TAG = "maps"

# ------------------------------------------------------------------
# Location cache
# ------------------------------------------------------------------

CACHE_KEY = "gps_location_cache"
CACHE_TTL_S: float = 5 * 60
LIVE_TIMEOUT_S: float = 10.0
MAXIMUM_AGE_S: float = 30.0
DEBOUNCE_DELAY_S: float = 5.0

#: Accuracy assumed when a live fix does not report one.
FALLBACK_ACCURACY_M: float = 100.0

# Rough conversion: 0.0001 degrees ≈ 11 meters.
DEAD_ZONE_DEGREES: float = 0.0001

# City-level fallback (Kuala Lumpur, Malaysia).
DEFAULT_LATITUDE: float = 3.1390
DEFAULT_LONGITUDE: float = 101.6869
DEFAULT_ACCURACY_M: float = 1000.0
