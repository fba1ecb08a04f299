"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

QR_TOKEN_MAX_AGE_MINUTES = 10
QR_TOKEN_FUTURE_SKEW_MINUTES = 5
DEFAULT_PASSING_THRESHOLD = 60.0
MIN_YEAR_LEVEL = 1
MAX_YEAR_LEVEL = 4
MIN_TEACHING_HOURS = 1
MAX_TEACHING_HOURS = 20
FETCH_MAX_WORKERS = 6
