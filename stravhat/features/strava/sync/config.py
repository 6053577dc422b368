"""
Strava sync configuration constants.

Contains all configuration values for import behavior.
"""


class SyncConfig:
    """Configuration for sync behavior."""

    # Activities per API call (Strava maximum)
    ACTIVITIES_PER_PAGE = 200

    # ==========================================================================
    # Rate limit backoff (HTTP 429)
    # ==========================================================================
    # wait = max(MIN_WAIT, retry_after + 2^attempt * BACKOFF_BASE)
    MAX_RATE_LIMIT_RETRIES = 6
    RATE_LIMIT_MIN_WAIT_SECONDS = 1.0
    RATE_LIMIT_BACKOFF_BASE_SECONDS = 0.5

    # Refresh tokens expiring within this many seconds
    TOKEN_EXPIRY_MARGIN_SECONDS = 60

    # ==========================================================================
    # Calorie estimation
    # ==========================================================================
    DEFAULT_WEIGHT_KG = 70.0
    # Relative HR (avg / max) treated as MET-neutral
    REFERENCE_RELATIVE_HR = 0.72
    RELATIVE_HR_BOUNDS = (0.5, 1.05)
    HR_MET_SCALE_BOUNDS = (0.8, 1.25)
