"""
Activity type vocabulary.

Strava reports both a legacy `type` and a finer `sport_type`. Matching is
done on lowercase keywords over both fields so new sport types fall into
the right bucket without code changes.
"""

# Keywords marking running-gait activities (run dynamics apply)
RUN_ACTIVITY_KEYWORDS: tuple[str, ...] = ("run", "trail", "jog", "treadmill")

# Keyword buckets for MET lookup, checked in this order
WALK_KEYWORDS: tuple[str, ...] = ("walk", "hike")
RIDE_KEYWORDS: tuple[str, ...] = ("ride", "cycle", "bike")


def combined_type(activity_type: str | None, sport_type: str | None) -> str:
    """Lowercased "<sport_type> <type>" for keyword matching."""
    return f"{sport_type or ''} {activity_type or ''}".lower()


def is_run_like(activity_type: str | None, sport_type: str | None) -> bool:
    combined = combined_type(activity_type, sport_type)
    return any(keyword in combined for keyword in RUN_ACTIVITY_KEYWORDS)
