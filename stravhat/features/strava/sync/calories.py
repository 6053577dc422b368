"""
Energy expenditure estimation.

Used when Strava reports no calories. Sources in order of preference:
1. Reported calories (kept, rounded)
2. Mechanical work: 1 kJ ~= 1 kcal metabolic
3. Average power: kcal = watts * moving_time / 1000
4. MET tables by activity type and speed, optionally scaled by relative
   heart rate, times body mass and moving hours
"""

import math
from dataclasses import dataclass
from typing import Optional

from stravhat.shared.constants import (
    RIDE_KEYWORDS,
    WALK_KEYWORDS,
    combined_type,
)
from .config import SyncConfig


@dataclass
class CalorieInput:
    """Activity fields the estimate depends on."""

    type: str
    sport_type: str
    moving_time: float
    average_speed: float
    average_heartrate: Optional[float] = None
    average_watts: Optional[float] = None
    kilojoules: Optional[float] = None
    calories: Optional[float] = None


# (upper speed bound km/h, MET); last entry applies above every bound
RUN_MET_TABLE: list[tuple[float, float]] = [
    (8.0, 8.3),
    (9.7, 9.8),
    (11.3, 11.0),
    (12.1, 11.8),
    (12.9, 12.3),
    (13.8, 12.8),
    (14.5, 14.5),
    (16.1, 16.0),
    (math.inf, 19.0),
]

WALK_MET_TABLE: list[tuple[float, float]] = [
    (3.2, 2.5),
    (4.8, 3.5),
    (5.6, 4.3),
    (6.4, 5.0),
    (7.2, 7.0),
    (math.inf, 8.0),
]

RIDE_MET_TABLE: list[tuple[float, float]] = [
    (16.0, 4.0),
    (19.0, 6.8),
    (22.5, 8.0),
    (25.7, 10.0),
    (30.6, 12.0),
    (35.4, 15.8),
    (math.inf, 16.8),
]

SWIM_MET = 8.5
ROW_MET = 7.0
SKI_MET = 7.5
DEFAULT_MET = 6.0


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def round2(value: float) -> float:
    # Halves round up, not to even
    return math.floor(value * 100 + 0.5) / 100


def is_finite_positive(value: Optional[float]) -> bool:
    return value is not None and math.isfinite(value) and value > 0


def _lookup(table: list[tuple[float, float]], speed_kmh: float) -> float:
    for upper, met in table:
        if speed_kmh < upper:
            return met
    return table[-1][1]


def estimate_met(activity_type: str, sport_type: str, average_speed: float) -> float:
    """MET for the activity's type bucket at its average speed (m/s)."""
    combined = combined_type(activity_type, sport_type)
    speed_kmh = average_speed * 3.6 if average_speed > 0 else 0.0

    if "run" in combined:
        return _lookup(RUN_MET_TABLE, speed_kmh)
    if any(keyword in combined for keyword in WALK_KEYWORDS):
        return _lookup(WALK_MET_TABLE, speed_kmh)
    if any(keyword in combined for keyword in RIDE_KEYWORDS):
        return _lookup(RIDE_MET_TABLE, speed_kmh)
    if "swim" in combined:
        return SWIM_MET
    if "row" in combined:
        return ROW_MET
    if "ski" in combined:
        return SKI_MET
    return DEFAULT_MET


def estimate_calories(
    activity: CalorieInput,
    weight_kg: Optional[float] = None,
    hr_max: Optional[float] = None,
) -> Optional[float]:
    """
    Estimate kcal for an activity.

    Returns None when moving_time <= 0 and nothing was reported.
    """
    if is_finite_positive(activity.calories):
        return round2(activity.calories)

    if activity.moving_time <= 0:
        return None

    if is_finite_positive(activity.kilojoules):
        return round2(activity.kilojoules)

    if is_finite_positive(activity.average_watts):
        return round2(activity.average_watts * activity.moving_time / 1000)

    weight = weight_kg if is_finite_positive(weight_kg) else SyncConfig.DEFAULT_WEIGHT_KG
    met = estimate_met(activity.type, activity.sport_type, activity.average_speed)

    if is_finite_positive(hr_max) and is_finite_positive(activity.average_heartrate):
        relative_hr = clamp(
            activity.average_heartrate / hr_max, *SyncConfig.RELATIVE_HR_BOUNDS
        )
        met *= clamp(
            relative_hr / SyncConfig.REFERENCE_RELATIVE_HR,
            *SyncConfig.HR_MET_SCALE_BOUNDS,
        )

    hours = activity.moving_time / 3600
    return round2(met * weight * hours)
