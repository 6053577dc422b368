"""
Strava import pipeline.

Provides:
- SyncConfig: Import tuning constants
- ActivityNormalizer: Raw activity -> StravaActivity columns
- estimate_calories / estimate_run_dynamics: Derived metrics

ImportService lives in .service and must not be imported here: client
and tokens import SyncConfig from this package.
"""

from .config import SyncConfig
from .calories import CalorieInput, estimate_calories, estimate_met
from .run_dynamics import (
    RunDynamics,
    RunDynamicsDeriver,
    RunDynamicsInput,
    estimate_run_dynamics,
)
from .normalizer import ActivityNormalizer

__all__ = [
    "SyncConfig",
    "CalorieInput",
    "estimate_calories",
    "estimate_met",
    "RunDynamics",
    "RunDynamicsDeriver",
    "RunDynamicsInput",
    "estimate_run_dynamics",
    "ActivityNormalizer",
]
