"""
Activity normalization.

Maps a raw Strava activity onto StravaActivity columns:
- numeric metrics default to 0, physiological/power fields stay None,
  flags default to False
- run dynamics are filled from the deriver when Strava has none
- calories are estimated when Strava reports none (or a non-positive value)
"""

from datetime import datetime, timezone
from typing import Any, Optional

from stravhat.features.users import UserProfileSnapshot
from ..schemas import StravaActivityPayload
from .calories import CalorieInput, estimate_calories, is_finite_positive, round2
from .run_dynamics import (
    RunDynamics,
    RunDynamicsDeriver,
    RunDynamicsInput,
    estimate_run_dynamics,
)


def _to_utc_naive(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _wall_clock(value: datetime) -> datetime:
    # start_date_local is local wall time even though Strava suffixes it with Z
    return value.replace(tzinfo=None)


def _positive_or_none(value: Optional[float]) -> Optional[float]:
    return round2(value) if is_finite_positive(value) else None


class ActivityNormalizer:
    """
    Raw Strava activity -> StravaActivity column dict.

    Usage:
        normalizer = ActivityNormalizer()
        row = normalizer.normalize(user_id, raw_activity, profile)
    """

    def __init__(self, run_dynamics_deriver: RunDynamicsDeriver = estimate_run_dynamics):
        self.derive_run_dynamics = run_dynamics_deriver

    def normalize(
        self,
        user_id: str,
        raw: dict | StravaActivityPayload,
        profile: Optional[UserProfileSnapshot] = None,
    ) -> dict[str, Any]:
        activity = (
            raw if isinstance(raw, StravaActivityPayload)
            else StravaActivityPayload.model_validate(raw)
        )
        profile = profile or UserProfileSnapshot()
        sport_type = activity.sport_type or activity.type

        row: dict[str, Any] = {
            "user_id": user_id,
            "strava_activity_id": str(activity.id),
            "name": activity.name,
            "type": activity.type,
            "sport_type": sport_type,
            "start_date": _to_utc_naive(activity.start_date),
            "start_date_local": _wall_clock(activity.start_date_local),
            "timezone": activity.timezone,
            "distance": activity.distance or 0.0,
            "moving_time": activity.moving_time or 0,
            "elapsed_time": activity.elapsed_time or 0,
            "total_elevation_gain": activity.total_elevation_gain or 0.0,
            "average_speed": activity.average_speed or 0.0,
            "max_speed": activity.max_speed or 0.0,
            "average_heartrate": activity.average_heartrate,
            "max_heartrate": activity.max_heartrate,
            "average_watts": activity.average_watts,
            "max_watts": activity.max_watts,
            "weighted_average_watts": activity.weighted_average_watts,
            "kilojoules": activity.kilojoules,
            "calories": activity.calories,
            "average_cadence": activity.average_cadence,
            "suffer_score": activity.suffer_score,
            "trainer": bool(activity.trainer),
            "commute": bool(activity.commute),
            "manual": bool(activity.manual),
            "has_heartrate": bool(activity.has_heartrate),
        }

        row.update(self._run_dynamics(activity, sport_type, row["average_speed"]))

        if not is_finite_positive(row["calories"]):
            row["calories"] = estimate_calories(
                CalorieInput(
                    type=activity.type,
                    sport_type=sport_type,
                    moving_time=row["moving_time"],
                    average_speed=row["average_speed"],
                    average_heartrate=row["average_heartrate"],
                    average_watts=row["average_watts"],
                    kilojoules=row["kilojoules"],
                    calories=row["calories"],
                ),
                weight_kg=profile.weight_kg,
                hr_max=profile.hr_max,
            )

        return row

    def _run_dynamics(
        self,
        activity: StravaActivityPayload,
        sport_type: str,
        average_speed: float,
    ) -> dict[str, Optional[float]]:
        """Reported positive values win; the deriver fills the gaps."""
        reported = RunDynamics(
            stride_length=_positive_or_none(activity.stride_length),
            ground_contact_time=_positive_or_none(activity.ground_contact_time),
            vertical_oscillation=_positive_or_none(activity.vertical_oscillation),
        )

        if None in (
            reported.stride_length,
            reported.ground_contact_time,
            reported.vertical_oscillation,
        ):
            derived = self.derive_run_dynamics(RunDynamicsInput(
                type=activity.type,
                sport_type=sport_type,
                average_speed=average_speed,
                average_cadence=activity.average_cadence,
            )) or RunDynamics()
        else:
            derived = RunDynamics()

        return {
            "stride_length": reported.stride_length
            if reported.stride_length is not None else derived.stride_length,
            "ground_contact_time": reported.ground_contact_time
            if reported.ground_contact_time is not None else derived.ground_contact_time,
            "vertical_oscillation": reported.vertical_oscillation
            if reported.vertical_oscillation is not None else derived.vertical_oscillation,
        }
