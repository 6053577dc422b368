"""
Running dynamics estimation.

Strava's activity list carries no stride length, ground contact time or
vertical oscillation. These are approximated from speed and cadence for
run-like activities. The deriver is a plain callable so the normalizer can
be given a different model.
"""

import math
from dataclasses import dataclass
from typing import Callable, Optional

from stravhat.shared.constants import is_run_like
from .calories import clamp, is_finite_positive, round2


@dataclass
class RunDynamicsInput:
    type: str
    sport_type: str
    average_speed: float
    average_cadence: Optional[float]


@dataclass
class RunDynamics:
    """Stride length (m), ground contact time (ms), vertical oscillation (cm)."""

    stride_length: Optional[float] = None
    ground_contact_time: Optional[float] = None
    vertical_oscillation: Optional[float] = None


RunDynamicsDeriver = Callable[[RunDynamicsInput], Optional[RunDynamics]]

# Below this, cadence is per leg
PER_LEG_CADENCE_THRESHOLD = 130


def cadence_to_steps_per_minute(cadence: float) -> Optional[float]:
    if not math.isfinite(cadence) or cadence <= 0:
        return None
    return cadence * 2 if cadence < PER_LEG_CADENCE_THRESHOLD else cadence


def estimate_run_dynamics(activity: RunDynamicsInput) -> Optional[RunDynamics]:
    """
    Heuristic gait estimate; None for non-running activities or missing
    speed/cadence.
    """
    if not is_run_like(activity.type, activity.sport_type):
        return None
    if not is_finite_positive(activity.average_speed):
        return None
    if activity.average_cadence is None:
        return None

    steps_per_minute = cadence_to_steps_per_minute(activity.average_cadence)
    if not steps_per_minute:
        return None

    speed = activity.average_speed
    step_time_ms = 60_000 / steps_per_minute
    stride_length = clamp(speed * 60 / steps_per_minute, 0.5, 2.2)

    # Duty factor falls with speed; low cadence means longer contact
    duty_from_speed = clamp(0.78 - 0.06 * speed, 0.45, 0.72)
    cadence_adjustment = clamp((175 - steps_per_minute) / 220, -0.06, 0.06)
    duty_factor = clamp(duty_from_speed + cadence_adjustment, 0.42, 0.78)
    ground_contact_time = clamp(step_time_ms * duty_factor, 120, 420)

    vertical_oscillation = clamp(
        stride_length * 100 * (0.055 + (ground_contact_time - 200) / 5000),
        5,
        14,
    )

    return RunDynamics(
        stride_length=round2(stride_length),
        ground_contact_time=round2(ground_contact_time),
        vertical_oscillation=round2(vertical_oscillation),
    )
