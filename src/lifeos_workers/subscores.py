"""Sleep, activity and mental component scores (0-100).

The calculators are pure functions over any metrics-shaped record: the raw
``HealthMetrics`` of a day or its ``NormalizedMetrics`` view.
"""

from __future__ import annotations

from typing import Protocol

from .settings import DEFAULTS, ScoringDefaults


class SleepInputs(Protocol):
    sleep_hours: float
    sleep_quality: float


class ActivityInputs(Protocol):
    steps: float
    active_minutes: float


class MentalInputs(Protocol):
    mood: float
    stress: float
    energy: float


def _clamp_score(value: float) -> float:
    return max(0.0, min(100.0, value))


def sleep_score(metrics: SleepInputs, defaults: ScoringDefaults = DEFAULTS) -> float:
    hours_score = min(metrics.sleep_hours / defaults.sleep_target_hours, 1.2) * 70
    quality_score = ((metrics.sleep_quality - 1) / 4) * 30
    return _clamp_score(hours_score + quality_score)


def activity_score(metrics: ActivityInputs, defaults: ScoringDefaults = DEFAULTS) -> float:
    steps_score = min(metrics.steps / defaults.steps_target, 1.5) * 60
    active_score = min(metrics.active_minutes / defaults.active_minutes_target, 1.5) * 40
    return _clamp_score(steps_score + active_score)


def mental_score(metrics: MentalInputs) -> float:
    mood_score = ((metrics.mood - 1) / 4) * 40
    stress_score = ((5 - metrics.stress) / 4) * 30
    energy_score = ((metrics.energy - 1) / 4) * 30
    return _clamp_score(mood_score + stress_score + energy_score)
