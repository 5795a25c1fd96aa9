"""Baseline normalizer.

Reshapes one day's raw metrics against the user's personal optimal ranges and
baselines. Sleep and steps are multiplied by the clamped fraction of the
optimal range they reach, so values at or above the range top keep their raw
magnitude while values below it are compressed toward 0. Mood and energy
both become ratios against the personal mood baseline; stress passes through.
"""

from __future__ import annotations

from dataclasses import dataclass

from .models import HealthMetrics, UserProfile

NEUTRAL_RATIO = 1.0


@dataclass(frozen=True)
class NormalizedMetrics:
    sleep_hours: float
    sleep_quality: float
    steps: float
    active_minutes: float
    stress: float
    # None marks an undefined ratio (zero baseline)
    mood: float | None
    energy: float | None

    def with_neutral_ratios(self) -> "NormalizedMetrics":
        """Substitute the neutral ratio for undefined mood/energy ratios."""
        return NormalizedMetrics(
            sleep_hours=self.sleep_hours,
            sleep_quality=self.sleep_quality,
            steps=self.steps,
            active_minutes=self.active_minutes,
            stress=self.stress,
            mood=NEUTRAL_RATIO if self.mood is None else self.mood,
            energy=NEUTRAL_RATIO if self.energy is None else self.energy,
        )


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


def range_fraction(value: float, low: float, high: float) -> float:
    """Fraction of [low, high] reached by value, clamped to [0, 1].

    A degenerate range (low == high) acts as a step at ``low``.
    """
    width = high - low
    if width <= 0:
        return 1.0 if value >= low else 0.0
    return _clamp01((value - low) / width)


def shape_to_range(value: float, low: float, high: float) -> float:
    return value * range_fraction(value, low, high)


def baseline_ratio(value: float, baseline: float) -> float | None:
    if baseline == 0:
        return None
    return value / baseline


def normalize_metrics(metrics: HealthMetrics, profile: UserProfile) -> NormalizedMetrics:
    return NormalizedMetrics(
        sleep_hours=shape_to_range(
            metrics.sleep_hours, profile.optimal_sleep_min, profile.optimal_sleep_max
        ),
        sleep_quality=metrics.sleep_quality,
        steps=shape_to_range(
            float(metrics.steps), profile.optimal_activity_min, profile.optimal_activity_max
        ),
        active_minutes=metrics.active_minutes,
        stress=metrics.stress,
        mood=baseline_ratio(metrics.mood, profile.baseline_mood),
        energy=baseline_ratio(metrics.energy, profile.baseline_mood),
    )
