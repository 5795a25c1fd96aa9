"""Z-score anomaly detection against the recent metrics window."""

from __future__ import annotations

import math
from collections.abc import Sequence

from .models import HealthMetrics
from .settings import DEFAULTS, ScoringDefaults


def _population_stats(values: Sequence[float]) -> tuple[float, float]:
    mean = sum(values) / len(values)
    variance = sum((value - mean) ** 2 for value in values) / len(values)
    return mean, math.sqrt(variance)


def z_score(value: float, population: Sequence[float]) -> float:
    """Absolute z-score of value against population; 0 when spread is zero."""
    if not population:
        return 0.0
    mean, stddev = _population_stats(population)
    if stddev == 0:
        return 0.0
    return abs(value - mean) / stddev


def anomaly_score(
    today: HealthMetrics,
    history: Sequence[HealthMetrics],
    defaults: ScoringDefaults = DEFAULTS,
) -> float:
    """Map the largest sleep/steps deviation onto [0, 1].

    Returns 0 while fewer than ``anomaly_window_days`` history rows exist.
    A deviation of ``anomaly_full_sigma`` standard deviations is a full anomaly.
    """
    window = defaults.anomaly_window_days
    if len(history) < window:
        return 0.0

    recent = history[-window:]
    sleep_z = z_score(today.sleep_hours, [row.sleep_hours for row in recent])
    steps_z = z_score(float(today.steps), [float(row.steps) for row in recent])
    return round(min(1.0, max(sleep_z, steps_z) / defaults.anomaly_full_sigma), 3)
