"""Periodic re-learning of a user's baselines from recent history."""

from __future__ import annotations

import datetime as dt
from collections.abc import Sequence

from .models import HealthMetrics, UserProfile
from .settings import DEFAULTS, ScoringDefaults


def learning_due(
    profile: UserProfile,
    target_date: dt.date,
    history_length: int,
    defaults: ScoringDefaults = DEFAULTS,
) -> bool:
    if history_length < defaults.learning_min_history_days:
        return False
    if profile.last_learning_date is None:
        return True
    days_since = (target_date - profile.last_learning_date).days
    return days_since >= defaults.learning_interval_days


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values)


def relearn_baselines(
    profile: UserProfile,
    window: Sequence[HealthMetrics],
    target_date: dt.date,
    defaults: ScoringDefaults = DEFAULTS,
) -> UserProfile:
    """Return a copy of profile with baselines averaged over ``window``.

    ``window`` is the ascending metrics history including the target day;
    only its last ``learning_window_days`` entries are used. Sensitivities
    and optimal ranges are left untouched.
    """
    recent = list(window[-defaults.learning_window_days:])
    if not recent:
        return profile

    data_points = len(recent)
    return profile.model_copy(
        update={
            "baseline_sleep": round(_mean([m.sleep_hours for m in recent]), 2),
            "baseline_activity": round(_mean([float(m.steps) for m in recent]), 1),
            "baseline_mood": round(_mean([m.mood for m in recent]), 2),
            "baseline_stress": round(_mean([m.stress for m in recent]), 2),
            "baseline_energy": round(_mean([m.energy for m in recent]), 2),
            "data_points_count": data_points,
            "confidence_score": round(
                min(1.0, data_points / defaults.confidence_full_data_points), 3
            ),
            "last_learning_date": target_date,
        }
    )
