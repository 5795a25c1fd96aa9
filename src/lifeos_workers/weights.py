"""Adaptive sub-score weights.

New users get population weights. Once a week of history exists, the user's
sensitivity profile takes over gradually: the personal weights are blended in
with a smoothing factor that reaches 1.0 after ``convergence_days`` of data.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass

from .models import UserProfile
from .settings import DEFAULTS, ScoringDefaults


@dataclass(frozen=True)
class ScoreWeights:
    sleep: float
    activity: float
    mental: float

    def as_dict(self) -> dict[str, float]:
        return {key: round(value, 4) for key, value in asdict(self).items()}


def default_weights(defaults: ScoringDefaults = DEFAULTS) -> ScoreWeights:
    return ScoreWeights(
        sleep=defaults.weight_sleep,
        activity=defaults.weight_activity,
        mental=defaults.weight_mental,
    )


def _sensitivity_weights(profile: UserProfile) -> ScoreWeights | None:
    # The mental category follows mood sensitivity.
    total = (
        profile.sleep_sensitivity
        + profile.activity_sensitivity
        + profile.mood_sensitivity
    )
    if total <= 0:
        return None
    return ScoreWeights(
        sleep=profile.sleep_sensitivity / total,
        activity=profile.activity_sensitivity / total,
        mental=profile.mood_sensitivity / total,
    )


def compute_adaptive_weights(
    profile: UserProfile,
    history_length: int,
    defaults: ScoringDefaults = DEFAULTS,
) -> ScoreWeights:
    fixed = default_weights(defaults)
    if history_length < defaults.min_history_days_for_weights:
        return fixed

    personal = _sensitivity_weights(profile)
    if personal is None:
        return fixed

    smoothing = min(history_length / defaults.convergence_days, 1.0)
    return ScoreWeights(
        sleep=fixed.sleep * (1 - smoothing) + personal.sleep * smoothing,
        activity=fixed.activity * (1 - smoothing) + personal.activity * smoothing,
        mental=fixed.mental * (1 - smoothing) + personal.mental * smoothing,
    )
