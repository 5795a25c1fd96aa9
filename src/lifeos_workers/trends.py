"""Score trends and short-horizon predictions.

Trends compare today's score with the mean of the most recent scores.
Predictions extrapolate an ordinary-least-squares slope fitted over the last
``regression_window`` scores once at least ``min_scores_for_regression`` exist;
before that the recent mean (or the population default) is reused.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass

from .settings import DEFAULTS, ScoringDefaults


@dataclass(frozen=True)
class ScoreTrends:
    trend_3d: int
    trend_7d: int


@dataclass(frozen=True)
class ScorePredictions:
    prediction_3d: float
    prediction_7d: float


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values)


def _clamp_score(value: float) -> float:
    return max(0.0, min(100.0, value))


def round_half_up(value: float) -> int:
    """Nearest integer, ties toward +inf (2.5 -> 3, -2.5 -> -2)."""
    return math.floor(value + 0.5)


def trend_delta(today_score: float, history: Sequence[float], window: int) -> int:
    recent = list(history[-window:])
    reference = _mean(recent) if recent else today_score
    return round_half_up(today_score - reference)


def compute_trends(today_score: float, history: Sequence[float]) -> ScoreTrends:
    return ScoreTrends(
        trend_3d=trend_delta(today_score, history, 3),
        trend_7d=trend_delta(today_score, history, 7),
    )


def linear_trend(values: Sequence[float]) -> float:
    """OLS slope of values against their index; 0 when undefined."""
    n = len(values)
    sum_x = sum(range(n))
    sum_y = sum(values)
    sum_xy = sum(x * y for x, y in enumerate(values))
    sum_x2 = sum(x * x for x in range(n))
    denominator = n * sum_x2 - sum_x * sum_x
    if denominator == 0:
        return 0.0
    return (n * sum_xy - sum_x * sum_y) / denominator


def predict_scores(
    history: Sequence[float],
    defaults: ScoringDefaults = DEFAULTS,
) -> ScorePredictions:
    if len(history) < defaults.min_scores_for_regression:
        recent = list(history[-3:])
        average = _mean(recent) if recent else defaults.default_prediction
        average = round(_clamp_score(average), 1)
        return ScorePredictions(prediction_3d=average, prediction_7d=average)

    window = list(history[-defaults.regression_window:])
    slope = linear_trend(window)
    current = _mean(window[-3:])
    return ScorePredictions(
        prediction_3d=round(_clamp_score(current + slope * 3), 1),
        prediction_7d=round(_clamp_score(current + slope * 7), 1),
    )
