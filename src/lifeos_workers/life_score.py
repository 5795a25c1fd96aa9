"""Compose the scoring stages into one daily ``LifeScoreV2``.

Pure: the caller supplies today's metrics, the profile and both histories
(ascending by date, strictly before ``metrics.date``). The persisted
sleep/activity/mental breakdown is computed on the raw metrics; the overall
score blends the same calculators applied to the baseline-normalized record.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from .anomaly import anomaly_score
from .circadian import circadian_factor
from .insights import (
    build_flags,
    build_improvement_suggestions,
    build_reasons,
    build_suggestion_records,
)
from .models import HealthMetrics, LifeScoreV2, SuggestionRecord, UserProfile
from .normalization import normalize_metrics
from .settings import DEFAULTS, ScoringDefaults
from .subscores import activity_score, mental_score, sleep_score
from .trends import compute_trends, predict_scores, round_half_up
from .weights import compute_adaptive_weights


@dataclass(frozen=True)
class DailyScore:
    score: LifeScoreV2
    suggestions: list[SuggestionRecord]


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def confidence_level(history_length: int, defaults: ScoringDefaults = DEFAULTS) -> float:
    return round(min(1.0, history_length / defaults.confidence_full_data_points), 3)


def personal_baseline(profile: UserProfile) -> float:
    return round(_clamp((profile.baseline_mood / 5) * 100, 0.0, 100.0), 1)


def compute_life_score(
    metrics: HealthMetrics,
    profile: UserProfile,
    health_history: Sequence[HealthMetrics],
    score_history: Sequence[float],
    defaults: ScoringDefaults = DEFAULTS,
) -> DailyScore:
    weights = compute_adaptive_weights(profile, len(health_history), defaults)

    normalized = normalize_metrics(metrics, profile).with_neutral_ratios()
    base = (
        sleep_score(normalized, defaults) * weights.sleep
        + activity_score(normalized, defaults) * weights.activity
        + mental_score(normalized) * weights.mental
    )
    factor = circadian_factor(metrics.date, profile, defaults)
    overall = int(_clamp(round_half_up(base * factor), 0, 100))

    anomaly = anomaly_score(metrics, health_history, defaults)
    trends = compute_trends(overall, score_history)
    predictions = predict_scores(score_history, defaults)

    flags = build_flags(metrics, anomaly, trends.trend_7d, defaults)

    score = LifeScoreV2(
        user_id=metrics.user_id,
        date=metrics.date,
        score=overall,
        sleep_score=round(sleep_score(metrics, defaults), 1),
        activity_score=round(activity_score(metrics, defaults), 1),
        mental_score=round(mental_score(metrics), 1),
        trend_3d=trends.trend_3d,
        trend_7d=trends.trend_7d,
        flags=flags,
        reasons=build_reasons(metrics, flags, defaults),
        confidence_level=confidence_level(len(health_history), defaults),
        prediction_3d=predictions.prediction_3d,
        prediction_7d=predictions.prediction_7d,
        anomaly_score=anomaly,
        circadian_factor=factor,
        personal_baseline=personal_baseline(profile),
        improvement_suggestions=build_improvement_suggestions(
            metrics, flags, profile, defaults
        ),
        weights=weights.as_dict(),
    )
    return DailyScore(
        score=score,
        suggestions=build_suggestion_records(metrics, flags, defaults),
    )
