"""Central scoring defaults for the daily life-score rollup.

Every population default, threshold and window size used by the scoring
stages lives here so the pure functions never carry their own magic numbers.
Stages accept a ``ScoringDefaults`` argument and fall back to ``DEFAULTS``.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ScoringDefaults:
    # Population profile for users without a stored profile
    baseline_sleep: float = 7.5
    baseline_activity: float = 7000.0
    baseline_mood: float = 3.5
    baseline_stress: float = 2.5
    baseline_energy: float = 3.5
    sensitivity: float = 0.5
    optimal_sleep_min: float = 7.0
    optimal_sleep_max: float = 8.5
    optimal_activity_min: float = 6000.0
    optimal_activity_max: float = 10000.0
    chronotype: str = "neutral"

    # Weights
    weight_sleep: float = 0.35
    weight_activity: float = 0.30
    weight_mental: float = 0.35
    min_history_days_for_weights: int = 7
    convergence_days: int = 30

    # Sub-score targets
    sleep_target_hours: float = 8.0
    steps_target: float = 7000.0
    active_minutes_target: float = 30.0

    # Circadian
    weekend_bonus: float = 0.05
    stress_day_penalty: float = 0.1
    circadian_min: float = 0.8
    circadian_max: float = 1.2

    # Anomaly
    anomaly_window_days: int = 14
    anomaly_full_sigma: float = 3.0
    anomaly_flag_threshold: float = 0.7

    # Trends and predictions
    min_scores_for_regression: int = 7
    regression_window: int = 14
    default_prediction: float = 75.0

    # Flags
    low_sleep_hours: float = 6.0
    high_stress_level: float = 4.0
    low_activity_steps: float = 3000.0
    trend_change_threshold: int = 15

    # History windows
    health_history_days: int = 30
    score_history_days: int = 30

    # Profile learning
    learning_interval_days: int = 7
    learning_min_history_days: int = 14
    learning_window_days: int = 30
    confidence_full_data_points: int = 30

    max_reasons: int = 3
    max_suggestions: int = 3


DEFAULTS = ScoringDefaults()
