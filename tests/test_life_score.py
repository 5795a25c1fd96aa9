import datetime as dt

import pytest

from lifeos_workers.life_score import compute_life_score, confidence_level, personal_baseline

from conftest import WEDNESDAY, make_metrics, make_profile, steady_history


def test_reference_day_with_default_profile():
    daily = compute_life_score(make_metrics(), make_profile(), [], [])
    score = daily.score

    assert score.sleep_score == 100
    assert score.activity_score == 100
    assert score.mental_score == 75
    assert score.weights == pytest.approx({"sleep": 0.35, "activity": 0.30, "mental": 0.35})
    assert score.circadian_factor == 1.0
    assert score.anomaly_score == 0
    assert score.trend_3d == 0
    assert score.trend_7d == 0
    assert score.flags == {}
    assert score.reasons == ["balanced day"]
    assert score.improvement_suggestions == []
    assert score.prediction_3d == 75.0
    assert score.prediction_7d == 75.0
    assert score.confidence_level == 0
    assert score.personal_baseline == 70.0
    # Overall blends the baseline-normalized record: 76.67*.35 + 74.29*.30 + 25*.35
    assert score.score == 58

    assert [s.suggestion_key for s in daily.suggestions] == ["gratitude-note"]


def test_burnout_scenario():
    history = steady_history(20)
    scores = [90.0] * 20
    metrics = make_metrics(sleep_hours=4, stress=5, steps=1000, active_minutes=5)

    daily = compute_life_score(metrics, make_profile(), history, scores)
    score = daily.score

    assert score.trend_7d <= -15
    for flag in ("low_sleep", "high_stress", "low_activity", "declining_trend", "burnout_risk"):
        assert score.flags[flag] is True
    assert "insufficient sleep (4h)" in score.reasons
    assert len(score.reasons) <= 3
    assert len(score.improvement_suggestions) <= 3
    assert score.anomaly_score == 0  # steady history has zero spread
    assert score.confidence_level == pytest.approx(20 / 30, abs=1e-3)
    assert [s.suggestion_key for s in daily.suggestions] == [
        "breathing-478",
        "walk-10min",
        "meditation-5min",
    ]


def test_weekend_raises_overall_score():
    saturday = dt.date(2026, 10, 17)
    weekday = compute_life_score(make_metrics(), make_profile(), [], []).score
    weekend = compute_life_score(make_metrics(saturday), make_profile(), [], []).score
    assert weekend.circadian_factor == 1.05
    assert weekend.score > weekday.score
    assert weekend.sleep_score == weekday.sleep_score


def test_zero_mood_baseline_scores_with_neutral_ratio():
    profile = make_profile(baseline_mood=0, baseline_energy=0)
    score = compute_life_score(make_metrics(), profile, [], []).score
    assert 0 <= score.score <= 100
    assert score.personal_baseline == 0


def test_overall_score_is_clamped():
    profile = make_profile(optimal_sleep_min=0, optimal_sleep_max=0.1,
                           optimal_activity_min=0, optimal_activity_max=1,
                           baseline_mood=1, baseline_energy=1)
    metrics = make_metrics(WEDNESDAY + dt.timedelta(days=3), sleep_hours=12, steps=30000,
                           active_minutes=120, mood=5, energy=5, stress=1)
    score = compute_life_score(metrics, profile, [], []).score
    assert score.score == 100


def test_recomputation_is_deterministic():
    history = steady_history(16, sleep_hours=7.5)
    first = compute_life_score(make_metrics(), make_profile(), history, [70, 72, 74])
    second = compute_life_score(make_metrics(), make_profile(), history, [70, 72, 74])
    assert first == second


def test_helpers():
    assert confidence_level(45) == 1.0
    assert confidence_level(15) == 0.5
    assert personal_baseline(make_profile(baseline_mood=4)) == 80.0
