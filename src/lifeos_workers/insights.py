"""Condition flags, reasons and improvement suggestions for a scored day."""

from __future__ import annotations

from .models import HealthMetrics, SuggestionRecord, UserProfile
from .settings import DEFAULTS, ScoringDefaults
from .suggestion_catalog import (
    FALLBACK_PRIORITY,
    FALLBACK_SUGGESTION_KEY,
    matching_triggers,
)

BALANCED_DAY_REASON = "balanced day"

# Reason order is priority order.
REASON_FLAGS: tuple[str, ...] = (
    "low_sleep",
    "high_stress",
    "low_activity",
    "improving_trend",
    "declining_trend",
    "burnout_risk",
)


def build_flags(
    metrics: HealthMetrics,
    anomaly: float,
    trend_7d: int,
    defaults: ScoringDefaults = DEFAULTS,
) -> dict[str, bool]:
    """Evaluate the condition rules; only conditions that hold are returned."""
    checks = {
        "low_sleep": metrics.sleep_hours < defaults.low_sleep_hours,
        "high_stress": metrics.stress >= defaults.high_stress_level,
        "low_activity": metrics.steps < defaults.low_activity_steps,
        "declining_trend": trend_7d <= -defaults.trend_change_threshold,
        "improving_trend": trend_7d >= defaults.trend_change_threshold,
        "anomaly_detected": anomaly > defaults.anomaly_flag_threshold,
    }
    checks["burnout_risk"] = (
        checks["low_sleep"] and checks["high_stress"] and checks["declining_trend"]
    )
    return {name: True for name, active in checks.items() if active}


def _format_hours(hours: float) -> str:
    return f"{hours:g}h"


def reason_for(flag: str, metrics: HealthMetrics) -> str:
    if flag == "low_sleep":
        return f"insufficient sleep ({_format_hours(metrics.sleep_hours)})"
    if flag == "high_stress":
        return "elevated stress level"
    if flag == "low_activity":
        return "limited physical activity"
    if flag == "improving_trend":
        return "steady improvement over recent days"
    if flag == "declining_trend":
        return "declining trend over recent days"
    if flag == "burnout_risk":
        return "possible signs of burnout"
    raise ValueError(f"No reason text for flag {flag!r}")


def build_reasons(
    metrics: HealthMetrics,
    flags: dict[str, bool],
    defaults: ScoringDefaults = DEFAULTS,
) -> list[str]:
    reasons = [reason_for(flag, metrics) for flag in REASON_FLAGS if flags.get(flag)]
    if not reasons:
        return [BALANCED_DAY_REASON]
    return reasons[: defaults.max_reasons]


def build_improvement_suggestions(
    metrics: HealthMetrics,
    flags: dict[str, bool],
    profile: UserProfile,
    defaults: ScoringDefaults = DEFAULTS,
) -> list[str]:
    suggestions: list[str] = []

    if metrics.sleep_hours < profile.optimal_sleep_min:
        deficit = profile.optimal_sleep_min - metrics.sleep_hours
        suggestions.append(f"Sleep {deficit:.1f}h more tonight")
    elif metrics.sleep_hours > profile.optimal_sleep_max:
        suggestions.append("Cut back slightly on sleep to keep energy up")

    if metrics.steps < profile.optimal_activity_min:
        deficit = profile.optimal_activity_min - metrics.steps
        minutes = round(deficit / 100)
        suggestions.append(f"Add {round(deficit)} steps (~{minutes} min walk)")

    if flags.get("high_stress"):
        if profile.chronotype == "morning":
            suggestions.append("Try 4-7-8 breathing in the morning")
        else:
            suggestions.append("Try an evening meditation to unwind")

    if flags.get("declining_trend"):
        suggestions.append("Focus on consistent routines to stabilize your wellbeing")

    return suggestions[: defaults.max_suggestions]


def build_suggestion_records(
    metrics: HealthMetrics,
    flags: dict[str, bool],
    defaults: ScoringDefaults = DEFAULTS,
) -> list[SuggestionRecord]:
    """Pick the day's suggestion rows from the trigger table."""
    best = matching_triggers(flags)
    if not best:
        return [
            SuggestionRecord(
                suggestion_key=FALLBACK_SUGGESTION_KEY,
                priority=FALLBACK_PRIORITY,
                reason=BALANCED_DAY_REASON,
            )
        ]

    ranked = sorted(best.values(), key=lambda t: (-t.priority, t.suggestion_key))
    return [
        SuggestionRecord(
            suggestion_key=trigger.suggestion_key,
            priority=trigger.priority,
            reason=reason_for(trigger.condition, metrics),
        )
        for trigger in ranked[: defaults.max_suggestions]
    ]
