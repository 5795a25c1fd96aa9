"""Suggestion trigger table.

Each suggestion key fires on one or more flag conditions with a priority
(1-10, higher is more important). The rollup offers the highest-priority
matches for the day.
"""

from __future__ import annotations

from dataclasses import dataclass

FALLBACK_SUGGESTION_KEY = "gratitude-note"
FALLBACK_PRIORITY = 1


@dataclass(frozen=True)
class SuggestionTrigger:
    suggestion_key: str
    condition: str
    priority: int


SUGGESTION_TRIGGERS: tuple[SuggestionTrigger, ...] = (
    SuggestionTrigger("breathing-478", "high_stress", 8),
    SuggestionTrigger("breathing-478", "burnout_risk", 9),
    SuggestionTrigger("breathing-5count", "high_stress", 6),
    SuggestionTrigger("breathing-5count", "declining_trend", 5),
    SuggestionTrigger("meditation-5min", "high_stress", 7),
    SuggestionTrigger("meditation-5min", "burnout_risk", 8),
    SuggestionTrigger("meditation-5min", "declining_trend", 6),
    SuggestionTrigger("body-scan", "high_stress", 6),
    SuggestionTrigger("body-scan", "low_sleep", 5),
    SuggestionTrigger("walk-10min", "low_activity", 9),
    SuggestionTrigger("walk-10min", "declining_trend", 6),
    SuggestionTrigger("stretching-basic", "low_activity", 7),
    SuggestionTrigger("stretching-basic", "high_stress", 4),
    SuggestionTrigger("power-nap", "low_sleep", 8),
    SuggestionTrigger("power-nap", "declining_trend", 5),
)


def matching_triggers(flags: dict[str, bool]) -> dict[str, SuggestionTrigger]:
    """Best (highest-priority) active trigger per suggestion key."""
    best: dict[str, SuggestionTrigger] = {}
    for trigger in SUGGESTION_TRIGGERS:
        if not flags.get(trigger.condition):
            continue
        current = best.get(trigger.suggestion_key)
        if current is None or trigger.priority > current.priority:
            best[trigger.suggestion_key] = trigger
    return best
