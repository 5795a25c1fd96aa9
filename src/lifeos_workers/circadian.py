from __future__ import annotations

from datetime import date

from .models import WEEKDAY_NAMES, UserProfile
from .settings import DEFAULTS, ScoringDefaults


def weekday_name(day: date) -> str:
    return WEEKDAY_NAMES[day.weekday()]


def circadian_factor(
    day: date,
    profile: UserProfile,
    defaults: ScoringDefaults = DEFAULTS,
) -> float:
    """Bounded multiplicative adjustment for weekends and known stress days."""
    factor = 1.0
    if day.weekday() >= 5:
        factor += defaults.weekend_bonus
    if weekday_name(day) in profile.stress_pattern_weekdays:
        factor -= defaults.stress_day_penalty
    return round(max(defaults.circadian_min, min(defaults.circadian_max, factor)), 3)
