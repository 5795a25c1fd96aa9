"""Validated records exchanged with the persistence layer.

Rows coming out of Postgres are validated into these models at the boundary
(see ``store.py``); the scoring stages only ever see validated instances.
"""

import datetime as dt
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

WEEKDAY_NAMES: tuple[str, ...] = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)

Chronotype = Literal["morning", "evening", "neutral"]


def _default_if_missing(value: Any, default: Any) -> Any:
    if value is None:
        return default
    if isinstance(value, str) and not value.strip():
        return default
    return value


class HealthMetrics(BaseModel):
    """One day of raw health metrics for one user (read-only to the rollup)."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    date: dt.date
    steps: int = Field(default=0, ge=0)
    active_minutes: float = Field(default=0.0, ge=0)
    sleep_hours: float = Field(default=0.0, ge=0, le=24)
    sleep_quality: float = Field(default=3.0, ge=1, le=5)
    hr_avg: float | None = Field(default=None, ge=0)
    mood: float = Field(default=3.0, ge=1, le=5)
    stress: float = Field(default=3.0, ge=1, le=5)
    energy: float = Field(default=3.0, ge=1, le=5)
    source: str = "manual"

    @field_validator("user_id", mode="before")
    @classmethod
    def validate_user_id(cls, value: Any) -> str:
        normalized = str(value or "").strip()
        if not normalized:
            raise ValueError("user_id must not be empty")
        return normalized

    @field_validator("steps", "active_minutes", "sleep_hours", mode="before")
    @classmethod
    def missing_amounts_are_zero(cls, value: Any) -> Any:
        return _default_if_missing(value, 0)

    @field_validator("sleep_quality", "mood", "stress", mode="before")
    @classmethod
    def missing_scales_are_neutral(cls, value: Any) -> Any:
        return _default_if_missing(value, 3)

    @field_validator("source", mode="before")
    @classmethod
    def default_source(cls, value: Any) -> Any:
        return _default_if_missing(value, "manual")

    @model_validator(mode="before")
    @classmethod
    def energy_defaults_to_mood(cls, data: Any) -> Any:
        if isinstance(data, dict) and _default_if_missing(data.get("energy"), None) is None:
            data = {**data, "energy": _default_if_missing(data.get("mood"), 3)}
        return data


class UserProfile(BaseModel):
    """Per-user adaptive profile: baselines, sensitivities, optimal ranges."""

    user_id: str
    baseline_sleep: float = 7.5
    baseline_activity: float = 7000.0
    baseline_mood: float = 3.5
    baseline_stress: float = 2.5
    baseline_energy: float = 3.5
    sleep_sensitivity: float = Field(default=0.5, ge=0, le=1)
    activity_sensitivity: float = Field(default=0.5, ge=0, le=1)
    mood_sensitivity: float = Field(default=0.5, ge=0, le=1)
    stress_sensitivity: float = Field(default=0.5, ge=0, le=1)
    optimal_sleep_min: float = 7.0
    optimal_sleep_max: float = 8.5
    optimal_activity_min: float = 6000.0
    optimal_activity_max: float = 10000.0
    chronotype: Chronotype = "neutral"
    stress_pattern_weekdays: list[str] = Field(default_factory=list)
    confidence_score: float = Field(default=0.0, ge=0, le=1)
    data_points_count: int = Field(default=0, ge=0)
    last_learning_date: dt.date | None = None

    @field_validator("chronotype", mode="before")
    @classmethod
    def normalize_chronotype(cls, value: Any) -> Any:
        normalized = str(_default_if_missing(value, "neutral")).strip().lower()
        return normalized

    @field_validator("stress_pattern_weekdays", mode="before")
    @classmethod
    def normalize_weekdays(cls, value: Any) -> list[str]:
        if value is None:
            return []
        if not isinstance(value, (list, tuple, set)):
            raise ValueError("stress_pattern_weekdays must be a list of weekday names")
        days: list[str] = []
        for raw in value:
            day = str(raw or "").strip().lower()
            if day not in WEEKDAY_NAMES:
                raise ValueError(f"unknown weekday {raw!r}")
            if day not in days:
                days.append(day)
        return days

    @model_validator(mode="after")
    def ranges_are_ordered(self) -> "UserProfile":
        if self.optimal_sleep_min > self.optimal_sleep_max:
            raise ValueError("optimal_sleep_min must not exceed optimal_sleep_max")
        if self.optimal_activity_min > self.optimal_activity_max:
            raise ValueError("optimal_activity_min must not exceed optimal_activity_max")
        return self


class LifeScoreV2(BaseModel):
    """Computed daily life score, upserted by (user_id, date)."""

    user_id: str
    date: dt.date
    score: int = Field(ge=0, le=100)
    sleep_score: float = Field(ge=0, le=100)
    activity_score: float = Field(ge=0, le=100)
    mental_score: float = Field(ge=0, le=100)
    trend_3d: int = 0
    trend_7d: int = 0
    flags: dict[str, bool] = Field(default_factory=dict)
    reasons: list[str] = Field(default_factory=list, max_length=3)
    confidence_level: float = Field(default=0.0, ge=0, le=1)
    prediction_3d: float = Field(default=75.0, ge=0, le=100)
    prediction_7d: float = Field(default=75.0, ge=0, le=100)
    anomaly_score: float = Field(default=0.0, ge=0, le=1)
    circadian_factor: float = Field(default=1.0, ge=0.8, le=1.2)
    personal_baseline: float = Field(default=0.0, ge=0, le=100)
    improvement_suggestions: list[str] = Field(default_factory=list, max_length=3)
    weights: dict[str, float] = Field(default_factory=dict)


class SuggestionRecord(BaseModel):
    """A suggestion offered to a user for a given day."""

    suggestion_key: str
    priority: int
    reason: str
    completed: bool = False


class RollupResult(BaseModel):
    target_date: dt.date
    processed_count: int = 0
    total_count: int = 0
    errors: list[str] = Field(default_factory=list)
