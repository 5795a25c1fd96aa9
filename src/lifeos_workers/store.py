"""Persistence for the daily rollup.

``RollupStore`` is the row-level contract the orchestrator talks to. Rows come
back as plain dicts and are validated into the pydantic models by the accessor
functions below, so nothing past this module ever sees an unvalidated record.
``PostgresRollupStore`` implements the contract with psycopg; all writes are
upserts keyed by natural identity, so a retried rollup overwrites itself.
"""

from __future__ import annotations

import datetime as dt
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import Any, Protocol

import psycopg
from psycopg.rows import dict_row
from psycopg.types.json import Json
from pydantic import ValidationError

from .errors import HistoryReadError, ProfileStoreError, ScoreWriteError
from .models import HealthMetrics, LifeScoreV2, SuggestionRecord, UserProfile
from .settings import DEFAULTS, ScoringDefaults

logger = logging.getLogger(__name__)

_METRIC_COLUMNS = """
    user_id, date, steps, active_minutes, sleep_hours, sleep_quality,
    hr_avg, mood, stress, energy, source
"""

_PROFILE_COLUMNS = """
    user_id, baseline_sleep, baseline_activity, baseline_mood, baseline_stress,
    baseline_energy, sleep_sensitivity, activity_sensitivity, mood_sensitivity,
    stress_sensitivity, optimal_sleep_min, optimal_sleep_max,
    optimal_activity_min, optimal_activity_max, chronotype,
    stress_pattern_weekdays, confidence_score, data_points_count,
    last_learning_date
"""

_SCORE_COLUMNS = """
    user_id, date, score, sleep_score, activity_score, mental_score,
    trend_3d, trend_7d, flags, reasons, confidence_level, prediction_3d,
    prediction_7d, anomaly_score, circadian_factor, personal_baseline,
    improvement_suggestions, weights
"""


class RollupStore(Protocol):
    async def fetch_metrics_for_date(self, day: dt.date) -> list[dict[str, Any]]: ...

    async def fetch_profile(self, user_id: str) -> dict[str, Any] | None: ...

    async def insert_profile(self, profile: UserProfile) -> None: ...

    async def fetch_health_history(
        self, user_id: str, since: dt.date, before: dt.date
    ) -> list[dict[str, Any]]: ...

    async def fetch_score_history(
        self, user_id: str, since: dt.date, before: dt.date
    ) -> list[dict[str, Any]]: ...

    async def upsert_profile(self, profile: UserProfile) -> None: ...

    async def upsert_life_score(self, score: LifeScoreV2) -> None: ...

    async def upsert_suggestion(
        self, user_id: str, day: dt.date, suggestion: SuggestionRecord
    ) -> None: ...


# Opens a store for the duration of an ``async with`` block.
StoreFactory = Callable[[], AbstractAsyncContextManager[RollupStore]]


class PostgresRollupStore:
    def __init__(self, conn: psycopg.AsyncConnection[Any]) -> None:
        self.conn = conn

    async def fetch_metrics_for_date(self, day: dt.date) -> list[dict[str, Any]]:
        async with self.conn.cursor(row_factory=dict_row) as cur:
            await cur.execute(
                f"""
                SELECT {_METRIC_COLUMNS}
                FROM health_metrics
                WHERE date = %s
                ORDER BY user_id
                """,
                (day,),
            )
            return await cur.fetchall()

    async def fetch_profile(self, user_id: str) -> dict[str, Any] | None:
        async with self.conn.cursor(row_factory=dict_row) as cur:
            await cur.execute(
                f"SELECT {_PROFILE_COLUMNS} FROM user_profiles WHERE user_id = %s",
                (user_id,),
            )
            return await cur.fetchone()

    async def insert_profile(self, profile: UserProfile) -> None:
        await self._write_profile(profile, on_conflict="DO NOTHING")

    async def upsert_profile(self, profile: UserProfile) -> None:
        await self._write_profile(
            profile,
            on_conflict="""
            DO UPDATE SET
                baseline_sleep = EXCLUDED.baseline_sleep,
                baseline_activity = EXCLUDED.baseline_activity,
                baseline_mood = EXCLUDED.baseline_mood,
                baseline_stress = EXCLUDED.baseline_stress,
                baseline_energy = EXCLUDED.baseline_energy,
                confidence_score = EXCLUDED.confidence_score,
                data_points_count = EXCLUDED.data_points_count,
                last_learning_date = EXCLUDED.last_learning_date,
                updated_at = NOW()
            """,
        )

    async def _write_profile(self, profile: UserProfile, *, on_conflict: str) -> None:
        await self.conn.execute(
            f"""
            INSERT INTO user_profiles ({_PROFILE_COLUMNS})
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s,
                    %s, %s, %s, %s, %s)
            ON CONFLICT (user_id) {on_conflict}
            """,
            (
                profile.user_id,
                profile.baseline_sleep,
                profile.baseline_activity,
                profile.baseline_mood,
                profile.baseline_stress,
                profile.baseline_energy,
                profile.sleep_sensitivity,
                profile.activity_sensitivity,
                profile.mood_sensitivity,
                profile.stress_sensitivity,
                profile.optimal_sleep_min,
                profile.optimal_sleep_max,
                profile.optimal_activity_min,
                profile.optimal_activity_max,
                profile.chronotype,
                list(profile.stress_pattern_weekdays),
                profile.confidence_score,
                profile.data_points_count,
                profile.last_learning_date,
            ),
        )

    async def fetch_health_history(
        self, user_id: str, since: dt.date, before: dt.date
    ) -> list[dict[str, Any]]:
        async with self.conn.cursor(row_factory=dict_row) as cur:
            await cur.execute(
                f"""
                SELECT {_METRIC_COLUMNS}
                FROM health_metrics
                WHERE user_id = %s AND date >= %s AND date < %s
                ORDER BY date ASC
                """,
                (user_id, since, before),
            )
            return await cur.fetchall()

    async def fetch_score_history(
        self, user_id: str, since: dt.date, before: dt.date
    ) -> list[dict[str, Any]]:
        async with self.conn.cursor(row_factory=dict_row) as cur:
            await cur.execute(
                f"""
                SELECT {_SCORE_COLUMNS}
                FROM life_scores_v2
                WHERE user_id = %s AND date >= %s AND date < %s
                ORDER BY date ASC
                """,
                (user_id, since, before),
            )
            return await cur.fetchall()

    async def upsert_life_score(self, score: LifeScoreV2) -> None:
        await self.conn.execute(
            f"""
            INSERT INTO life_scores_v2 ({_SCORE_COLUMNS})
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s,
                    %s, %s, %s, %s)
            ON CONFLICT (user_id, date) DO UPDATE SET
                score = EXCLUDED.score,
                sleep_score = EXCLUDED.sleep_score,
                activity_score = EXCLUDED.activity_score,
                mental_score = EXCLUDED.mental_score,
                trend_3d = EXCLUDED.trend_3d,
                trend_7d = EXCLUDED.trend_7d,
                flags = EXCLUDED.flags,
                reasons = EXCLUDED.reasons,
                confidence_level = EXCLUDED.confidence_level,
                prediction_3d = EXCLUDED.prediction_3d,
                prediction_7d = EXCLUDED.prediction_7d,
                anomaly_score = EXCLUDED.anomaly_score,
                circadian_factor = EXCLUDED.circadian_factor,
                personal_baseline = EXCLUDED.personal_baseline,
                improvement_suggestions = EXCLUDED.improvement_suggestions,
                weights = EXCLUDED.weights,
                updated_at = NOW()
            """,
            (
                score.user_id,
                score.date,
                score.score,
                score.sleep_score,
                score.activity_score,
                score.mental_score,
                score.trend_3d,
                score.trend_7d,
                Json(score.flags),
                Json(score.reasons),
                score.confidence_level,
                score.prediction_3d,
                score.prediction_7d,
                score.anomaly_score,
                score.circadian_factor,
                score.personal_baseline,
                Json(score.improvement_suggestions),
                Json(score.weights),
            ),
        )

    async def upsert_suggestion(
        self, user_id: str, day: dt.date, suggestion: SuggestionRecord
    ) -> None:
        # completed belongs to the app; an existing value is never overwritten
        await self.conn.execute(
            """
            INSERT INTO user_suggestions (
                user_id, date, suggestion_key, priority, reason, completed
            )
            VALUES (%s, %s, %s, %s, %s, FALSE)
            ON CONFLICT (user_id, date, suggestion_key) DO UPDATE SET
                priority = EXCLUDED.priority,
                reason = EXCLUDED.reason,
                updated_at = NOW()
            """,
            (user_id, day, suggestion.suggestion_key, suggestion.priority, suggestion.reason),
        )


def postgres_store_factory(database_url: str) -> StoreFactory:
    """Factory opening one autocommit connection per store."""

    @asynccontextmanager
    async def open_store() -> AsyncIterator[RollupStore]:
        async with await psycopg.AsyncConnection.connect(
            database_url, autocommit=True
        ) as conn:
            yield PostgresRollupStore(conn)

    return open_store


def default_profile(user_id: str, defaults: ScoringDefaults = DEFAULTS) -> UserProfile:
    return UserProfile(
        user_id=user_id,
        baseline_sleep=defaults.baseline_sleep,
        baseline_activity=defaults.baseline_activity,
        baseline_mood=defaults.baseline_mood,
        baseline_stress=defaults.baseline_stress,
        baseline_energy=defaults.baseline_energy,
        sleep_sensitivity=defaults.sensitivity,
        activity_sensitivity=defaults.sensitivity,
        mood_sensitivity=defaults.sensitivity,
        stress_sensitivity=defaults.sensitivity,
        optimal_sleep_min=defaults.optimal_sleep_min,
        optimal_sleep_max=defaults.optimal_sleep_max,
        optimal_activity_min=defaults.optimal_activity_min,
        optimal_activity_max=defaults.optimal_activity_max,
        chronotype=defaults.chronotype,
        confidence_score=0.0,
        data_points_count=0,
    )


async def get_or_create_profile(
    store: RollupStore,
    user_id: str,
    defaults: ScoringDefaults = DEFAULTS,
) -> UserProfile:
    """Load the user's profile, inserting population defaults when absent.

    A failed insert is logged and the in-memory default profile is returned;
    a failed read (or an invalid stored row) raises ``ProfileStoreError``.
    """
    try:
        row = await store.fetch_profile(user_id)
    except Exception as exc:
        raise ProfileStoreError(user_id, f"profile read failed: {exc}") from exc

    if row is not None:
        try:
            return UserProfile.model_validate(row)
        except ValidationError as exc:
            raise ProfileStoreError(user_id, f"invalid stored profile: {exc}") from exc

    profile = default_profile(user_id, defaults)
    try:
        await store.insert_profile(profile)
        logger.info(
            "Created default profile for user %s",
            user_id,
            extra={"lifeos_user_id": user_id},
        )
    except Exception as exc:
        logger.warning(
            "Default profile insert failed for user %s: %s",
            user_id,
            exc,
            extra={"lifeos_user_id": user_id},
        )
    return profile


async def get_health_history(
    store: RollupStore,
    user_id: str,
    target_date: dt.date,
    days: int,
) -> list[HealthMetrics]:
    """Metrics for the ``days`` calendar days before target_date, ascending."""
    since = target_date - dt.timedelta(days=days)
    try:
        rows = await store.fetch_health_history(user_id, since, target_date)
        history = [HealthMetrics.model_validate(row) for row in rows]
    except Exception as exc:
        raise HistoryReadError(user_id, f"health history read failed: {exc}") from exc
    return sorted(history, key=lambda m: m.date)


async def get_score_history(
    store: RollupStore,
    user_id: str,
    target_date: dt.date,
    days: int,
) -> list[LifeScoreV2]:
    """Scores for the ``days`` calendar days before target_date, ascending."""
    since = target_date - dt.timedelta(days=days)
    try:
        rows = await store.fetch_score_history(user_id, since, target_date)
        history = [LifeScoreV2.model_validate(row) for row in rows]
    except Exception as exc:
        raise HistoryReadError(user_id, f"score history read failed: {exc}") from exc
    return sorted(history, key=lambda s: s.date)


async def save_daily_score(
    store: RollupStore,
    score: LifeScoreV2,
    suggestions: list[SuggestionRecord],
) -> None:
    try:
        await store.upsert_life_score(score)
        for suggestion in suggestions:
            await store.upsert_suggestion(score.user_id, score.date, suggestion)
    except Exception as exc:
        raise ScoreWriteError(score.user_id, f"score write failed: {exc}") from exc


async def save_profile(store: RollupStore, profile: UserProfile) -> None:
    try:
        await store.upsert_profile(profile)
    except Exception as exc:
        raise ProfileStoreError(profile.user_id, f"profile update failed: {exc}") from exc
