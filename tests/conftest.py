"""Shared fixtures: metric/profile builders and an in-memory rollup store."""

from __future__ import annotations

import asyncio
import datetime as dt
from contextlib import asynccontextmanager
from typing import Any

import pytest

from lifeos_workers.metrics import reset_metrics
from lifeos_workers.models import HealthMetrics, LifeScoreV2, SuggestionRecord, UserProfile

# A Wednesday: no weekend bonus
WEDNESDAY = dt.date(2026, 10, 14)


def make_metrics(
    day: dt.date = WEDNESDAY, user_id: str = "user-1", **overrides: Any
) -> HealthMetrics:
    fields: dict[str, Any] = {
        "user_id": user_id,
        "date": day,
        "steps": 8000,
        "active_minutes": 30,
        "sleep_hours": 8,
        "sleep_quality": 5,
        "mood": 4,
        "stress": 2,
        "energy": 4,
    }
    fields.update(overrides)
    return HealthMetrics.model_validate(fields)


def make_profile(user_id: str = "user-1", **overrides: Any) -> UserProfile:
    return UserProfile.model_validate({"user_id": user_id, **overrides})


def steady_history(
    days: int, end: dt.date = WEDNESDAY, user_id: str = "user-1", **overrides: Any
) -> list[HealthMetrics]:
    """``days`` days of identical metrics ending the day before ``end``."""
    return [
        make_metrics(end - dt.timedelta(days=offset), user_id, **overrides)
        for offset in range(days, 0, -1)
    ]


class InMemoryRollupStore:
    """Dict-backed ``RollupStore`` with switchable failures and delays."""

    def __init__(self) -> None:
        self.metrics: dict[tuple[str, dt.date], dict[str, Any]] = {}
        self.profiles: dict[str, dict[str, Any]] = {}
        self.scores: dict[tuple[str, dt.date], dict[str, Any]] = {}
        self.suggestions: dict[tuple[str, dt.date, str], dict[str, Any]] = {}

        self.failing_profile_reads: set[str] = set()
        self.failing_history_reads: set[str] = set()
        self.failing_score_writes: set[str] = set()
        self.fail_profile_inserts = False
        self.delays: dict[str, float] = {}

        self.open_count = 0
        self.in_flight = 0
        self.max_in_flight = 0

    def add_metrics(self, day: dt.date, user_id: str, **fields: Any) -> None:
        row = make_metrics(day, user_id, **fields).model_dump()
        self.metrics[(user_id, day)] = row

    def add_raw_metrics(self, row: dict[str, Any]) -> None:
        self.metrics[(row["user_id"], row["date"])] = row

    def factory(self):
        @asynccontextmanager
        async def open_store():
            self.open_count += 1
            yield self

        return open_store

    async def fetch_metrics_for_date(self, day: dt.date) -> list[dict[str, Any]]:
        return [
            dict(row)
            for (_, row_day), row in sorted(self.metrics.items(), key=lambda item: item[0])
            if row_day == day
        ]

    async def fetch_profile(self, user_id: str) -> dict[str, Any] | None:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(user_id, 0.001))
        finally:
            self.in_flight -= 1
        if user_id in self.failing_profile_reads:
            raise RuntimeError("connection reset by peer")
        row = self.profiles.get(user_id)
        return dict(row) if row is not None else None

    async def insert_profile(self, profile: UserProfile) -> None:
        if self.fail_profile_inserts:
            raise RuntimeError("permission denied for table user_profiles")
        self.profiles.setdefault(profile.user_id, profile.model_dump())

    async def upsert_profile(self, profile: UserProfile) -> None:
        self.profiles[profile.user_id] = profile.model_dump()

    async def fetch_health_history(
        self, user_id: str, since: dt.date, before: dt.date
    ) -> list[dict[str, Any]]:
        if user_id in self.failing_history_reads:
            raise RuntimeError("canceling statement due to statement timeout")
        return [
            dict(row)
            for (uid, day), row in sorted(self.metrics.items(), key=lambda item: item[0][1])
            if uid == user_id and since <= day < before
        ]

    async def fetch_score_history(
        self, user_id: str, since: dt.date, before: dt.date
    ) -> list[dict[str, Any]]:
        return [
            dict(row)
            for (uid, day), row in sorted(self.scores.items(), key=lambda item: item[0][1])
            if uid == user_id and since <= day < before
        ]

    async def upsert_life_score(self, score: LifeScoreV2) -> None:
        if score.user_id in self.failing_score_writes:
            raise RuntimeError("disk full")
        self.scores[(score.user_id, score.date)] = score.model_dump()

    async def upsert_suggestion(
        self, user_id: str, day: dt.date, suggestion: SuggestionRecord
    ) -> None:
        key = (user_id, day, suggestion.suggestion_key)
        existing = self.suggestions.get(key)
        row = suggestion.model_dump()
        if existing is not None:
            row["completed"] = existing["completed"]
        self.suggestions[key] = row


@pytest.fixture
def store() -> InMemoryRollupStore:
    return InMemoryRollupStore()


@pytest.fixture(autouse=True)
def _clean_metrics():
    reset_metrics()
    yield
    reset_metrics()
