"""Orchestrator behaviour against the in-memory store."""

import datetime as dt

import pytest

from lifeos_workers.metrics import get_metrics
from lifeos_workers.rollup import resolve_target_date, run_daily_rollup

from conftest import WEDNESDAY, make_profile


def _seed_users(store, *user_ids, day=WEDNESDAY, **fields):
    for user_id in user_ids:
        store.add_metrics(day, user_id, **fields)


class TestResolveTargetDate:
    def test_accepts_date_and_iso_string(self):
        assert resolve_target_date(WEDNESDAY) == WEDNESDAY
        assert resolve_target_date("2026-10-14") == WEDNESDAY
        assert resolve_target_date(dt.datetime(2026, 10, 14, 23, 59)) == WEDNESDAY

    def test_defaults_to_today(self):
        assert resolve_target_date(None) == dt.date.today()

    def test_rejects_garbage(self):
        with pytest.raises(ValueError, match="YYYY-MM-DD"):
            resolve_target_date("14/10/2026")


@pytest.mark.asyncio
async def test_scores_every_user(store):
    _seed_users(store, "alice", "bob")

    result = await run_daily_rollup(store.factory(), "2026-10-14")

    assert result.target_date == WEDNESDAY
    assert result.total_count == 2
    assert result.processed_count == 2
    assert result.errors == []
    assert set(store.scores) == {("alice", WEDNESDAY), ("bob", WEDNESDAY)}
    assert store.suggestions[("alice", WEDNESDAY, "gratitude-note")]["completed"] is False
    assert get_metrics()["rollup_users_processed"] == 2


@pytest.mark.asyncio
async def test_no_metrics_means_empty_result(store):
    result = await run_daily_rollup(store.factory(), WEDNESDAY)
    assert result.total_count == 0
    assert result.processed_count == 0
    assert result.errors == []


@pytest.mark.asyncio
async def test_missing_profile_created_with_defaults(store):
    _seed_users(store, "alice")
    await run_daily_rollup(store.factory(), WEDNESDAY)
    assert store.profiles["alice"]["baseline_sleep"] == 7.5
    assert store.profiles["alice"]["data_points_count"] == 0


@pytest.mark.asyncio
async def test_one_failing_user_does_not_affect_others(store):
    _seed_users(store, "alice", "bob", "carol")
    store.failing_profile_reads.add("bob")

    result = await run_daily_rollup(store.factory(), WEDNESDAY)

    assert result.total_count == 3
    assert result.processed_count == 2
    assert result.errors == ["bob: profile read failed: connection reset by peer"]
    assert ("bob", WEDNESDAY) not in store.scores
    assert ("alice", WEDNESDAY) in store.scores
    assert ("carol", WEDNESDAY) in store.scores
    assert get_metrics()["rollup_users_failed"] == 1


@pytest.mark.asyncio
async def test_write_failure_is_a_user_error(store):
    _seed_users(store, "alice", "bob")
    store.failing_score_writes.add("alice")

    result = await run_daily_rollup(store.factory(), WEDNESDAY)

    assert result.processed_count == 1
    assert result.errors == ["alice: score write failed: disk full"]


@pytest.mark.asyncio
async def test_invalid_metrics_row_is_a_user_error(store):
    _seed_users(store, "alice")
    store.add_raw_metrics({"user_id": "bob", "date": WEDNESDAY, "mood": 9})

    result = await run_daily_rollup(store.factory(), WEDNESDAY)

    assert result.processed_count == 1
    assert len(result.errors) == 1
    assert result.errors[0].startswith("bob: invalid metrics row")


@pytest.mark.asyncio
async def test_slow_user_times_out(store):
    _seed_users(store, "alice", "slow")
    store.delays["slow"] = 5.0

    result = await run_daily_rollup(store.factory(), WEDNESDAY, user_timeout_seconds=0.05)

    assert result.processed_count == 1
    assert result.errors == ["slow: timed out after 0.05s"]
    assert ("alice", WEDNESDAY) in store.scores


@pytest.mark.asyncio
async def test_errors_keep_listing_order(store):
    _seed_users(store, "a-user", "b-user", "c-user")
    store.failing_profile_reads.update({"a-user", "c-user"})
    store.delays["a-user"] = 0.05

    result = await run_daily_rollup(store.factory(), WEDNESDAY, concurrency=3)

    assert [error.split(":")[0] for error in result.errors] == ["a-user", "c-user"]


@pytest.mark.asyncio
async def test_concurrency_is_bounded(store):
    _seed_users(store, *[f"user-{i}" for i in range(8)])
    for i in range(8):
        store.delays[f"user-{i}"] = 0.02

    result = await run_daily_rollup(store.factory(), WEDNESDAY, concurrency=2)

    assert result.processed_count == 8
    assert store.max_in_flight <= 2


@pytest.mark.asyncio
async def test_rerun_is_idempotent(store):
    # learned two days ago, so the rerun sees the same profile
    store.profiles["alice"] = make_profile(
        "alice", last_learning_date=WEDNESDAY - dt.timedelta(days=2)
    ).model_dump()
    for offset in range(20, 0, -1):
        store.add_metrics(WEDNESDAY - dt.timedelta(days=offset), "alice", sleep_hours=7 + offset % 3)
    _seed_users(store, "alice")

    await run_daily_rollup(store.factory(), WEDNESDAY)
    first = dict(store.scores[("alice", WEDNESDAY)])
    await run_daily_rollup(store.factory(), WEDNESDAY)

    assert store.scores[("alice", WEDNESDAY)] == first


@pytest.mark.asyncio
async def test_rerun_keeps_completed_suggestions(store):
    _seed_users(store, "alice")
    await run_daily_rollup(store.factory(), WEDNESDAY)
    store.suggestions[("alice", WEDNESDAY, "gratitude-note")]["completed"] = True

    await run_daily_rollup(store.factory(), WEDNESDAY)

    assert store.suggestions[("alice", WEDNESDAY, "gratitude-note")]["completed"] is True


@pytest.mark.asyncio
async def test_profile_relearned_when_due(store):
    for offset in range(20, 0, -1):
        store.add_metrics(WEDNESDAY - dt.timedelta(days=offset), "alice", sleep_hours=6, steps=5000)
    _seed_users(store, "alice", sleep_hours=6, steps=5000)

    await run_daily_rollup(store.factory(), WEDNESDAY)

    profile = store.profiles["alice"]
    assert profile["baseline_sleep"] == 6.0
    assert profile["baseline_activity"] == 5000.0
    assert profile["data_points_count"] == 21
    assert profile["last_learning_date"] == WEDNESDAY


@pytest.mark.asyncio
async def test_profile_not_relearned_with_short_history(store):
    store.add_metrics(WEDNESDAY - dt.timedelta(days=1), "alice", sleep_hours=6)
    _seed_users(store, "alice", sleep_hours=6)

    await run_daily_rollup(store.factory(), WEDNESDAY)

    assert store.profiles["alice"]["baseline_sleep"] == 7.5
    assert store.profiles["alice"]["last_learning_date"] is None


@pytest.mark.asyncio
async def test_listing_failure_propagates(store):
    async def broken(day):
        raise RuntimeError("relation health_metrics does not exist")

    store.fetch_metrics_for_date = broken
    with pytest.raises(RuntimeError, match="health_metrics"):
        await run_daily_rollup(store.factory(), WEDNESDAY)


@pytest.mark.asyncio
async def test_score_history_feeds_trends(store):
    _seed_users(store, "alice")
    previous_day = WEDNESDAY - dt.timedelta(days=1)
    _seed_users(store, "alice", day=previous_day, sleep_hours=3, steps=500, stress=5)
    await run_daily_rollup(store.factory(), previous_day)
    await run_daily_rollup(store.factory(), WEDNESDAY)

    yesterday = store.scores[("alice", previous_day)]["score"]
    today = store.scores[("alice", WEDNESDAY)]
    assert today["trend_3d"] == round(today["score"] - yesterday)
    assert today["prediction_3d"] == float(yesterday)


@pytest.mark.asyncio
async def test_rerun_after_first_learning_is_idempotent(store):
    for offset in range(20, 0, -1):
        store.add_metrics(WEDNESDAY - dt.timedelta(days=offset), "alice", mood=5, energy=5)
    _seed_users(store, "alice", mood=5, energy=5)

    await run_daily_rollup(store.factory(), WEDNESDAY)
    first = dict(store.scores[("alice", WEDNESDAY)])
    assert store.profiles["alice"]["last_learning_date"] == WEDNESDAY
    await run_daily_rollup(store.factory(), WEDNESDAY)

    second = store.scores[("alice", WEDNESDAY)]
    assert first["personal_baseline"] == 100.0
    assert second == first


@pytest.mark.parametrize(
    ("prior_days", "learned_on"),
    [(13, None), (14, WEDNESDAY)],
)
@pytest.mark.asyncio
async def test_learning_counts_prior_days_only(store, prior_days, learned_on):
    for offset in range(prior_days, 0, -1):
        store.add_metrics(WEDNESDAY - dt.timedelta(days=offset), "alice")
    _seed_users(store, "alice")

    await run_daily_rollup(store.factory(), WEDNESDAY)

    assert store.profiles["alice"]["last_learning_date"] == learned_on


@pytest.mark.asyncio
async def test_read_failure_waits_for_sibling_reads(store):
    _seed_users(store, "alice")
    store.failing_history_reads.add("alice")
    store.delays["alice"] = 0.05

    result = await run_daily_rollup(store.factory(), WEDNESDAY)

    assert result.errors == [
        "alice: health history read failed: canceling statement due to statement timeout"
    ]
    assert store.in_flight == 0
    assert ("alice", WEDNESDAY) not in store.scores


@pytest.mark.asyncio
async def test_first_failing_read_is_reported(store):
    _seed_users(store, "alice")
    store.failing_profile_reads.add("alice")
    store.failing_history_reads.add("alice")

    result = await run_daily_rollup(store.factory(), WEDNESDAY)

    assert result.errors == ["alice: profile read failed: connection reset by peer"]
