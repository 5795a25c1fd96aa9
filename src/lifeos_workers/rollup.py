"""Daily rollup orchestrator.

Lists the users with metrics for the target day, then scores each user in its
own task on a bounded pool. Every user runs the same sequence: validate the
metrics row, load profile and histories concurrently, re-learn the profile
when due, compute, then write the score, its suggestions and the re-learned
profile. A user's failure (or timeout) is recorded in the result and never
affects the others.
"""

from __future__ import annotations

import asyncio
import datetime as dt
import logging
import time
from typing import Any

from pydantic import ValidationError

from .errors import RollupError
from .life_score import compute_life_score
from .metrics import (
    record_handler_invocation,
    record_rollup_user_failed,
    record_rollup_user_processed,
)
from .models import HealthMetrics, RollupResult
from .profile_learning import learning_due, relearn_baselines
from .settings import DEFAULTS, ScoringDefaults
from .store import (
    RollupStore,
    StoreFactory,
    get_health_history,
    get_or_create_profile,
    get_score_history,
    save_daily_score,
    save_profile,
)

logger = logging.getLogger(__name__)


def resolve_target_date(target_date: dt.date | str | None) -> dt.date:
    """Accept a date, an ISO ``YYYY-MM-DD`` string or None (today)."""
    if target_date is None:
        return dt.date.today()
    if isinstance(target_date, dt.datetime):
        return target_date.date()
    if isinstance(target_date, dt.date):
        return target_date
    try:
        return dt.date.fromisoformat(str(target_date).strip())
    except ValueError as exc:
        raise ValueError(f"target_date must be YYYY-MM-DD, got {target_date!r}") from exc


async def score_user(
    store: RollupStore,
    metrics: HealthMetrics,
    defaults: ScoringDefaults = DEFAULTS,
) -> None:
    user_id = metrics.user_id
    day = metrics.date

    # Every read finishes before the first error is raised.
    results = await asyncio.gather(
        get_or_create_profile(store, user_id, defaults),
        get_health_history(store, user_id, day, defaults.health_history_days),
        get_score_history(store, user_id, day, defaults.score_history_days),
        return_exceptions=True,
    )
    for outcome in results:
        if isinstance(outcome, BaseException):
            raise outcome
    profile, health_history, score_history = results

    # Re-learned baselines are scored the same day, so a rerun (which finds
    # last_learning_date == day) sees the same profile.
    relearned = learning_due(profile, day, len(health_history), defaults)
    if relearned:
        window = [*health_history, metrics]
        profile = relearn_baselines(profile, window, day, defaults)

    daily = compute_life_score(
        metrics,
        profile,
        health_history,
        [entry.score for entry in score_history],
        defaults,
    )
    await save_daily_score(store, daily.score, daily.suggestions)

    if relearned:
        await save_profile(store, profile)
        logger.info(
            "Re-learned baselines for user %s from %d days",
            user_id,
            profile.data_points_count,
            extra={"lifeos_user_id": user_id, "lifeos_target_date": day.isoformat()},
        )


async def _run_user(
    open_store: StoreFactory,
    row: dict[str, Any],
    day: dt.date,
    timeout_seconds: float,
    defaults: ScoringDefaults,
) -> str | None:
    """Score one user; return an error string instead of raising."""
    user_id = str(row.get("user_id") or "unknown")
    started = time.monotonic()
    error: str | None = None

    try:
        async with asyncio.timeout(timeout_seconds):
            metrics = HealthMetrics.model_validate(row)
            async with open_store() as store:
                await score_user(store, metrics, defaults)
    except TimeoutError:
        error = f"{user_id}: timed out after {timeout_seconds:g}s"
    except ValidationError as exc:
        error = f"{user_id}: invalid metrics row: {exc.error_count()} validation error(s)"
    except RollupError as exc:
        error = str(exc)
    except Exception as exc:
        error = f"{user_id}: {exc}"

    duration_ms = (time.monotonic() - started) * 1000
    extra = {
        "lifeos_user_id": user_id,
        "lifeos_target_date": day.isoformat(),
        "lifeos_duration_ms": round(duration_ms, 1),
    }
    record_handler_invocation("rollup.user", duration_ms, error is None)
    if error is None:
        record_rollup_user_processed()
        logger.info("Scored user %s for %s", user_id, day, extra=extra)
    else:
        record_rollup_user_failed()
        logger.warning("Rollup failed for %s", error, extra=extra)
    return error


async def run_daily_rollup(
    open_store: StoreFactory,
    target_date: dt.date | str | None = None,
    *,
    concurrency: int = 4,
    user_timeout_seconds: float = 30.0,
    defaults: ScoringDefaults = DEFAULTS,
) -> RollupResult:
    """Score every user with metrics on target_date.

    Listing the day's metrics is the only step whose failure propagates;
    everything per user is captured into ``RollupResult.errors`` in the
    order the users were listed.
    """
    day = resolve_target_date(target_date)
    started = time.monotonic()

    async with open_store() as store:
        rows = await store.fetch_metrics_for_date(day)

    semaphore = asyncio.Semaphore(max(1, concurrency))
    outcomes: list[str | None] = [None] * len(rows)

    async def run_slot(index: int, row: dict[str, Any]) -> None:
        async with semaphore:
            outcomes[index] = await _run_user(
                open_store, row, day, user_timeout_seconds, defaults
            )

    async with asyncio.TaskGroup() as tg:
        for index, row in enumerate(rows):
            tg.create_task(run_slot(index, row))

    errors = [error for error in outcomes if error is not None]
    result = RollupResult(
        target_date=day,
        processed_count=len(rows) - len(errors),
        total_count=len(rows),
        errors=errors,
    )
    logger.info(
        "Daily rollup for %s: %d/%d users processed, %d errors",
        day,
        result.processed_count,
        result.total_count,
        len(errors),
        extra={
            "lifeos_target_date": day.isoformat(),
            "lifeos_duration_ms": round((time.monotonic() - started) * 1000, 1),
        },
    )
    return result
