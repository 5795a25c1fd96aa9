"""Durable once-per-day enqueueing of the daily rollup job."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
import logging
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import psycopg
from psycopg.rows import dict_row
from psycopg.types.json import Json

logger = logging.getLogger(__name__)

DAILY_ROLLUP_JOB_TYPE = "rollup.daily"


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def due_target_date(now: datetime, tz_name: str = "UTC") -> date:
    """The day a rollup run at ``now`` should score: yesterday in tz_name."""
    try:
        zone = ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown rollup timezone {tz_name!r}") from exc
    local_today = _as_utc(now).astimezone(zone).date()
    return local_today - timedelta(days=1)


async def ensure_daily_rollup_job(
    conn: psycopg.AsyncConnection[Any],
    now: datetime,
    tz_name: str = "UTC",
) -> int | None:
    """Enqueue the rollup for the due day unless one already exists.

    Returns the new job id, or None when a job for that day is already
    pending, processing, completed or dead. A dead day stays dead until an
    operator re-runs it with ``lifeos-rollup --date``. Must run inside a
    transaction; the advisory lock serializes concurrent workers until commit.
    """
    target = due_target_date(now, tz_name).isoformat()

    async with conn.cursor(row_factory=dict_row) as cur:
        await cur.execute(
            "SELECT pg_advisory_xact_lock(hashtext(%s))",
            (DAILY_ROLLUP_JOB_TYPE,),
        )
        await cur.execute(
            """
            SELECT id
            FROM background_jobs
            WHERE job_type = %s
              AND payload->>'target_date' = %s
              AND status IN ('pending', 'processing', 'completed', 'dead')
            LIMIT 1
            """,
            (DAILY_ROLLUP_JOB_TYPE, target),
        )
        if await cur.fetchone() is not None:
            return None

        await cur.execute(
            """
            INSERT INTO background_jobs (job_type, payload, scheduled_for)
            VALUES (%s, %s, NOW())
            RETURNING id
            """,
            (DAILY_ROLLUP_JOB_TYPE, Json({"target_date": target})),
        )
        row = await cur.fetchone()

    if row is None:
        return None
    job_id = int(row["id"])
    logger.info(
        "Enqueued %s job %d for %s",
        DAILY_ROLLUP_JOB_TYPE,
        job_id,
        target,
        extra={"lifeos_target_date": target},
    )
    return job_id
