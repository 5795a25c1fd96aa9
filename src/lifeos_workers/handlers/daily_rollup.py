"""Background job handler for the daily life-score rollup.

Payload: ``{"target_date": "YYYY-MM-DD"}`` (optional; defaults to today).
The rollup writes through its own connections, so the job transaction only
covers the job bookkeeping.
"""

import logging
from typing import Any

import psycopg

from ..config import Config
from ..registry import register
from ..rollup import resolve_target_date, run_daily_rollup
from ..scheduler import DAILY_ROLLUP_JOB_TYPE
from ..store import postgres_store_factory

logger = logging.getLogger(__name__)


@register(DAILY_ROLLUP_JOB_TYPE)
async def handle_daily_rollup(
    conn: psycopg.AsyncConnection[Any], payload: dict[str, Any]
) -> None:
    config = Config.from_env()
    target_date = resolve_target_date((payload or {}).get("target_date"))

    result = await run_daily_rollup(
        postgres_store_factory(config.database_url),
        target_date,
        concurrency=config.rollup_concurrency,
        user_timeout_seconds=config.rollup_user_timeout_seconds,
    )

    if result.errors:
        logger.warning(
            "Daily rollup for %s finished with %d user errors: %s",
            result.target_date,
            len(result.errors),
            "; ".join(result.errors[:5]),
            extra={"lifeos_target_date": result.target_date.isoformat()},
        )
    else:
        logger.info(
            "Daily rollup for %s finished: %d users",
            result.target_date,
            result.total_count,
            extra={"lifeos_target_date": result.target_date.isoformat()},
        )
