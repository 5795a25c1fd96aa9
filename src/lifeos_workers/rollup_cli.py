"""CLI entry point for a one-off daily rollup run."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
from typing import Sequence

from .logging import setup_logging
from .rollup import resolve_target_date, run_daily_rollup
from .store import postgres_store_factory


def _positive_int(raw: str) -> int:
    value = int(raw)
    if value < 1:
        raise argparse.ArgumentTypeError("must be >= 1")
    return value


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lifeos-rollup",
        description="Compute daily life scores for every user with metrics on a date.",
    )
    parser.add_argument(
        "--date",
        default=None,
        help="Target date (YYYY-MM-DD). Defaults to today.",
    )
    parser.add_argument(
        "--concurrency",
        default=None,
        type=_positive_int,
        help="Users scored in parallel (default: LIFEOS_ROLLUP_CONCURRENCY or 4).",
    )
    parser.add_argument(
        "--user-timeout",
        default=None,
        type=float,
        help="Per-user timeout in seconds (default: LIFEOS_ROLLUP_USER_TIMEOUT or 30).",
    )
    return parser


async def _run(args: argparse.Namespace) -> int:
    database_url = os.environ.get("DATABASE_URL", "").strip()
    if not database_url:
        raise RuntimeError("DATABASE_URL must be set")

    concurrency = args.concurrency or int(os.environ.get("LIFEOS_ROLLUP_CONCURRENCY", "4"))
    user_timeout = args.user_timeout or float(
        os.environ.get("LIFEOS_ROLLUP_USER_TIMEOUT", "30.0")
    )

    result = await run_daily_rollup(
        postgres_store_factory(database_url),
        resolve_target_date(args.date),
        concurrency=concurrency,
        user_timeout_seconds=user_timeout,
    )

    print(result.model_dump_json(indent=2))
    return 1 if result.errors else 0


def main(argv: Sequence[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)
    setup_logging(os.environ.get("LIFEOS_LOG_FORMAT", "text"), level=logging.WARNING)
    try:
        resolve_target_date(args.date)
    except ValueError as exc:
        parser.error(str(exc))
    raise SystemExit(asyncio.run(_run(args)))


if __name__ == "__main__":
    main()
