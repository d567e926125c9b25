"""CLI entry point: print dashboard or session summary payloads as JSON."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from datetime import date
from typing import Any, Sequence

import psycopg

from .config import Config
from .dashboard import DASHBOARD_SECTIONS, load_dashboard
from .errors import SendTrendError
from .logging import setup_logging
from .session_summary import load_session_summary
from .time_range import TIME_RANGE_CHOICES

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sendtrend",
        description="Aggregate climbing sessions into chart-ready JSON.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    dashboard = sub.add_parser("dashboard", help="Progress dashboard for one user.")
    dashboard.add_argument(
        "--user-id",
        required=True,
        help="User UUID whose sessions should be aggregated.",
    )
    dashboard.add_argument(
        "--time-range",
        default=None,
        help=(
            "Trailing day count or 'all'. Defaults to SENDTREND_TIME_RANGE. "
            f"Dashboard choices: {', '.join(TIME_RANGE_CHOICES)}."
        ),
    )
    dashboard.add_argument(
        "--today",
        type=date.fromisoformat,
        default=None,
        help="Reference date (YYYY-MM-DD) for windows and the calendar. Defaults to today.",
    )
    dashboard.add_argument(
        "--section",
        action="append",
        choices=DASHBOARD_SECTIONS,
        help="Only print these sections (repeatable). Defaults to all.",
    )

    summary = sub.add_parser("session-summary", help="Per-category breakdown of one session.")
    summary.add_argument(
        "--session-id",
        required=True,
        help="Session UUID to summarize.",
    )
    return parser


def _select_sections(payload: dict[str, Any], sections: list[str] | None) -> dict[str, Any]:
    if not sections:
        return payload
    keep = set(sections) | {"time_range"}
    if "stacked" in keep:
        keep.add("difficulty_keys")
    return {key: value for key, value in payload.items() if key in keep}


async def _run(args: argparse.Namespace, config: Config) -> int:
    async with await psycopg.AsyncConnection.connect(
        config.database_url,
        connect_timeout=int(config.connect_timeout_seconds),
    ) as conn:
        if args.command == "dashboard":
            dashboard = await load_dashboard(
                conn,
                args.user_id,
                args.time_range or config.time_range,
                today=args.today,
            )
            result = _select_sections(dashboard.to_dict(), args.section)
        else:
            summary = await load_session_summary(conn, args.session_id)
            result = summary.to_dict()

    print(json.dumps(result, indent=2, default=str))
    return 0


def main(argv: Sequence[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    config = Config.from_env()
    setup_logging(config.log_format, config.log_level)

    try:
        code = asyncio.run(_run(args, config))
    except SendTrendError as exc:
        print(exc.user_message, file=sys.stderr)
        code = 1
    except ValueError as exc:
        print(str(exc), file=sys.stderr)
        code = 1
    except psycopg.OperationalError as exc:
        logger.error("Could not connect to database: %s", exc)
        print("Could not connect to database", file=sys.stderr)
        code = 1
    raise SystemExit(code)


if __name__ == "__main__":
    main()
