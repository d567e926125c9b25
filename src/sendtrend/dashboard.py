"""Dashboard assembly: raw rows in, every chart payload out.

Full recompute on every call; nothing is carried between invocations.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date
from typing import Any

import psycopg
from pydantic import ValidationError

from .calendar_grid import CalendarCell, build_calendar_grid
from .category_index import build_category_index
from .daily_progress import DailyProgress, aggregate_daily_progress
from .difficulty import DifficultyBucket, aggregate_difficulty_distribution
from .errors import DashboardLoadError
from .models import RouteCategory, SessionRow, parse_categories, parse_session_rows
from .row_source import fetch_categories, fetch_sessions
from .stacked import DateDifficultyRecord, aggregate_by_date_and_difficulty, difficulty_keys
from .time_range import TimeRange
from .weekday import WeekdayAverage, aggregate_weekday_averages

logger = logging.getLogger(__name__)

DASHBOARD_SECTIONS: tuple[str, ...] = (
    "progress",
    "calendar",
    "stacked",
    "weekday",
    "difficulty",
    "categories",
)


@dataclass(frozen=True)
class Dashboard:
    time_range: TimeRange
    categories: Mapping[str, RouteCategory]
    progress: list[DailyProgress]
    calendar: list[list[CalendarCell]]
    stacked: list[DateDifficultyRecord]
    weekday: list[WeekdayAverage]
    difficulty: list[DifficultyBucket]

    @property
    def total_completed(self) -> int:
        return sum(day.total_completed for day in self.progress)

    def to_dict(self) -> dict[str, Any]:
        return {
            "time_range": str(self.time_range),
            "progress": [day.to_dict() for day in self.progress],
            "calendar": [[cell.to_dict() for cell in week] for week in self.calendar],
            "stacked": [record.to_dict() for record in self.stacked],
            "difficulty_keys": difficulty_keys(self.stacked),
            "weekday": [bucket.to_dict() for bucket in self.weekday],
            "difficulty": [bucket.to_dict() for bucket in self.difficulty],
            "categories": {
                category_id: category.model_dump()
                for category_id, category in self.categories.items()
            },
        }


def build_dashboard(
    sessions: Iterable[SessionRow | Mapping[str, Any]],
    categories: Iterable[RouteCategory | Mapping[str, Any]],
    time_range: TimeRange | str,
    today: date | None = None,
) -> Dashboard:
    time_range = TimeRange.parse(time_range)
    sessions = parse_session_rows(sessions)
    index = build_category_index(parse_categories(categories))

    daily = aggregate_daily_progress(sessions, index)
    return Dashboard(
        time_range=time_range,
        categories=index,
        progress=daily.progress,
        calendar=build_calendar_grid(daily.progress, time_range, today=today),
        stacked=aggregate_by_date_and_difficulty(sessions, index),
        weekday=aggregate_weekday_averages(daily.weekday_tally),
        difficulty=aggregate_difficulty_distribution(daily.difficulty_tally),
    )


async def load_dashboard(
    conn: psycopg.AsyncConnection[Any],
    user_id: str,
    time_range: TimeRange | str,
    today: date | None = None,
) -> Dashboard:
    """Fetch the user's rows for the window and build the dashboard."""
    time_range = TimeRange.parse(time_range)
    today = today or date.today()
    start = time.monotonic()

    try:
        sessions = await fetch_sessions(conn, user_id, time_range.fetch_start(today))
        categories = await fetch_categories(conn)
    except (psycopg.Error, ValidationError) as exc:
        logger.exception(
            "Dashboard fetch failed for user=%s",
            user_id,
            extra={"sendtrend_user_id": user_id, "sendtrend_time_range": str(time_range)},
        )
        raise DashboardLoadError() from exc

    dashboard = build_dashboard(sessions, categories, time_range, today=today)
    duration_ms = round((time.monotonic() - start) * 1000, 1)
    logger.info(
        "Built dashboard for user=%s (range=%s, sessions=%d, days=%d, completed=%d)",
        user_id,
        time_range,
        len(sessions),
        len(dashboard.progress),
        dashboard.total_completed,
        extra={
            "sendtrend_user_id": user_id,
            "sendtrend_time_range": str(time_range),
            "sendtrend_duration_ms": duration_ms,
        },
    )
    return dashboard
