"""Per-date progress: routes completed, weighted difficulty, gyms visited.

One pass over the session rows also produces the weekday tally and the
difficulty tally, which are finalized by :mod:`sendtrend.weekday` and
:mod:`sendtrend.difficulty`.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Any

from .category_index import CategoryIndex, difficulty_for
from .difficulty import EMPTY_DIFFICULTY_TALLY, DifficultyTally, accumulate_difficulty
from .models import SessionRouteEntry, SessionRow
from .utils import format_short_date, safe_average
from .weekday import WeekdayTally, accumulate_weekday, empty_weekday_tally


@dataclass(frozen=True)
class DayAccumulator:
    """Running totals for one calendar date."""

    date: date
    total_completed: int = 0
    difficulty_sum: int = 0
    routes_with_difficulty: int = 0
    gym_names: frozenset[str] = field(default_factory=frozenset)


@dataclass(frozen=True)
class DailyProgress:
    date: str
    date_obj: date
    formatted_date: str
    total_completed: int
    difficulty_sum: int
    routes_with_difficulty: int
    average_difficulty: float
    gym_count: int
    gym_names: tuple[str, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "formatted_date": self.formatted_date,
            "total_completed": self.total_completed,
            "average_difficulty": self.average_difficulty,
            "gym_count": self.gym_count,
            "gym_names": list(self.gym_names),
        }


@dataclass(frozen=True)
class DailyProgressResult:
    progress: list[DailyProgress]
    weekday_tally: WeekdayTally
    difficulty_tally: DifficultyTally


def visit_gym(day: DayAccumulator, gym_name: str) -> DayAccumulator:
    if gym_name in day.gym_names:
        return day
    return replace(day, gym_names=day.gym_names | {gym_name})


def add_route_entry(
    day: DayAccumulator,
    entry: SessionRouteEntry,
    index: CategoryIndex,
) -> DayAccumulator:
    """Fold one session-route entry into a day's totals.

    Entries with nothing completed are ignored. Entries whose category does not
    resolve to a difficulty index still count towards ``total_completed``.
    """
    completed = entry.completed
    if completed <= 0:
        return day

    day = replace(day, total_completed=day.total_completed + completed)
    category = difficulty_for(index, entry.route_category_id)
    if category is None:
        return day
    return replace(
        day,
        difficulty_sum=day.difficulty_sum + category.difficulty_index * completed,
        routes_with_difficulty=day.routes_with_difficulty + completed,
    )


def finalize_day(day: DayAccumulator) -> DailyProgress:
    return DailyProgress(
        date=day.date.isoformat(),
        date_obj=day.date,
        formatted_date=format_short_date(day.date),
        total_completed=day.total_completed,
        difficulty_sum=day.difficulty_sum,
        routes_with_difficulty=day.routes_with_difficulty,
        average_difficulty=safe_average(day.difficulty_sum, day.routes_with_difficulty),
        gym_count=len(day.gym_names),
        gym_names=tuple(sorted(day.gym_names)),
    )


def aggregate_daily_progress(
    sessions: Iterable[SessionRow],
    index: CategoryIndex,
) -> DailyProgressResult:
    """Group sessions by date and collect the weekday and difficulty tallies."""
    days: dict[str, DayAccumulator] = {}
    weekday_tally = empty_weekday_tally()
    difficulty_tally = EMPTY_DIFFICULTY_TALLY

    for session in sessions:
        key = session.date_key
        day = days.get(key) or DayAccumulator(date=session.date)
        day = visit_gym(day, session.gym_display_name)

        for entry in session.session_routes:
            if entry.completed <= 0:
                continue
            day = add_route_entry(day, entry, index)
            weekday_tally = accumulate_weekday(weekday_tally, session.date, entry.completed)
            category = difficulty_for(index, entry.route_category_id)
            if category is not None:
                difficulty_tally = accumulate_difficulty(difficulty_tally, category, entry.completed)

        days[key] = day

    progress = [finalize_day(days[key]) for key in sorted(days)]
    return DailyProgressResult(
        progress=progress,
        weekday_tally=weekday_tally,
        difficulty_tally=difficulty_tally,
    )
