"""Week-by-day grid for the activity heatmap."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any

from .daily_progress import DailyProgress
from .time_range import TimeRange
from .utils import days_before, format_short_date, sunday_index, week_start_sunday

# Short windows are widened so the heatmap always shows two weeks.
MIN_VISIBLE_DAYS = 14
EMPTY_RANGE_FALLBACK_DAYS = 365


@dataclass(frozen=True)
class CalendarCell:
    date: date
    count: int
    formatted_date: str

    @property
    def day(self) -> int:
        return self.date.day

    @property
    def month(self) -> int:
        """Calendar month, 1-12."""
        return self.date.month

    @property
    def month_index(self) -> int:
        """Zero-based month, 0-11, for chart code that indexes month names."""
        return self.date.month - 1

    @property
    def weekday(self) -> int:
        return sunday_index(self.date)

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "day": self.day,
            "month": self.month,
            "month_index": self.month_index,
            "count": self.count,
            "formatted_date": self.formatted_date,
        }


def grid_start(
    progress: Sequence[DailyProgress],
    time_range: TimeRange,
    today: date,
) -> date:
    if time_range.is_unbounded:
        if not progress:
            return days_before(today, EMPTY_RANGE_FALLBACK_DAYS)
        return min(record.date_obj for record in progress)

    return days_before(today, max(time_range.days, MIN_VISIBLE_DAYS))


def build_calendar_grid(
    progress: Sequence[DailyProgress],
    time_range: TimeRange | str,
    today: date | None = None,
) -> list[list[CalendarCell]]:
    """Weeks (Sunday first) from the week containing the window start to today.

    The final week stops at today and is not padded.
    """
    if not progress:
        return []

    time_range = TimeRange.parse(time_range)
    today = today or date.today()
    counts = {record.date_obj: record.total_completed for record in progress}

    weeks: list[list[CalendarCell]] = []
    day = week_start_sunday(grid_start(progress, time_range, today))
    while day <= today:
        # a window clamped to date.min opens on a Monday
        if not weeks or sunday_index(day) == 0:
            weeks.append([])
        weeks[-1].append(
            CalendarCell(
                date=day,
                count=counts.get(day, 0),
                formatted_date=format_short_date(day),
            )
        )
        day += timedelta(days=1)

    return weeks
