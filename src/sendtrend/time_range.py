"""Dashboard time windows: a trailing day count or unbounded ("all")."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from .errors import InvalidTimeRangeError
from .utils import days_before

ALL_TIME = "all"
DEFAULT_TIME_RANGE = "180"

# Windows offered by the dashboard selector, in display order.
TIME_RANGE_CHOICES: tuple[str, ...] = ("7", "30", "90", "180", "365", "730", ALL_TIME)

# Unbounded fetches still need a lower bound for the date filter.
_ALL_TIME_LOOKBACK_YEARS = 50


@dataclass(frozen=True)
class TimeRange:
    days: int | None

    @property
    def is_unbounded(self) -> bool:
        return self.days is None

    @classmethod
    def parse(cls, value: str | int | TimeRange) -> TimeRange:
        if isinstance(value, TimeRange):
            return value
        if isinstance(value, bool):
            raise InvalidTimeRangeError(f"invalid time range: {value!r}")
        if isinstance(value, int):
            if value < 0:
                raise InvalidTimeRangeError(f"time range must not be negative: {value}")
            return cls(days=value)

        text = str(value).strip()
        if text.lower() == ALL_TIME:
            return cls(days=None)
        if not text.isascii() or not text.isdigit():
            raise InvalidTimeRangeError(
                f"time range must be a day count or {ALL_TIME!r}, got {value!r}"
            )
        return cls(days=int(text))

    def fetch_start(self, today: date) -> date:
        """First date included in the row fetch for this window.

        Windows reaching past the first representable date start at ``date.min``.
        """
        if self.days is None:
            year = today.year - _ALL_TIME_LOOKBACK_YEARS
            if year < date.min.year:
                return date.min
            try:
                return today.replace(year=year)
            except ValueError:
                # Feb 29 in a year that is not a leap year
                return today.replace(year=year, day=28)
        return days_before(today, self.days)

    def __str__(self) -> str:
        return ALL_TIME if self.days is None else str(self.days)
