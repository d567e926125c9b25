"""Routes completed per weekday, averaged for the radar chart.

Accumulation and finalisation are separate steps: ``full_mark`` depends on the
maximum across all seven buckets, so it is only computed once the tally is
complete.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from datetime import date
from typing import Any

from .utils import safe_average, sunday_index

WEEKDAY_NAMES: tuple[str, ...] = (
    "Sunday",
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
)

WEEKDAY_FILLS: tuple[str, ...] = (
    "#FF5733",
    "#FFC300",
    "#36DBCA",
    "#3498DB",
    "#9B59B6",
    "#1ABC9C",
    "#2ECC71",
)

DEFAULT_FULL_MARK = 10
FULL_MARK_HEADROOM = 1.2


@dataclass(frozen=True)
class WeekdayBucket:
    name: str
    value: int = 0
    count: int = 0


WeekdayTally = tuple[WeekdayBucket, ...]


@dataclass(frozen=True)
class WeekdayAverage:
    name: str
    value: float
    count: int
    fill: str
    full_mark: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "value": self.value,
            "count": self.count,
            "fill": self.fill,
            "full_mark": self.full_mark,
        }


def empty_weekday_tally() -> WeekdayTally:
    return tuple(WeekdayBucket(name=name) for name in WEEKDAY_NAMES)


def accumulate_weekday(tally: WeekdayTally, day: date, completed: int) -> WeekdayTally:
    """Add one qualifying session-route entry to its weekday bucket."""
    idx = sunday_index(day)
    bucket = tally[idx]
    updated = replace(bucket, value=bucket.value + completed, count=bucket.count + 1)
    return tally[:idx] + (updated,) + tally[idx + 1:]


def _full_mark(averages: list[float]) -> int:
    peak = max(averages, default=0)
    if peak > 0:
        return math.ceil(peak * FULL_MARK_HEADROOM)
    return DEFAULT_FULL_MARK


def aggregate_weekday_averages(tally: WeekdayTally) -> list[WeekdayAverage]:
    """Finalize a complete tally into seven averaged records sharing one full_mark."""
    averages = [safe_average(bucket.value, bucket.count) for bucket in tally]
    full_mark = _full_mark(averages)
    return [
        WeekdayAverage(
            name=bucket.name,
            value=avg,
            count=bucket.count,
            fill=WEEKDAY_FILLS[i],
            full_mark=full_mark,
        )
        for i, (bucket, avg) in enumerate(zip(tally, averages))
    ]
