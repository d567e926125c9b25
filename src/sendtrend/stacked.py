"""Completed routes per date, split by difficulty index (stacked bar chart).

A date with several sessions collapses into one record. ``gym_name`` and
``session_id`` come from the first session seen for that date, in the order
the rows were supplied; tooltips and drill-through rely on a single value.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from datetime import date
from types import MappingProxyType
from typing import Any

from .category_index import CategoryIndex, difficulty_for
from .models import SessionRouteEntry, SessionRow
from .utils import format_short_date, safe_average


def _with(mapping: Mapping[int, Any], key: int, value: Any) -> Mapping[int, Any]:
    updated = dict(mapping)
    updated[key] = value
    return MappingProxyType(updated)


@dataclass(frozen=True)
class DateDifficultyAccumulator:
    date: date
    gym_name: str
    session_id: str
    counts: Mapping[int, int] = field(default_factory=lambda: MappingProxyType({}))
    difficulty_map: Mapping[int, str] = field(default_factory=lambda: MappingProxyType({}))
    total_difficulty_sum: int = 0
    total_routes: int = 0


@dataclass(frozen=True)
class DateDifficultyRecord:
    date: str
    formatted_date: str
    gym_name: str
    session_id: str
    counts: Mapping[int, int]
    difficulty_map: Mapping[int, str]
    average_difficulty: float

    def sorted_counts(self) -> list[tuple[int, int]]:
        """(difficulty index, completed) pairs, ascending by index."""
        return sorted(self.counts.items())

    @property
    def total_routes(self) -> int:
        return sum(self.counts.values())

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "formatted_date": self.formatted_date,
            "gym_name": self.gym_name,
            "session_id": self.session_id,
            "counts": {str(k): v for k, v in self.sorted_counts()},
            "difficulty_map": {str(k): self.difficulty_map[k] for k in sorted(self.difficulty_map)},
            "average_difficulty": self.average_difficulty,
        }


def add_difficulty_entry(
    acc: DateDifficultyAccumulator,
    entry: SessionRouteEntry,
    index: CategoryIndex,
) -> DateDifficultyAccumulator:
    completed = entry.completed
    if completed <= 0:
        return acc
    category = difficulty_for(index, entry.route_category_id)
    if category is None:
        return acc

    difficulty = category.difficulty_index
    return replace(
        acc,
        counts=_with(acc.counts, difficulty, acc.counts.get(difficulty, 0) + completed),
        difficulty_map=_with(acc.difficulty_map, difficulty, entry.route_category_id),
        total_difficulty_sum=acc.total_difficulty_sum + difficulty * completed,
        total_routes=acc.total_routes + completed,
    )


def finalize_date_difficulty(acc: DateDifficultyAccumulator) -> DateDifficultyRecord:
    return DateDifficultyRecord(
        date=acc.date.isoformat(),
        formatted_date=format_short_date(acc.date),
        gym_name=acc.gym_name,
        session_id=acc.session_id,
        counts=acc.counts,
        difficulty_map=acc.difficulty_map,
        average_difficulty=safe_average(acc.total_difficulty_sum, acc.total_routes),
    )


def aggregate_by_date_and_difficulty(
    sessions: Iterable[SessionRow],
    index: CategoryIndex,
) -> list[DateDifficultyRecord]:
    by_date: dict[str, DateDifficultyAccumulator] = {}

    for session in sessions:
        key = session.date_key
        acc = by_date.get(key) or DateDifficultyAccumulator(
            date=session.date,
            gym_name=session.gym_display_name,
            session_id=session.id,
        )
        for entry in session.session_routes:
            acc = add_difficulty_entry(acc, entry, index)
        by_date[key] = acc

    return [finalize_date_difficulty(by_date[key]) for key in sorted(by_date)]


def difficulty_keys(records: Iterable[DateDifficultyRecord]) -> list[int]:
    """Every difficulty index present across records, ascending (one bar per key)."""
    keys: set[int] = set()
    for record in records:
        keys.update(record.counts)
    return sorted(keys)
