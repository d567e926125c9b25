"""Completed routes bucketed by difficulty index."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from types import MappingProxyType
from typing import Any

from .models import RouteCategory


@dataclass(frozen=True)
class DifficultyBucket:
    difficulty: int
    difficulty_label: str
    count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "difficulty": self.difficulty,
            "difficulty_label": self.difficulty_label,
            "count": self.count,
        }


DifficultyTally = Mapping[int, DifficultyBucket]

EMPTY_DIFFICULTY_TALLY: DifficultyTally = MappingProxyType({})


def accumulate_difficulty(
    tally: DifficultyTally,
    category: RouteCategory,
    completed: int,
) -> DifficultyTally:
    """Return a new tally with ``completed`` added to the category's bucket.

    The first category seen for a difficulty index names the bucket.
    """
    difficulty = category.difficulty_index
    if difficulty is None:
        return tally
    bucket = tally.get(difficulty) or DifficultyBucket(
        difficulty=difficulty,
        difficulty_label=category.name,
    )
    updated = dict(tally)
    updated[difficulty] = replace(bucket, count=bucket.count + completed)
    return MappingProxyType(updated)


def aggregate_difficulty_distribution(tally: DifficultyTally) -> list[DifficultyBucket]:
    return [tally[difficulty] for difficulty in sorted(tally)]
