"""Single-session breakdown and helpers for starting a new session."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

import psycopg
from pydantic import ValidationError

from .category_index import CategoryIndex, build_category_index
from .errors import SessionSummaryLoadError
from .models import Gym, RouteCategory, SessionRouteEntry, SessionRow
from .row_source import fetch_categories, fetch_session
from .utils import round_one_decimal

logger = logging.getLogger(__name__)

RECENT_GYM_LIMIT = 3


def success_rate(completed: int, attempted: int) -> float:
    """Percentage of attempted routes completed, one decimal; 0 with no attempts."""
    if attempted <= 0:
        return 0.0
    return round_one_decimal(completed / attempted * 100)


def _difficulty_sort_key(difficulty_index: int | None) -> float:
    return math.inf if difficulty_index is None else difficulty_index


@dataclass(frozen=True)
class RouteStat:
    category_id: str
    category_name: str
    difficulty_index: int | None
    notes: str | None
    completed: int
    attempted: int
    additional: int

    @property
    def success_rate(self) -> float:
        return success_rate(self.completed, self.attempted)

    def to_dict(self) -> dict[str, Any]:
        return {
            "category_id": self.category_id,
            "category_name": self.category_name,
            "difficulty_index": self.difficulty_index,
            "notes": self.notes,
            "completed": self.completed,
            "attempted": self.attempted,
            "additional": self.additional,
            "success_rate": self.success_rate,
        }


@dataclass(frozen=True)
class RouteTotals:
    completed: int = 0
    attempted: int = 0
    additional: int = 0

    @property
    def success_rate(self) -> float:
        return success_rate(self.completed, self.attempted)


@dataclass(frozen=True)
class SessionSummary:
    route_stats: list[RouteStat]
    totals: RouteTotals
    session: SessionRow | None = None
    distribution: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "route_stats": [stat.to_dict() for stat in self.route_stats],
            "totals": {
                "completed": self.totals.completed,
                "attempted": self.totals.attempted,
                "additional": self.totals.additional,
                "success_rate": self.totals.success_rate,
            },
            "distribution": list(self.distribution),
        }
        if self.session is not None:
            payload["session"] = {
                "id": self.session.id,
                "date": self.session.date_key,
                "gym_name": self.session.gym_display_name,
                "notes": self.session.notes,
            }
        return payload


def summarize_session(
    entries: Iterable[SessionRouteEntry],
    index: CategoryIndex,
    session: SessionRow | None = None,
) -> SessionSummary:
    """Per-category stats for one session, easiest first.

    Entries whose category is unknown are left out of both stats and totals.
    """
    stats = []
    for entry in entries:
        category = index.get(entry.route_category_id)
        if category is None:
            continue
        stats.append(
            RouteStat(
                category_id=category.id,
                category_name=category.name,
                difficulty_index=category.difficulty_index,
                notes=category.notes,
                completed=entry.unique_routes_completed,
                attempted=entry.unique_routes_attempted,
                additional=entry.additional_attempts,
            )
        )
    stats.sort(key=lambda stat: _difficulty_sort_key(stat.difficulty_index))

    totals = RouteTotals(
        completed=sum(stat.completed for stat in stats),
        attempted=sum(stat.attempted for stat in stats),
        additional=sum(stat.additional for stat in stats),
    )
    distribution = [
        {
            "name": stat.category_name,
            "value": stat.completed,
            "difficulty_index": stat.difficulty_index,
        }
        for stat in stats
        if stat.completed > 0
    ]
    return SessionSummary(
        route_stats=stats,
        totals=totals,
        session=session,
        distribution=distribution,
    )


def recent_gyms(sessions: Iterable[SessionRow], limit: int = RECENT_GYM_LIMIT) -> list[Gym]:
    """Distinct gyms in the order sessions are given (newest first when fetched)."""
    seen: set[str] = set()
    gyms: list[Gym] = []
    for session in sessions:
        if len(gyms) >= limit:
            break
        if session.gyms is None:
            continue
        gym_id = session.gym_id or session.gyms.id or session.gyms.display_name
        if gym_id in seen:
            continue
        seen.add(gym_id)
        gym = session.gyms
        if gym.id is None and session.gym_id is not None:
            gym = gym.model_copy(update={"id": session.gym_id})
        gyms.append(gym)
    return gyms


def sort_categories(categories: Iterable[RouteCategory]) -> list[RouteCategory]:
    """Ascending difficulty index; categories without one go last."""
    return sorted(categories, key=lambda category: _difficulty_sort_key(category.difficulty_index))


async def load_session_summary(
    conn: psycopg.AsyncConnection[Any],
    session_id: str,
) -> SessionSummary:
    try:
        session = await fetch_session(conn, session_id)
        if session is None:
            raise SessionSummaryLoadError("Session not found")
        categories = await fetch_categories(conn)
    except (psycopg.Error, ValidationError) as exc:
        logger.exception("Session summary fetch failed for session=%s", session_id)
        raise SessionSummaryLoadError() from exc

    summary = summarize_session(
        session.session_routes,
        build_category_index(categories),
        session=session,
    )
    logger.info(
        "Summarized session=%s (categories=%d, completed=%d)",
        session_id,
        len(summary.route_stats),
        summary.totals.completed,
    )
    return summary
