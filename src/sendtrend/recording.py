"""Recording a session: gyms, route categories, per-category counts, notes.

Each operation validates caller input, runs the row-source writer and turns
backend failures into a ``SendTrendError`` carrying the message the app shows.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import date
from typing import Any

import psycopg
from pydantic import ValidationError

from .errors import (
    GymCreateError,
    NotesSaveError,
    RouteCategoryCreateError,
    RouteCountUpdateError,
    SessionCreateError,
    SessionDeleteError,
)
from .models import Gym, RouteCategory, SessionRouteEntry, _normalize_optional_text
from .row_source import (
    delete_session as _delete_session,
    fetch_session_route,
    insert_gym,
    insert_route_category,
    insert_session,
    insert_session_route,
    update_session_notes,
    update_session_route,
)

logger = logging.getLogger(__name__)

ROUTE_COUNT_FIELDS: tuple[str, ...] = (
    "unique_routes_completed",
    "unique_routes_attempted",
    "additional_attempts",
)


def route_count_update(
    existing: Mapping[str, Any] | None,
    session_id: str,
    route_category_id: str,
    field: str,
    value: int,
) -> dict[str, Any]:
    """Row to store after setting one count; negative values are stored as 0.

    Starts from ``existing`` when the pair already has a row, otherwise from
    all-zero counts for ``session_id`` / ``route_category_id``.
    """
    if field not in ROUTE_COUNT_FIELDS:
        raise ValueError(f"unknown route count field: {field!r}")
    if existing is None:
        payload: dict[str, Any] = {
            "session_id": session_id,
            "route_category_id": route_category_id,
        }
        payload.update({name: 0 for name in ROUTE_COUNT_FIELDS})
    else:
        payload = dict(existing)
    payload[field] = max(0, int(value))
    return payload


async def record_route_count(
    conn: psycopg.AsyncConnection[Any],
    session_id: str,
    route_category_id: str,
    field: str,
    value: int,
) -> SessionRouteEntry:
    """Set one count for a category in a session, inserting the row if needed."""
    route_count_update(None, session_id, route_category_id, field, value)

    try:
        existing = await fetch_session_route(conn, session_id, route_category_id)
        payload = route_count_update(existing, session_id, route_category_id, field, value)
        if existing is None:
            row = await insert_session_route(conn, payload)
        else:
            row = await update_session_route(conn, existing["id"], payload)
        if row is None:
            raise RouteCountUpdateError()
        entry = SessionRouteEntry.model_validate(row)
    except (psycopg.Error, ValidationError) as exc:
        logger.exception(
            "Route count update failed for session=%s category=%s",
            session_id,
            route_category_id,
            extra={"sendtrend_session_id": session_id},
        )
        raise RouteCountUpdateError() from exc

    logger.debug(
        "Set %s=%d for session=%s category=%s",
        field,
        payload[field],
        session_id,
        route_category_id,
    )
    return entry


async def add_route_category(
    conn: psycopg.AsyncConnection[Any],
    gym_id: str | None,
    name: str,
    difficulty_index: int | None,
    notes: str | None = None,
) -> RouteCategory:
    cleaned_name = _normalize_optional_text(name)
    if cleaned_name is None or not gym_id:
        raise RouteCategoryCreateError("Category name and gym are required")

    try:
        category = await insert_route_category(
            conn,
            gym_id,
            cleaned_name,
            difficulty_index,
            _normalize_optional_text(notes),
        )
    except (psycopg.Error, ValidationError) as exc:
        logger.exception("Adding route category failed for gym=%s", gym_id)
        raise RouteCategoryCreateError() from exc

    logger.info("Added route category %s to gym=%s", category.name, gym_id)
    return category


async def create_gym(
    conn: psycopg.AsyncConnection[Any],
    name: str,
    location: str,
) -> Gym:
    cleaned_name = _normalize_optional_text(name)
    cleaned_location = _normalize_optional_text(location)
    if cleaned_name is None or cleaned_location is None:
        raise GymCreateError("Gym name and location are required")

    try:
        gym = await insert_gym(conn, cleaned_name, cleaned_location)
    except (psycopg.Error, ValidationError) as exc:
        logger.exception("Creating gym %s failed", cleaned_name)
        raise GymCreateError() from exc

    logger.info("Created gym=%s (%s)", gym.id, gym.display_name)
    return gym


async def create_session(
    conn: psycopg.AsyncConnection[Any],
    user_id: str,
    gym_id: str | None,
    session_date: date | None = None,
) -> str:
    """Start a session at ``gym_id`` on ``session_date`` (default today); returns its id."""
    if not gym_id:
        raise SessionCreateError("Please select a gym")
    session_date = session_date or date.today()

    try:
        session_id = await insert_session(conn, user_id, gym_id, session_date)
    except psycopg.Error as exc:
        logger.exception(
            "Creating session failed for user=%s",
            user_id,
            extra={"sendtrend_user_id": user_id},
        )
        raise SessionCreateError() from exc

    logger.info(
        "Created session=%s for user=%s at gym=%s on %s",
        session_id,
        user_id,
        gym_id,
        session_date.isoformat(),
        extra={"sendtrend_user_id": user_id, "sendtrend_session_id": session_id},
    )
    return session_id


async def save_session_notes(
    conn: psycopg.AsyncConnection[Any],
    session_id: str,
    notes: str | None,
) -> None:
    """Store session notes; blank notes are stored as NULL."""
    try:
        await update_session_notes(conn, session_id, _normalize_optional_text(notes))
    except psycopg.Error as exc:
        logger.exception("Saving notes failed for session=%s", session_id)
        raise NotesSaveError() from exc


async def delete_session(
    conn: psycopg.AsyncConnection[Any],
    session_id: str,
) -> None:
    try:
        deleted = await _delete_session(conn, session_id)
    except psycopg.Error as exc:
        logger.exception(
            "Deleting session=%s failed",
            session_id,
            extra={"sendtrend_session_id": session_id},
        )
        raise SessionDeleteError() from exc

    logger.info("Deleted session=%s (rows=%d)", session_id, deleted)
