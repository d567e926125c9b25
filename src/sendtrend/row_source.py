"""Queries against the backend's climbing tables.

Tables: climbing_sessions, session_routes, gyms, route_categories. Row-level
security on the backend scopes what a connection can see and change. Writers
here run raw SQL only; validation and error wrapping live in ``recording``.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date
from typing import Any

import psycopg
from psycopg.rows import dict_row

from .models import Gym, RouteCategory, SessionRow, parse_categories

logger = logging.getLogger(__name__)

_SESSION_COLUMNS = """
    s.id, s.date, s.gym_id, s.notes,
    g.id AS gym_ref, g.name AS gym_name, g.location AS gym_location
"""


def _session_payload(row: dict[str, Any], routes: list[dict[str, Any]]) -> dict[str, Any]:
    gym = None
    if row.get("gym_name") is not None:
        gym = {
            "id": row.get("gym_ref"),
            "name": row["gym_name"],
            "location": row.get("gym_location"),
        }
    return {
        "id": row["id"],
        "date": row["date"],
        "gym_id": row.get("gym_id"),
        "notes": row.get("notes"),
        "gyms": gym,
        "session_routes": routes,
    }


async def _fetch_routes_by_session(
    conn: psycopg.AsyncConnection[Any],
    session_ids: list[Any],
) -> dict[str, list[dict[str, Any]]]:
    if not session_ids:
        return {}
    async with conn.cursor(row_factory=dict_row) as cur:
        await cur.execute(
            """
            SELECT session_id, route_category_id,
                   unique_routes_completed, unique_routes_attempted, additional_attempts
            FROM session_routes
            WHERE session_id = ANY(%s)
            ORDER BY id
            """,
            (session_ids,),
        )
        rows = await cur.fetchall()

    by_session: dict[str, list[dict[str, Any]]] = defaultdict(list)
    for row in rows:
        by_session[str(row["session_id"])].append(row)
    return by_session


async def _assemble(
    conn: psycopg.AsyncConnection[Any],
    session_rows: list[dict[str, Any]],
) -> list[SessionRow]:
    routes = await _fetch_routes_by_session(conn, [row["id"] for row in session_rows])
    return [
        SessionRow.model_validate(_session_payload(row, routes.get(str(row["id"]), [])))
        for row in session_rows
    ]


async def fetch_sessions(
    conn: psycopg.AsyncConnection[Any],
    user_id: str,
    start_date: date,
) -> list[SessionRow]:
    """Sessions on or after ``start_date`` with gym and route counts, oldest first."""
    async with conn.cursor(row_factory=dict_row) as cur:
        await cur.execute(
            f"""
            SELECT {_SESSION_COLUMNS}
            FROM climbing_sessions s
            LEFT JOIN gyms g ON g.id = s.gym_id
            WHERE s.user_id = %s
              AND s.date >= %s
            ORDER BY s.date ASC
            """,
            (user_id, start_date),
        )
        session_rows = await cur.fetchall()

    sessions = await _assemble(conn, session_rows)
    logger.debug(
        "Fetched %d sessions for user=%s since %s",
        len(sessions),
        user_id,
        start_date.isoformat(),
    )
    return sessions


async def fetch_session(
    conn: psycopg.AsyncConnection[Any],
    session_id: str,
) -> SessionRow | None:
    async with conn.cursor(row_factory=dict_row) as cur:
        await cur.execute(
            f"""
            SELECT {_SESSION_COLUMNS}
            FROM climbing_sessions s
            LEFT JOIN gyms g ON g.id = s.gym_id
            WHERE s.id = %s
            """,
            (session_id,),
        )
        row = await cur.fetchone()

    if row is None:
        return None
    sessions = await _assemble(conn, [row])
    return sessions[0]


async def fetch_recent_sessions(
    conn: psycopg.AsyncConnection[Any],
    user_id: str,
    limit: int = 10,
) -> list[SessionRow]:
    """Newest sessions first, without route counts (used to suggest gyms)."""
    async with conn.cursor(row_factory=dict_row) as cur:
        await cur.execute(
            f"""
            SELECT {_SESSION_COLUMNS}
            FROM climbing_sessions s
            LEFT JOIN gyms g ON g.id = s.gym_id
            WHERE s.user_id = %s
            ORDER BY s.date DESC
            LIMIT %s
            """,
            (user_id, limit),
        )
        rows = await cur.fetchall()
    return [SessionRow.model_validate(_session_payload(row, [])) for row in rows]


async def fetch_categories(
    conn: psycopg.AsyncConnection[Any],
    gym_id: str | None = None,
) -> list[RouteCategory]:
    """All visible route categories, or one gym's ordered by difficulty."""
    async with conn.cursor(row_factory=dict_row) as cur:
        if gym_id is None:
            await cur.execute(
                """
                SELECT id, gym_id, name, difficulty_index, notes
                FROM route_categories
                """
            )
        else:
            await cur.execute(
                """
                SELECT id, gym_id, name, difficulty_index, notes
                FROM route_categories
                WHERE gym_id = %s
                ORDER BY difficulty_index ASC NULLS LAST
                """,
                (gym_id,),
            )
        rows = await cur.fetchall()
    return parse_categories(rows)


_ROUTE_COLUMNS = """
    id, session_id, route_category_id,
    unique_routes_completed, unique_routes_attempted, additional_attempts
"""


async def fetch_session_route(
    conn: psycopg.AsyncConnection[Any],
    session_id: str,
    route_category_id: str,
) -> dict[str, Any] | None:
    """The stored counts row for one category in one session, if any."""
    async with conn.cursor(row_factory=dict_row) as cur:
        await cur.execute(
            f"""
            SELECT {_ROUTE_COLUMNS}
            FROM session_routes
            WHERE session_id = %s AND route_category_id = %s
            ORDER BY id
            LIMIT 1
            """,
            (session_id, route_category_id),
        )
        return await cur.fetchone()


async def insert_session_route(
    conn: psycopg.AsyncConnection[Any],
    payload: dict[str, Any],
) -> dict[str, Any]:
    async with conn.cursor(row_factory=dict_row) as cur:
        await cur.execute(
            f"""
            INSERT INTO session_routes (
                session_id, route_category_id,
                unique_routes_completed, unique_routes_attempted, additional_attempts
            )
            VALUES (%s, %s, %s, %s, %s)
            RETURNING {_ROUTE_COLUMNS}
            """,
            (
                payload["session_id"],
                payload["route_category_id"],
                payload["unique_routes_completed"],
                payload["unique_routes_attempted"],
                payload["additional_attempts"],
            ),
        )
        return await cur.fetchone()


async def update_session_route(
    conn: psycopg.AsyncConnection[Any],
    route_id: Any,
    payload: dict[str, Any],
) -> dict[str, Any] | None:
    async with conn.cursor(row_factory=dict_row) as cur:
        await cur.execute(
            f"""
            UPDATE session_routes
            SET unique_routes_completed = %s,
                unique_routes_attempted = %s,
                additional_attempts = %s
            WHERE id = %s
            RETURNING {_ROUTE_COLUMNS}
            """,
            (
                payload["unique_routes_completed"],
                payload["unique_routes_attempted"],
                payload["additional_attempts"],
                route_id,
            ),
        )
        return await cur.fetchone()


async def insert_route_category(
    conn: psycopg.AsyncConnection[Any],
    gym_id: str,
    name: str,
    difficulty_index: int | None,
    notes: str | None = None,
) -> RouteCategory:
    async with conn.cursor(row_factory=dict_row) as cur:
        await cur.execute(
            """
            INSERT INTO route_categories (gym_id, name, difficulty_index, notes)
            VALUES (%s, %s, %s, %s)
            RETURNING id, gym_id, name, difficulty_index, notes
            """,
            (gym_id, name, difficulty_index, notes),
        )
        row = await cur.fetchone()
    return RouteCategory.model_validate(row)


async def insert_gym(
    conn: psycopg.AsyncConnection[Any],
    name: str,
    location: str,
) -> Gym:
    async with conn.cursor(row_factory=dict_row) as cur:
        await cur.execute(
            """
            INSERT INTO gyms (name, location)
            VALUES (%s, %s)
            RETURNING id, name, location
            """,
            (name, location),
        )
        row = await cur.fetchone()
    return Gym.model_validate(row)


async def insert_session(
    conn: psycopg.AsyncConnection[Any],
    user_id: str,
    gym_id: str,
    session_date: date,
) -> str:
    """Create an empty session and return its id."""
    async with conn.cursor(row_factory=dict_row) as cur:
        await cur.execute(
            """
            INSERT INTO climbing_sessions (user_id, gym_id, date)
            VALUES (%s, %s, %s)
            RETURNING id
            """,
            (user_id, gym_id, session_date),
        )
        row = await cur.fetchone()
    return str(row["id"])


async def update_session_notes(
    conn: psycopg.AsyncConnection[Any],
    session_id: str,
    notes: str | None,
) -> int:
    async with conn.cursor() as cur:
        await cur.execute(
            "UPDATE climbing_sessions SET notes = %s WHERE id = %s",
            (notes, session_id),
        )
        return cur.rowcount


async def delete_session(
    conn: psycopg.AsyncConnection[Any],
    session_id: str,
) -> int:
    """Delete a session and its route rows; returns the number of sessions removed.

    Route rows go first since they reference the session.
    """
    async with conn.transaction():
        async with conn.cursor() as cur:
            await cur.execute(
                "DELETE FROM session_routes WHERE session_id = %s",
                (session_id,),
            )
            await cur.execute(
                "DELETE FROM climbing_sessions WHERE id = %s",
                (session_id,),
            )
            return cur.rowcount
