"""Tests for the backend row source using a fake psycopg connection."""

import uuid
from datetime import date
from unittest.mock import AsyncMock, MagicMock

import pytest

from sendtrend.row_source import (
    delete_session,
    fetch_categories,
    fetch_recent_sessions,
    fetch_session,
    fetch_session_route,
    fetch_sessions,
    insert_gym,
    insert_route_category,
    insert_session,
    insert_session_route,
    update_session_notes,
    update_session_route,
)


class _FakeCursor:
    """Mimics psycopg's async cursor context manager."""

    def __init__(self, fetchall_results=None, fetchone_result=None, fetchone_results=None, rowcount=1):
        self.execute = AsyncMock()
        self.fetchall = AsyncMock(side_effect=list(fetchall_results or []))
        if fetchone_results is not None:
            self.fetchone = AsyncMock(side_effect=list(fetchone_results))
        else:
            self.fetchone = AsyncMock(return_value=fetchone_result)
        self.rowcount = rowcount

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return False


class _FakeTransaction:
    """Mimics psycopg's async transaction context manager."""

    def __init__(self):
        self.entered = False
        self.exited_with = None

    async def __aenter__(self):
        self.entered = True
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.exited_with = exc_type
        return False


def _make_conn(cursor: _FakeCursor):
    conn = AsyncMock()
    conn.cursor = MagicMock(return_value=cursor)
    conn.transaction = MagicMock(return_value=_FakeTransaction())
    return conn


SESSION_ID = uuid.UUID("11111111-1111-1111-1111-111111111111")
GYM_ID = uuid.UUID("22222222-2222-2222-2222-222222222222")


def _session_row(**overrides):
    row = {
        "id": SESSION_ID,
        "date": date(2024, 1, 10),
        "gym_id": GYM_ID,
        "notes": None,
        "gym_ref": GYM_ID,
        "gym_name": "Boulder Barn",
        "gym_location": "Denver",
    }
    row.update(overrides)
    return row


def _route_row(category_id="c1", completed=5, session_id=SESSION_ID):
    return {
        "session_id": session_id,
        "route_category_id": category_id,
        "unique_routes_completed": completed,
        "unique_routes_attempted": 8,
        "additional_attempts": 2,
    }


class TestFetchSessions:
    @pytest.mark.asyncio
    async def test_assembles_sessions_with_routes(self):
        cursor = _FakeCursor(fetchall_results=[[_session_row()], [_route_row("c1"), _route_row("c2", 1)]])
        conn = _make_conn(cursor)

        sessions = await fetch_sessions(conn, "user-1", date(2023, 7, 14))

        assert len(sessions) == 1
        session = sessions[0]
        assert session.id == str(SESSION_ID)
        assert session.gym_display_name == "Boulder Barn - Denver"
        assert session.gyms.id == str(GYM_ID)
        assert [r.route_category_id for r in session.session_routes] == ["c1", "c2"]

        first_params = cursor.execute.await_args_list[0].args[1]
        assert first_params == ("user-1", date(2023, 7, 14))
        second_params = cursor.execute.await_args_list[1].args[1]
        assert second_params == ([SESSION_ID],)

    @pytest.mark.asyncio
    async def test_no_sessions_skips_route_query(self):
        cursor = _FakeCursor(fetchall_results=[[]])
        sessions = await fetch_sessions(_make_conn(cursor), "user-1", date(2024, 1, 1))
        assert sessions == []
        assert cursor.execute.await_count == 1

    @pytest.mark.asyncio
    async def test_session_without_gym(self):
        row = _session_row(gym_id=None, gym_ref=None, gym_name=None, gym_location=None)
        cursor = _FakeCursor(fetchall_results=[[row], []])
        sessions = await fetch_sessions(_make_conn(cursor), "user-1", date(2024, 1, 1))
        assert sessions[0].gyms is None
        assert sessions[0].session_routes == []

    @pytest.mark.asyncio
    async def test_routes_grouped_per_session(self):
        other = uuid.UUID("33333333-3333-3333-3333-333333333333")
        cursor = _FakeCursor(fetchall_results=[
            [_session_row(), _session_row(id=other, date=date(2024, 1, 11))],
            [_route_row("c1"), _route_row("c2", session_id=other)],
        ])
        sessions = await fetch_sessions(_make_conn(cursor), "user-1", date(2024, 1, 1))
        assert [r.route_category_id for r in sessions[0].session_routes] == ["c1"]
        assert [r.route_category_id for r in sessions[1].session_routes] == ["c2"]


class TestFetchSession:
    @pytest.mark.asyncio
    async def test_found(self):
        cursor = _FakeCursor(fetchall_results=[[_route_row()]], fetchone_result=_session_row(notes="crimpy"))
        session = await fetch_session(_make_conn(cursor), str(SESSION_ID))
        assert session.notes == "crimpy"
        assert session.session_routes[0].completed == 5

    @pytest.mark.asyncio
    async def test_missing(self):
        cursor = _FakeCursor(fetchone_result=None)
        assert await fetch_session(_make_conn(cursor), "nope") is None


@pytest.mark.asyncio
async def test_fetch_recent_sessions_passes_limit():
    cursor = _FakeCursor(fetchall_results=[[_session_row()]])
    sessions = await fetch_recent_sessions(_make_conn(cursor), "user-1", limit=5)
    assert len(sessions) == 1
    assert cursor.execute.await_args.args[1] == ("user-1", 5)


class TestFetchCategories:
    @pytest.mark.asyncio
    async def test_all(self):
        cursor = _FakeCursor(fetchall_results=[[
            {"id": "c1", "gym_id": GYM_ID, "name": "V3", "difficulty_index": 3, "notes": ""},
        ]])
        categories = await fetch_categories(_make_conn(cursor))
        assert categories[0].gym_id == str(GYM_ID)
        assert categories[0].notes is None
        assert len(cursor.execute.await_args.args) == 1

    @pytest.mark.asyncio
    async def test_for_gym(self):
        cursor = _FakeCursor(fetchall_results=[[]])
        await fetch_categories(_make_conn(cursor), gym_id="g1")
        sql, params = cursor.execute.await_args.args
        assert "ORDER BY difficulty_index" in sql
        assert params == ("g1",)


ROUTE_PAYLOAD = {
    "session_id": str(SESSION_ID),
    "route_category_id": "c1",
    "unique_routes_completed": 3,
    "unique_routes_attempted": 4,
    "additional_attempts": 0,
}


class TestSessionRouteWriters:
    @pytest.mark.asyncio
    async def test_fetch_existing_by_pair(self):
        stored = {"id": 7, **ROUTE_PAYLOAD}
        cursor = _FakeCursor(fetchone_result=stored)
        assert await fetch_session_route(_make_conn(cursor), str(SESSION_ID), "c1") == stored
        assert cursor.execute.await_args.args[1] == (str(SESSION_ID), "c1")

    @pytest.mark.asyncio
    async def test_insert_passes_counts_in_column_order(self):
        cursor = _FakeCursor(fetchone_result={"id": 8, **ROUTE_PAYLOAD})
        row = await insert_session_route(_make_conn(cursor), ROUTE_PAYLOAD)
        sql, params = cursor.execute.await_args.args
        assert "INSERT INTO session_routes" in sql
        assert params == (str(SESSION_ID), "c1", 3, 4, 0)
        assert row["id"] == 8

    @pytest.mark.asyncio
    async def test_update_targets_row_id(self):
        cursor = _FakeCursor(fetchone_result={"id": 7, **ROUTE_PAYLOAD})
        await update_session_route(_make_conn(cursor), 7, ROUTE_PAYLOAD)
        sql, params = cursor.execute.await_args.args
        assert sql.lstrip().startswith("UPDATE session_routes")
        assert params == (3, 4, 0, 7)


class TestCatalogWriters:
    @pytest.mark.asyncio
    async def test_insert_route_category(self):
        cursor = _FakeCursor(fetchone_result={
            "id": uuid.UUID("44444444-4444-4444-4444-444444444444"),
            "gym_id": GYM_ID,
            "name": "V0",
            "difficulty_index": 0,
            "notes": None,
        })
        category = await insert_route_category(_make_conn(cursor), str(GYM_ID), "V0", 0)
        assert category.id == "44444444-4444-4444-4444-444444444444"
        assert category.difficulty_index == 0
        assert cursor.execute.await_args.args[1] == (str(GYM_ID), "V0", 0, None)

    @pytest.mark.asyncio
    async def test_insert_gym(self):
        cursor = _FakeCursor(fetchone_result={"id": GYM_ID, "name": "Movement", "location": "Golden"})
        gym = await insert_gym(_make_conn(cursor), "Movement", "Golden")
        assert gym.id == str(GYM_ID)
        assert gym.display_name == "Movement - Golden"


class TestSessionWriters:
    @pytest.mark.asyncio
    async def test_insert_session_returns_id(self):
        cursor = _FakeCursor(fetchone_result={"id": SESSION_ID})
        session_id = await insert_session(_make_conn(cursor), "user-1", str(GYM_ID), date(2024, 1, 10))
        assert session_id == str(SESSION_ID)
        assert cursor.execute.await_args.args[1] == ("user-1", str(GYM_ID), date(2024, 1, 10))

    @pytest.mark.asyncio
    async def test_update_notes(self):
        cursor = _FakeCursor()
        assert await update_session_notes(_make_conn(cursor), str(SESSION_ID), "slab day") == 1
        assert cursor.execute.await_args.args[1] == ("slab day", str(SESSION_ID))

    @pytest.mark.asyncio
    async def test_delete_removes_routes_before_session(self):
        cursor = _FakeCursor()
        conn = _make_conn(cursor)
        assert await delete_session(conn, str(SESSION_ID)) == 1

        statements = [call.args[0] for call in cursor.execute.await_args_list]
        assert statements[0].startswith("DELETE FROM session_routes")
        assert statements[1].startswith("DELETE FROM climbing_sessions")
        assert conn.transaction.return_value.entered
