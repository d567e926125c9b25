"""Hypothesis strategies for session rows and route categories.

Category ids come from a small fixed pool so that generated sessions hit
known, unknown and difficulty-less categories.
"""

from __future__ import annotations

from datetime import date

from hypothesis import strategies as st

from sendtrend.models import RouteCategory, SessionRow

CATEGORY_IDS: tuple[str, ...] = tuple(f"c{i}" for i in range(8))
UNKNOWN_CATEGORY_IDS: tuple[str, ...] = ("ghost-1", "ghost-2")

dates = st.dates(min_value=date(2022, 1, 1), max_value=date(2024, 12, 31))

gyms = st.one_of(
    st.none(),
    st.builds(
        dict,
        name=st.sampled_from(["Boulder Barn", "Movement", "Earth Treks"]),
        location=st.sampled_from(["Denver", "Golden", "Boulder"]),
    ),
)

route_entries = st.builds(
    dict,
    route_category_id=st.sampled_from(CATEGORY_IDS + UNKNOWN_CATEGORY_IDS),
    unique_routes_completed=st.integers(min_value=-2, max_value=12),
    unique_routes_attempted=st.integers(min_value=0, max_value=15),
    additional_attempts=st.integers(min_value=0, max_value=10),
)


@st.composite
def categories(draw, allow_difficulty: bool = True) -> list[RouteCategory]:
    ids = draw(st.lists(st.sampled_from(CATEGORY_IDS), unique=True, max_size=len(CATEGORY_IDS)))
    difficulty = st.one_of(st.none(), st.integers(min_value=0, max_value=10)) if allow_difficulty else st.none()
    return [
        RouteCategory(
            id=cid,
            gym_id="g1",
            name=f"Tier {cid}",
            difficulty_index=draw(difficulty),
        )
        for cid in ids
    ]


@st.composite
def session_rows(draw, max_size: int = 12) -> list[SessionRow]:
    count = draw(st.integers(min_value=0, max_value=max_size))
    return [
        SessionRow.model_validate({
            "id": f"s{i}",
            "date": draw(dates),
            "gyms": draw(gyms),
            "session_routes": draw(st.lists(route_entries, max_size=5)),
        })
        for i in range(count)
    ]
