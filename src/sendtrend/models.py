"""Row contracts for climbing sessions and route categories.

These mirror the shape the backend returns for the dashboard queries:

    climbing_sessions: {id, date, gym_id?, notes?, gyms?: {id?, name, location},
                        session_routes: [{route_category_id,
                                          unique_routes_completed,
                                          unique_routes_attempted,
                                          additional_attempts}]}
    route_categories:  {id, gym_id, name, difficulty_index, notes}

Validation happens once at the row-source boundary so the aggregators can
assume well-typed input.
"""

from __future__ import annotations

import datetime as dt
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

UNKNOWN_GYM = "Unknown Gym"


def _opaque_id(value: Any) -> Any:
    # psycopg hands back uuid.UUID for uuid columns; ids are opaque strings here.
    if value is None or isinstance(value, str):
        return value
    return str(value)


def _normalize_optional_text(value: str | None) -> str | None:
    if value is None:
        return None
    cleaned = value.strip()
    return cleaned or None


class RouteCategory(BaseModel):
    """One difficulty tier at one gym (e.g. "V3")."""

    model_config = ConfigDict(frozen=True)

    id: str
    gym_id: str | None = None
    name: str
    difficulty_index: int | None = None
    notes: str | None = None

    @field_validator("id", "gym_id", mode="before")
    @classmethod
    def coerce_ids(cls, value: Any) -> Any:
        return _opaque_id(value)

    @field_validator("notes")
    @classmethod
    def normalize_notes(cls, value: str | None) -> str | None:
        return _normalize_optional_text(value)


class Gym(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str | None = None
    name: str
    location: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value: Any) -> Any:
        return _opaque_id(value)

    @property
    def display_name(self) -> str:
        return f"{self.name} - {self.location}"


class SessionRouteEntry(BaseModel):
    """Counts for one (session, route category) pair."""

    model_config = ConfigDict(frozen=True)

    route_category_id: str
    unique_routes_completed: int = 0
    unique_routes_attempted: int = 0
    additional_attempts: int = 0

    @field_validator("route_category_id", mode="before")
    @classmethod
    def coerce_category_id(cls, value: Any) -> Any:
        return _opaque_id(value)

    @field_validator(
        "unique_routes_completed",
        "unique_routes_attempted",
        "additional_attempts",
        mode="before",
    )
    @classmethod
    def clamp_counts(cls, value: Any) -> Any:
        if value is None:
            return 0
        if isinstance(value, (int, float)) and not isinstance(value, bool) and value < 0:
            return 0
        return value

    @property
    def completed(self) -> int:
        return self.unique_routes_completed

    @property
    def is_untouched(self) -> bool:
        return (
            self.unique_routes_completed == 0
            and self.unique_routes_attempted == 0
            and self.additional_attempts == 0
        )


class SessionRow(BaseModel):
    """One climbing session with its embedded gym and per-category counts."""

    model_config = ConfigDict(frozen=True)

    id: str
    date: dt.date
    gym_id: str | None = None
    notes: str | None = None
    gyms: Gym | None = None
    session_routes: list[SessionRouteEntry] = Field(default_factory=list)

    @field_validator("id", "gym_id", mode="before")
    @classmethod
    def coerce_ids(cls, value: Any) -> Any:
        return _opaque_id(value)

    @field_validator("session_routes", mode="before")
    @classmethod
    def default_routes(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("notes")
    @classmethod
    def normalize_notes(cls, value: str | None) -> str | None:
        return _normalize_optional_text(value)

    @property
    def date_key(self) -> str:
        return self.date.isoformat()

    @property
    def gym_display_name(self) -> str:
        return self.gyms.display_name if self.gyms is not None else UNKNOWN_GYM


def parse_session_rows(raw: Iterable[Mapping[str, Any] | SessionRow]) -> list[SessionRow]:
    return [
        row if isinstance(row, SessionRow) else SessionRow.model_validate(row)
        for row in raw
    ]


def parse_categories(raw: Iterable[Mapping[str, Any] | RouteCategory]) -> list[RouteCategory]:
    return [
        row if isinstance(row, RouteCategory) else RouteCategory.model_validate(row)
        for row in raw
    ]
