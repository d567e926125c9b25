"""Errors surfaced to SendTrend callers.

Aggregation itself never raises for well-typed rows; these cover the fetch
and write boundaries and caller input.
"""


class SendTrendError(RuntimeError):
    """Base class for failures that carry a user-facing message."""

    user_message = "Something went wrong"

    def __init__(self, user_message: str | None = None) -> None:
        if user_message is not None:
            self.user_message = user_message
        super().__init__(self.user_message)


class DashboardLoadError(SendTrendError):
    user_message = "Failed to load dashboard data"


class SessionSummaryLoadError(SendTrendError):
    user_message = "Failed to load session summary"


class RouteCountUpdateError(SendTrendError):
    user_message = "Failed to update climb data"


class RouteCategoryCreateError(SendTrendError):
    user_message = "Failed to add route category"


class GymCreateError(SendTrendError):
    user_message = "Failed to create new gym"


class SessionCreateError(SendTrendError):
    user_message = "Failed to create climbing session"


class NotesSaveError(SendTrendError):
    user_message = "Failed to save notes"


class SessionDeleteError(SendTrendError):
    user_message = "Failed to delete session. Please try again."


class InvalidTimeRangeError(ValueError):
    """Raised when a time range is neither a day count nor "all"."""
