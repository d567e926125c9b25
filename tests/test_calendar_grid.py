"""Tests for the heatmap week grid."""

from datetime import date, timedelta

from sendtrend.calendar_grid import build_calendar_grid, grid_start
from sendtrend.category_index import build_category_index
from sendtrend.daily_progress import aggregate_daily_progress
from sendtrend.time_range import TimeRange

from .factories import make_category, make_route, make_session

INDEX = build_category_index([make_category("c1", 3)])

# Saturday
TODAY = date(2024, 1, 20)


def _progress(*days_and_counts):
    sessions = [
        make_session(f"s{i}", day, [make_route("c1", count)])
        for i, (day, count) in enumerate(days_and_counts)
    ]
    return aggregate_daily_progress(sessions, INDEX).progress


class TestBuildCalendarGrid:
    def test_empty_progress(self):
        assert build_calendar_grid([], "30", today=TODAY) == []
        assert build_calendar_grid([], "all", today=TODAY) == []

    def test_weeks_start_on_sunday(self):
        weeks = build_calendar_grid(_progress(("2024-01-10", 5)), "30", today=TODAY)
        assert weeks[0][0].date == date(2023, 12, 17)
        for week in weeks:
            assert week[0].weekday == 0
            assert len(week) == 7
        assert weeks[-1][-1].date == TODAY

    def test_counts_attached(self):
        weeks = build_calendar_grid(_progress(("2024-01-10", 5), ("2024-01-12", 2)), "30", today=TODAY)
        cells = {cell.date: cell for week in weeks for cell in week}
        assert cells[date(2024, 1, 10)].count == 5
        assert cells[date(2024, 1, 12)].count == 2
        assert cells[date(2024, 1, 11)].count == 0

    def test_short_range_widened_to_two_weeks(self):
        weeks = build_calendar_grid(_progress(("2024-01-18", 1)), "5", today=TODAY)
        first = weeks[0][0].date
        assert first <= TODAY - timedelta(days=14)
        assert first == date(2023, 12, 31)
        assert sum(len(week) for week in weeks) == 21

    def test_last_week_not_padded(self):
        wednesday = date(2024, 1, 17)
        weeks = build_calendar_grid(_progress(("2024-01-15", 1)), "7", today=wednesday)
        assert [len(week) for week in weeks] == [7, 7, 4]
        assert weeks[-1][-1].date == wednesday

    def test_unbounded_starts_at_earliest_record(self):
        weeks = build_calendar_grid(_progress(("2024-01-12", 1), ("2024-01-10", 3)), "all", today=TODAY)
        assert weeks[0][0].date == date(2024, 1, 7)
        assert len(weeks) == 2

    def test_cell_fields(self):
        weeks = build_calendar_grid(_progress(("2024-01-10", 5)), "all", today=TODAY)
        cell = weeks[0][3]
        assert cell.to_dict() == {
            "date": "2024-01-10",
            "day": 10,
            "month": 1,
            "month_index": 0,
            "count": 5,
            "formatted_date": "Jan 10",
        }

    def test_month_index_is_zero_based(self):
        weeks = build_calendar_grid(_progress(("2023-12-30", 1)), "30", today=TODAY)
        cells = {cell.date: cell for week in weeks for cell in week}
        assert cells[date(2023, 12, 30)].month == 12
        assert cells[date(2023, 12, 30)].month_index == 11
        assert cells[date(2024, 1, 1)].month_index == 0

    def test_long_unbounded_range_reaches_today(self):
        weeks = build_calendar_grid(_progress(("2022-03-01", 1)), "all", today=TODAY)
        assert weeks[-1][-1].date == TODAY
        assert weeks[0][0].date == date(2022, 2, 27)


class TestGridStart:
    def test_bounded(self):
        assert grid_start([], TimeRange(days=30), TODAY) == date(2023, 12, 21)

    def test_unbounded_empty_fallback(self):
        assert grid_start([], TimeRange(days=None), TODAY) == TODAY - timedelta(days=365)

    def test_zero_days_widened(self):
        assert grid_start([], TimeRange(days=0), TODAY) == TODAY - timedelta(days=14)

    def test_day_count_past_first_date_clamped(self):
        assert grid_start([], TimeRange.parse("1000000"), TODAY) == date.min

    def test_unbounded_empty_fallback_near_first_date(self):
        assert grid_start([], TimeRange(days=None), date(1, 3, 1)) == date.min


def test_grid_starting_at_first_date_opens_partial_week():
    today = date(1, 1, 10)
    progress = _progress(("0001-01-05", 2))
    weeks = build_calendar_grid(progress, "1000000", today=today)
    # 0001-01-01 is a Monday, so the first week has six days
    assert weeks[0][0].date == date.min
    assert [len(week) for week in weeks] == [6, 4]
    assert weeks[-1][-1].date == today
    assert sum(cell.count for week in weeks for cell in week) == 2
