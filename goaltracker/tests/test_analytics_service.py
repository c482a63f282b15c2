"""
Tests for AnalyticsService.

Tests cover:
1. Chart series over the active window
2. Heatmap cells and intensity buckets
3. Period totals
4. Overview statistics
"""
import pytest
from datetime import date, datetime, timedelta

from goaltracker.services.analytics_service import AnalyticsService
from goaltracker.services.progress_engine import ProgressEngine
from goaltracker.tests.conftest import consecutive_logs, make_goal, make_log


class TestChartSeries:
    """Tests for chart_series"""

    def test_one_point_per_window_day(self, now):
        goal = make_goal(target=310)
        logs = [make_log("2025-10-01", 4), make_log("2025-10-01T20:00:00", 1), make_log("2025-10-03", 10)]

        chart = AnalyticsService.chart_series(goal, logs, now)

        assert len(chart) == 31
        assert chart[0].date == date(2025, 10, 1)
        assert chart[0].day == 1
        assert chart[0].daily == 5
        assert chart[1].cumulative == 5
        assert chart[2].cumulative == 15
        assert chart[0].target_progress == pytest.approx(10)
        assert chart[-1].date == date(2025, 10, 31)
        assert chart[-1].target_progress == pytest.approx(310)

    def test_last_cumulative_matches_progress(self, now):
        goal = make_goal(target=200)
        logs = [
            make_log("2025-09-30", 50),
            make_log("2025-10-05", 20),
            make_log("2025-10-31T23:00:00", 7),
            make_log("2025-11-01", 50),
        ]

        chart = AnalyticsService.chart_series(goal, logs, now)

        assert chart[-1].cumulative == ProgressEngine.calculate_progress(goal, logs, now).current == 27

    def test_rolling_window(self, now):
        goal = make_goal(timeframe={"type": "rolling", "rolling_days": 7}, target=7)

        chart = AnalyticsService.chart_series(goal, [make_log(now, 2)], now)

        assert len(chart) == 8
        assert chart[0].date == (now - timedelta(days=7)).date()
        assert chart[-1].date == now.date()
        assert chart[-1].cumulative == 2
        assert chart[-1].target_progress == pytest.approx(7)

    def test_no_target(self, now):
        chart = AnalyticsService.chart_series(make_goal(type="open", target=None), [], now)

        assert all(point.target_progress == 0 for point in chart)


class TestHeatmap:
    """Tests for heatmap and intensity"""

    @pytest.mark.parametrize("value,expected", [
        (0, 0), (-2, 0), (0.5, 1), (1, 1), (2, 2), (3, 2), (4, 3), (5, 3), (6, 4), (100, 4),
    ])
    def test_intensity_buckets(self, value, expected):
        assert AnalyticsService.intensity(value) == expected

    def test_full_year_with_totals(self):
        logs = [
            make_log("2024-02-29", 2),
            make_log("2024-02-29T18:00:00", 3),
            make_log("2024-12-31", 1),
            make_log("2023-12-31", 9),
        ]

        cells = AnalyticsService.heatmap(logs, 2024)
        by_day = {cell.date: cell for cell in cells}

        assert len(cells) == 366
        assert by_day[date(2024, 2, 29)].value == 5
        assert by_day[date(2024, 2, 29)].intensity == 3
        assert by_day[date(2024, 12, 31)].intensity == 1
        assert by_day[date(2024, 1, 1)].value == 0
        assert sum(cell.value for cell in cells) == 6


class TestPeriodTotals:
    """Tests for period_totals"""

    def test_totals(self, now, today):
        logs = [
            make_log(today, 1),
            make_log(today - timedelta(days=3), 2),
            make_log(today - timedelta(days=20), 8),
            make_log(now + timedelta(hours=2), 32),
        ]

        totals = AnalyticsService.period_totals(logs, now)

        assert totals.today == 1
        assert totals.week == 3
        assert totals.month == 11

    def test_periods_span_exactly_seven_and_thirty_days(self, now, today):
        logs = [
            make_log(today - timedelta(days=6), 1),
            make_log(today - timedelta(days=7), 2),
            make_log(today - timedelta(days=29), 4),
            make_log(today - timedelta(days=30), 8),
        ]

        totals = AnalyticsService.period_totals(logs, now)

        assert totals.week == 1
        assert totals.month == 1 + 2 + 4

    def test_empty(self, now):
        totals = AnalyticsService.period_totals([], now)

        assert (totals.today, totals.week, totals.month) == (0, 0, 0)


class TestOverview:
    """Tests for overview"""

    def test_empty(self, now):
        overview = AnalyticsService.overview([], now)

        assert overview.total_goals == 0
        assert overview.completion_rate == 0
        assert overview.best_day is None

    def test_counts(self, now, yesterday):
        sum_goal = make_goal(id="run", target=20)
        done_goal = make_goal(id="books", type="count", target=2)
        old_goal = make_goal(
            id="old", target=100,
            timeframe={"type": "fixed", "start": "2025-01-01", "end": "2025-01-31"}
        )
        streak_goal = make_goal(id="sit", type="streak", target=30, timeframe={"type": "rolling", "rolling_days": 30})

        entries = [
            (sum_goal, [make_log("2025-10-02", 5, goal_id="run"), make_log("2025-10-03", 5, goal_id="run")]),
            (done_goal, [make_log("2025-10-03", 2, goal_id="books")]),
            (old_goal, [make_log("2025-01-10", 1, goal_id="old")]),
            (streak_goal, consecutive_logs(yesterday, 4, goal_id="sit")),
        ]

        overview = AnalyticsService.overview(entries, now)

        assert overview.total_goals == 4
        assert overview.active_goals == 2
        assert overview.completed_goals == 1
        assert overview.expired_goals == 1
        assert overview.total_logs == 8
        assert overview.best_day == date(2025, 10, 3)
        assert overview.longest_streak == 4
        assert overview.completion_rate == pytest.approx(0.25)

    def test_best_day_tie_goes_to_earliest(self, now):
        goal = make_goal()
        logs = [make_log("2025-10-09", 3), make_log("2025-10-04", 3)]

        overview = AnalyticsService.overview([(goal, logs)], now)

        assert overview.best_day == date(2025, 10, 4)

    def test_best_week_sums_monday_to_sunday(self, now):
        goal = make_goal()
        logs = [
            make_log("2025-10-06", 3),  # Monday
            make_log("2025-10-12", 3),  # Sunday of the same week
            make_log("2025-10-15", 5),
        ]

        overview = AnalyticsService.overview([(goal, logs)], now)

        assert overview.best_day == date(2025, 10, 15)
        assert overview.best_week == date(2025, 10, 6)

    def test_best_week_tie_goes_to_earliest(self, now):
        goal = make_goal()
        logs = [make_log("2025-10-16", 4), make_log("2025-10-02", 4)]

        overview = AnalyticsService.overview([(goal, logs)], now)

        assert overview.best_week == date(2025, 9, 29)

    def test_no_logs_has_no_best_week(self, now):
        assert AnalyticsService.overview([(make_goal(), [])], now).best_week is None
