"""
Analytics service.
Derives chart series, activity heatmaps and overview statistics from goals,
their logs and the progress engine. Like the engine, everything here is a
pure function of its inputs and an explicit reference instant.
"""
from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Tuple

from goaltracker.constants import (
    HEATMAP_INTENSITY_BOUNDS,
    LIFECYCLE_ACTIVE,
    LIFECYCLE_COMPLETED,
    LIFECYCLE_EXPIRED,
    MONTH_DAYS,
    WEEK_DAYS,
)
from goaltracker.schemas import (
    ChartPoint,
    HeatmapCell,
    OverviewStats,
    PeriodTotals,
    TrackedGoal,
    TrackedLog,
)
from goaltracker.services.date_service import DateService
from goaltracker.services.progress_engine import ProgressEngine


class AnalyticsService:
    """Service for chart, heatmap and overview calculations"""

    @staticmethod
    def daily_totals(logs: Iterable[TrackedLog]) -> Dict[date, float]:
        """Sum of log values per calendar day"""
        totals: Dict[date, float] = defaultdict(float)
        for log in logs:
            totals[log.date.date()] += log.value
        return dict(totals)

    @staticmethod
    def chart_series(goal: TrackedGoal, logs: Iterable[TrackedLog], now: datetime) -> List[ChartPoint]:
        """
        Daily and cumulative progress for every calendar day the active window
        touches (a rolling window ending today includes today).

        target_progress is where a constant pace would put the goal by the end
        of that day, so the last point's target_progress equals the target.
        Only logs inside the window count, so the last cumulative value equals
        the engine's current progress.

        Args:
            goal: Goal definition
            logs: Log entries
            now: Reference instant

        Returns:
            One ChartPoint per window day, oldest first
        """
        window = ProgressEngine.resolve_window(goal, now)
        days = DateService.days_between(window.end.date(), window.start.date()) + 1
        target = max(goal.target or 0.0, 0.0)

        in_window = [
            log for log in ProgressEngine.logs_for_goal(goal, logs)
            if window.start <= log.date <= window.end
        ]
        totals = AnalyticsService.daily_totals(in_window)

        points = []
        cumulative = 0.0
        for index, day in enumerate(DateService.iter_days(window.start.date(), days), start=1):
            daily = totals.get(day, 0.0)
            cumulative += daily
            points.append(ChartPoint(
                date=day,
                day=index,
                daily=daily,
                cumulative=cumulative,
                target_progress=target * index / days,
            ))
        return points

    @staticmethod
    def intensity(value: float) -> int:
        """
        Heatmap bucket for a day total.

        0 -> 0, up to 1 -> 1, up to 3 -> 2, up to 5 -> 3, more -> 4
        """
        if value <= 0:
            return 0
        for level, bound in enumerate(HEATMAP_INTENSITY_BOUNDS, start=1):
            if value <= bound:
                return level
        return len(HEATMAP_INTENSITY_BOUNDS) + 1

    @staticmethod
    def heatmap(logs: Iterable[TrackedLog], year: int) -> List[HeatmapCell]:
        """
        One cell per calendar day of the year with the day's total.

        Days without logs are present with value 0. Logs from other years are
        ignored.
        """
        first_day = date(year, 1, 1)
        day_count = (date(year + 1, 1, 1) - first_day).days
        totals = AnalyticsService.daily_totals(
            log for log in logs if log.date.year == year
        )

        return [
            HeatmapCell(
                date=day,
                value=totals.get(day, 0.0),
                intensity=AnalyticsService.intensity(totals.get(day, 0.0)),
            )
            for day in DateService.iter_days(first_day, day_count)
        ]

    @staticmethod
    def period_totals(logs: Iterable[TrackedLog], now: datetime) -> PeriodTotals:
        """
        Totals logged today, over the last 7 and over the last 30 calendar
        days, each period ending with today.

        Logs dated after now are not counted yet.
        """
        now = DateService.to_datetime(now)
        today_start = DateService.normalize_to_midnight(now)
        week_start = today_start - timedelta(days=WEEK_DAYS - 1)
        month_start = today_start - timedelta(days=MONTH_DAYS - 1)

        totals = PeriodTotals()
        for log in logs:
            if log.date > now:
                continue
            if log.date >= today_start:
                totals.today += log.value
            if log.date >= week_start:
                totals.week += log.value
            if log.date >= month_start:
                totals.month += log.value
        return totals

    @staticmethod
    def overview(
        entries: Iterable[Tuple[TrackedGoal, List[TrackedLog]]],
        now: datetime
    ) -> OverviewStats:
        """
        Summary over all goals.

        Args:
            entries: (goal, logs of that goal) pairs
            now: Reference instant shared by every goal

        Returns:
            OverviewStats with lifecycle counts, the best day across all logs,
            the best Monday-to-Sunday week (by its Monday), the longest streak
            ever and completed/total as completion_rate
        """
        stats = OverviewStats()
        all_logs: List[TrackedLog] = []

        for goal, logs in entries:
            snapshot = ProgressEngine.build_snapshot(goal, logs, now)
            stats.total_goals += 1
            if snapshot.status == LIFECYCLE_COMPLETED:
                stats.completed_goals += 1
            elif snapshot.status == LIFECYCLE_EXPIRED:
                stats.expired_goals += 1
            elif snapshot.status == LIFECYCLE_ACTIVE:
                stats.active_goals += 1
            stats.longest_streak = max(stats.longest_streak, snapshot.streak.best)
            all_logs.extend(logs)

        stats.total_logs = len(all_logs)

        totals = AnalyticsService.daily_totals(all_logs)
        if totals:
            # Highest total; earliest day wins a tie
            stats.best_day = min(totals, key=lambda day: (-totals[day], day))

            weekly: Dict[date, float] = defaultdict(float)
            for day, total in totals.items():
                weekly[day - timedelta(days=day.weekday())] += total
            stats.best_week = min(weekly, key=lambda monday: (-weekly[monday], monday))

        if stats.total_goals:
            stats.completion_rate = stats.completed_goals / stats.total_goals

        return stats
