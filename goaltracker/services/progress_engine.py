"""
Goal progress engine.

Pure calculations over one goal and its log entries: active window,
cumulative progress, pace, streaks, milestones and lifecycle status.

Every function takes the reference instant ``now`` explicitly and never reads
the clock, mutates its inputs or raises for bad data. Degenerate input
(zero target, empty logs, missing timeframe) produces zero values.
"""
import logging
from datetime import datetime, timedelta
from typing import Iterable, List, Optional

from goaltracker.constants import (
    DEFAULT_WINDOW_DAYS,
    GOAL_TYPE_STREAK,
    LIFECYCLE_ACTIVE,
    LIFECYCLE_COMPLETED,
    LIFECYCLE_EXPIRED,
    MILESTONE_SCALE,
    RECURRING_WINDOW_DAYS,
    TIMEFRAME_FIXED,
    TIMEFRAME_RECURRING,
    TIMEFRAME_ROLLING,
)
from goaltracker.schemas import (
    ActiveWindow,
    Milestone,
    PaceData,
    ProgressData,
    ProgressSnapshot,
    ProgressStats,
    StreakData,
    TrackedGoal,
    TrackedLog,
)
from goaltracker.services.date_service import DateService

logger = logging.getLogger("goal_tracker.progress")


class ProgressEngine:
    """Stateless progress calculations for a single goal"""

    # === Window ===

    @staticmethod
    def resolve_window(goal: TrackedGoal, now: datetime) -> ActiveWindow:
        """
        Map the goal's timeframe to a concrete [start, end] interval.

        - fixed: start day 00:00 to end day 23:59:59.999999 (end day inclusive)
        - rolling: now - rolling_days to now
        - recurring: now - 30 days to now (recurrence rules are not evaluated)
        - missing: now - 30 days to now

        Args:
            goal: Goal definition
            now: Reference instant

        Returns:
            Active window
        """
        now = DateService.to_datetime(now)
        timeframe = goal.timeframe

        if timeframe is None:
            logger.debug(f"Goal {goal.id} has no usable timeframe, using {DEFAULT_WINDOW_DAYS}-day window")
            days = DEFAULT_WINDOW_DAYS
        elif timeframe.type == TIMEFRAME_FIXED:
            return ActiveWindow(
                start=DateService.normalize_to_midnight(timeframe.start),
                end=DateService.end_of_day(timeframe.end),
            )
        elif timeframe.type == TIMEFRAME_ROLLING:
            days = timeframe.rolling_days
        elif timeframe.type == TIMEFRAME_RECURRING:
            days = RECURRING_WINDOW_DAYS
        else:
            days = DEFAULT_WINDOW_DAYS

        return ActiveWindow(start=now - timedelta(days=days), end=now)

    @staticmethod
    def window_days(window: ActiveWindow) -> int:
        """Length of the window in days, rounded up, minimum 1"""
        return DateService.span_in_days(window.start, window.end)

    # === Aggregation ===

    @staticmethod
    def logs_for_goal(goal: TrackedGoal, logs: Iterable[TrackedLog]) -> List[TrackedLog]:
        """Logs owned by this goal (ids compared by value, so 1 == "1")"""
        goal_id = str(goal.id)
        return [log for log in logs if str(log.goal_id) == goal_id]

    @staticmethod
    def sum_in_window(
        goal: TrackedGoal,
        logs: Iterable[TrackedLog],
        now: datetime,
        window: Optional[ActiveWindow] = None
    ) -> float:
        """
        Sum log values dated inside the active window, bounds inclusive.

        Logs outside the window are ignored, not rejected.
        """
        window = window or ProgressEngine.resolve_window(goal, now)
        return sum(
            (
                log.value
                for log in ProgressEngine.logs_for_goal(goal, logs)
                if window.start <= log.date <= window.end
            ),
            0.0,
        )

    # === Progress ===

    @staticmethod
    def calculate_progress(
        goal: TrackedGoal,
        logs: Iterable[TrackedLog],
        now: datetime,
        window: Optional[ActiveWindow] = None
    ) -> ProgressData:
        """
        Calculate current progress towards the target.

        percentage = current / target clamped to [0, 1]; 0 when the goal has
        no positive target. remaining = max(target - current, 0).

        Args:
            goal: Goal definition
            logs: Log entries (entries of other goals are ignored)
            now: Reference instant
            window: Pre-resolved window for the same now, optional

        Returns:
            ProgressData
        """
        current = ProgressEngine.sum_in_window(goal, logs, now, window)
        target = goal.target or 0.0

        if target > 0:
            percentage = min(max(current / target, 0.0), 1.0)
        else:
            logger.debug(f"Goal {goal.id} has no positive target, percentage is 0")
            percentage = 0.0

        return ProgressData(
            current=current,
            target=target,
            percentage=percentage,
            remaining=max(target - current, 0.0),
        )

    @staticmethod
    def is_completed(goal: TrackedGoal, logs: Iterable[TrackedLog], now: datetime) -> bool:
        """Goal has reached its target inside the active window"""
        return ProgressEngine.calculate_progress(goal, logs, now).percentage >= 1

    # === Pace ===

    @staticmethod
    def calculate_pace(
        goal: TrackedGoal,
        logs: Iterable[TrackedLog],
        now: datetime,
        window: Optional[ActiveWindow] = None
    ) -> PaceData:
        """
        Calculate required vs. actual pace per day.

        Constant-pace model over the whole window:
            required = target / window_days
            actual = current / window_days
            delta = actual - required (positive = ahead of schedule)
        """
        window = window or ProgressEngine.resolve_window(goal, now)
        days = ProgressEngine.window_days(window)
        target = max(goal.target or 0.0, 0.0)
        current = ProgressEngine.sum_in_window(goal, logs, now, window)

        required = target / days
        actual = current / days

        return PaceData(required=required, actual=actual, delta=actual - required)

    # === Streak ===

    @staticmethod
    def compute_streak(goal: TrackedGoal, logs: Iterable[TrackedLog], now: datetime) -> StreakData:
        """
        Calculate current and best runs of consecutive logged days.

        Only streak goals have streaks; other types return zeros. Several logs
        on one calendar day count as one day. The current streak is the run
        ending at the most recent logged day, reported only when that day is
        today or yesterday; otherwise it is 0 while best keeps the longest run
        ever observed.

        Args:
            goal: Goal definition
            logs: Log entries, any order
            now: Reference instant

        Returns:
            StreakData
        """
        if goal.type != GOAL_TYPE_STREAK:
            return StreakData()

        days = sorted(
            {log.date.date() for log in ProgressEngine.logs_for_goal(goal, logs)},
            reverse=True
        )
        if not days:
            return StreakData()

        running = 1
        best = 1
        latest_run = None

        for previous, day in zip(days, days[1:]):
            if DateService.days_between(previous, day) == 1:
                running += 1
            else:
                if latest_run is None:
                    latest_run = running
                running = 1
            best = max(best, running)

        if latest_run is None:
            latest_run = running

        today = DateService.calendar_day(now)
        if days[0] in (today, today - timedelta(days=1)):
            current = latest_run
        else:
            current = 0

        return StreakData(current=current, best=best)

    # === Milestones ===

    @staticmethod
    def milestones_reached(goal: TrackedGoal, progress_pct: float) -> List[Milestone]:
        """
        Milestones whose threshold has been reached, ascending by threshold.

        Args:
            goal: Goal definition (milestones on the 0-100 scale)
            progress_pct: Progress on the same 0-100 scale

        Returns:
            Reached milestones
        """
        reached = [m for m in goal.milestones if progress_pct >= m.threshold]
        return sorted(reached, key=lambda m: m.threshold)

    # === Lifecycle ===

    @staticmethod
    def classify(
        goal: TrackedGoal,
        logs: Iterable[TrackedLog],
        now: datetime,
        window: Optional[ActiveWindow] = None,
        progress: Optional[ProgressData] = None
    ) -> str:
        """
        Classify the goal as active, completed or expired.

        Completed wins over expired: a goal that reached its target stays
        completed after its window ends. Recomputed on every call; nothing
        is stored.
        """
        now = DateService.to_datetime(now)
        window = window or ProgressEngine.resolve_window(goal, now)
        progress = progress or ProgressEngine.calculate_progress(goal, logs, now, window)

        if progress.percentage >= 1:
            return LIFECYCLE_COMPLETED
        if now > window.end:
            return LIFECYCLE_EXPIRED
        return LIFECYCLE_ACTIVE

    @staticmethod
    def days_remaining(
        goal: TrackedGoal,
        now: datetime,
        window: Optional[ActiveWindow] = None
    ) -> int:
        """Whole days until the window ends, rounded up, never negative"""
        now = DateService.to_datetime(now)
        window = window or ProgressEngine.resolve_window(goal, now)
        if window.end <= now:
            return 0
        return DateService.span_in_days(now, window.end)

    # === Combined ===

    @staticmethod
    def build_snapshot(goal: TrackedGoal, logs: Iterable[TrackedLog], now: datetime) -> ProgressSnapshot:
        """
        Compute every derived value from one log list and one reference instant.

        Args:
            goal: Goal definition
            logs: Log entries
            now: Reference instant

        Returns:
            ProgressSnapshot
        """
        now = DateService.to_datetime(now)
        logs = list(logs)
        window = ProgressEngine.resolve_window(goal, now)

        progress = ProgressEngine.calculate_progress(goal, logs, now, window)
        pace = ProgressEngine.calculate_pace(goal, logs, now, window)
        streak = ProgressEngine.compute_streak(goal, logs, now)
        progress_pct = ProgressEngine.to_percent(progress.percentage)

        return ProgressSnapshot(
            goal_id=goal.id,
            now=now,
            window=window,
            window_days=ProgressEngine.window_days(window),
            progress=progress,
            pace=pace,
            streak=streak,
            milestones_reached=ProgressEngine.milestones_reached(goal, progress_pct),
            status=ProgressEngine.classify(goal, logs, now, window, progress),
            days_remaining=ProgressEngine.days_remaining(goal, now, window),
        )

    @staticmethod
    def to_percent(percentage: float) -> float:
        """Fraction 0..1 to the 0..100 milestone scale"""
        # Rounded so 0.29 * 100 does not land just under a 29 threshold
        return round(percentage * MILESTONE_SCALE, 9)

    @staticmethod
    def to_stats(goal: TrackedGoal, snapshot: ProgressSnapshot) -> ProgressStats:
        """Snapshot in the client-facing progress-stats shape"""
        return ProgressStats(
            progress_pct=ProgressEngine.to_percent(snapshot.progress.percentage),
            achieved=snapshot.progress.percentage >= 1,
            achieved_value=snapshot.progress.current,
            target=snapshot.progress.target,
            unit=goal.unit,
            required_pace=snapshot.pace.required,
            actual_pace=snapshot.pace.actual,
            streak=snapshot.streak,
        )
