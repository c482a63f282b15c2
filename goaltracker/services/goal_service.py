"""
Goal management service.
Handles goals and their progress logs in the database and feeds them to the
progress engine. Derived values (progress, pace, streak, lifecycle) are never
stored; they are recomputed from the current logs on every read.
"""
import json
import logging
import secrets
import string
from datetime import date, datetime
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from goaltracker.constants import (
    LIFECYCLES,
    SHARE_TOKEN_LENGTH,
    SHAREABLE_PRIVACY_LEVELS,
    TARGETED_GOAL_TYPES,
    TIMEFRAME_FIXED,
)
from goaltracker.exceptions import (
    GoalNotFoundException,
    LogNotFoundException,
    SharedGoalNotFoundException,
    ValidationException,
)
from goaltracker.models import Goal, LogEntry
from goaltracker.repositories.goal_repository import GoalRepository, LogRepository
from goaltracker.schemas import (
    ChartPoint,
    GoalCreate,
    GoalFilters,
    GoalResponse,
    GoalUpdate,
    GoalWithStats,
    HeatmapCell,
    LogCreate,
    LogFilters,
    LogUpdate,
    Milestone,
    OverviewStats,
    PeriodTotals,
    ProgressSnapshot,
    ProgressStats,
    TrackedGoal,
    TrackedLog,
)
from goaltracker.services.analytics_service import AnalyticsService
from goaltracker.services.date_service import DateService
from goaltracker.services.progress_engine import ProgressEngine
from goaltracker.services.record_mapper import goal_from_model, log_from_model

logger = logging.getLogger("goal_tracker.goals")


def _dump_milestones(milestones: List[Milestone]) -> Optional[str]:
    if not milestones:
        return None
    return json.dumps({"milestones": [m.model_dump() for m in milestones]})


def _new_share_token() -> str:
    alphabet = string.ascii_letters + string.digits
    return "".join(secrets.choice(alphabet) for _ in range(SHARE_TOKEN_LENGTH))


class GoalService:
    """Service for managing goals and logs"""

    def __init__(self, db: Session):
        self.db = db
        self.goal_repo = GoalRepository()
        self.log_repo = LogRepository()

    # === Goals ===

    def get_goal(self, goal_id: int) -> Goal:
        """Get a goal or raise GoalNotFoundException"""
        goal = self.goal_repo.get_by_id(self.db, goal_id)
        if not goal:
            raise GoalNotFoundException(goal_id)
        return goal

    def list_goals(self, filters: Optional[GoalFilters] = None) -> List[Goal]:
        """Get goals filtered by stored status, type and name"""
        filters = filters or GoalFilters()
        return self.goal_repo.get_all(
            self.db,
            status=filters.status,
            goal_type=filters.goal_type,
            q=filters.q,
        )

    def _validate_goal(self, goal: Goal) -> None:
        if goal.goal_type in TARGETED_GOAL_TYPES and not (goal.target and goal.target > 0):
            raise ValidationException("target", f"must be greater than 0 for {goal.goal_type} goals")

        if goal.timeframe_type == TIMEFRAME_FIXED:
            if not goal.start_at or not goal.end_at:
                raise ValidationException("timeframe", "fixed goals need start_at and end_at")
            if goal.end_at.date() < goal.start_at.date():
                raise ValidationException("end_at", "must not be before start_at")

    def create_goal(self, goal_data: GoalCreate) -> Goal:
        """Create a new goal"""
        data = goal_data.model_dump(exclude={"milestones"})
        goal = Goal(**data, settings_json=_dump_milestones(goal_data.milestones))
        self._validate_goal(goal)

        goal = self.goal_repo.create(self.db, goal)
        logger.info(f"Created {goal.goal_type} goal {goal.id} '{goal.name}'")
        return goal

    def update_goal(self, goal_id: int, goal_update: GoalUpdate) -> Goal:
        """Update an existing goal"""
        goal = self.get_goal(goal_id)

        update_data = goal_update.model_dump(exclude_unset=True)
        if "milestones" in update_data:
            goal.settings_json = _dump_milestones(goal_update.milestones or [])
            del update_data["milestones"]

        for key, value in update_data.items():
            setattr(goal, key, value)

        try:
            self._validate_goal(goal)
        except ValidationException:
            self.db.rollback()
            raise
        return self.goal_repo.update(self.db, goal)

    def delete_goal(self, goal_id: int) -> None:
        """Delete a goal and all of its logs"""
        goal = self.get_goal(goal_id)
        self.goal_repo.delete(self.db, goal)
        logger.info(f"Deleted goal {goal_id}")

    # === Logs ===

    def get_log(self, log_id: int) -> LogEntry:
        """Get a log entry or raise LogNotFoundException"""
        log = self.log_repo.get_by_id(self.db, log_id)
        if not log:
            raise LogNotFoundException(log_id)
        return log

    def get_logs(self, goal_id: int, filters: Optional[LogFilters] = None) -> List[LogEntry]:
        """Get logs of a goal, newest first unless asked otherwise"""
        self.get_goal(goal_id)
        filters = filters or LogFilters()
        return self.log_repo.get_by_goal(
            self.db,
            goal_id,
            from_date=filters.from_date,
            to_date=filters.to_date,
            order=filters.order,
        )

    def get_logs_by_date(self, day: date) -> List[LogEntry]:
        """Get logs of all goals on one calendar day"""
        day_start, day_end = DateService.get_day_range(day)
        return self.log_repo.get_by_day(self.db, day_start, day_end)

    def add_log(self, goal_id: int, log_data: LogCreate, now: Optional[datetime] = None) -> LogEntry:
        """
        Add a progress entry to a goal.

        Args:
            goal_id: Goal the entry belongs to
            log_data: Value, optional date, note and attachment
            now: Used as the entry date when log_data has none

        Returns:
            Created LogEntry
        """
        self.get_goal(goal_id)

        log = LogEntry(
            goal_id=goal_id,
            date=log_data.date or DateService.to_datetime(now or datetime.now()),
            value=log_data.value,
            note=log_data.note,
            attachment_url=log_data.attachment_url,
        )
        log = self.log_repo.create(self.db, log)
        logger.info(f"Logged {log.value:g} for goal {goal_id} on {log.date.date()}")
        return log

    def edit_log(self, log_id: int, log_update: LogUpdate) -> LogEntry:
        """Update value, date or note of a log entry"""
        log = self.get_log(log_id)

        for key, value in log_update.model_dump(exclude_unset=True).items():
            if key in ("value", "date") and value is None:
                continue
            setattr(log, key, value)

        return self.log_repo.update(self.db, log)

    def delete_log(self, log_id: int) -> None:
        """Delete a log entry; it stops counting towards every aggregate"""
        log = self.get_log(log_id)
        self.log_repo.delete(self.db, log)

    # === Progress ===

    def _tracked(self, goal: Goal) -> Tuple[TrackedGoal, List[TrackedLog]]:
        """Goal and its logs as validated engine inputs (one consistent read)"""
        logs = self.log_repo.get_by_goal(self.db, goal.id, order="asc")
        return goal_from_model(goal), [log_from_model(log) for log in logs]

    def get_snapshot(self, goal_id: int, now: datetime) -> ProgressSnapshot:
        """All derived values of a goal for one reference instant"""
        tracked_goal, tracked_logs = self._tracked(self.get_goal(goal_id))
        return ProgressEngine.build_snapshot(tracked_goal, tracked_logs, now)

    def get_progress(self, goal_id: int, now: datetime) -> ProgressStats:
        """Progress stats of a goal in the client-facing shape"""
        tracked_goal, tracked_logs = self._tracked(self.get_goal(goal_id))
        snapshot = ProgressEngine.build_snapshot(tracked_goal, tracked_logs, now)
        return ProgressEngine.to_stats(tracked_goal, snapshot)

    def get_chart(self, goal_id: int, now: datetime) -> List[ChartPoint]:
        """Daily/cumulative series over the goal's active window"""
        tracked_goal, tracked_logs = self._tracked(self.get_goal(goal_id))
        return AnalyticsService.chart_series(tracked_goal, tracked_logs, now)

    def goals_by_status(self, status: str, now: datetime) -> List[Goal]:
        """
        Goals whose derived lifecycle matches status.

        Args:
            status: "active", "completed" or "expired"
            now: Reference instant

        Returns:
            Matching goals in creation order
        """
        if status not in LIFECYCLES:
            raise ValidationException("status", f"unknown lifecycle status {status!r}")

        matching = []
        for goal in self.goal_repo.get_all(self.db):
            tracked_goal, tracked_logs = self._tracked(goal)
            if ProgressEngine.classify(tracked_goal, tracked_logs, now) == status:
                matching.append(goal)
        return matching

    def get_overview(self, now: datetime) -> OverviewStats:
        """Overview statistics across all goals"""
        entries = [self._tracked(goal) for goal in self.goal_repo.get_all(self.db)]
        return AnalyticsService.overview(entries, now)

    def get_heatmap(self, year: int, goal_id: Optional[int] = None) -> List[HeatmapCell]:
        """Activity heatmap for one goal, or for all goals when goal_id is None"""
        if goal_id is not None:
            logs = self.get_logs(goal_id, LogFilters(order="asc"))
        else:
            logs = [log for goal in self.goal_repo.get_all(self.db) for log in goal.logs]
        return AnalyticsService.heatmap((log_from_model(log) for log in logs), year)

    def get_period_totals(self, goal_id: int, now: datetime) -> PeriodTotals:
        """Totals of a goal for today, the last week and the last month"""
        _, tracked_logs = self._tracked(self.get_goal(goal_id))
        return AnalyticsService.period_totals(tracked_logs, now)

    def list_goals_with_stats(self, now: datetime, filters: Optional[GoalFilters] = None) -> List[GoalWithStats]:
        """Goals with their progress stats and derived lifecycle for one reference instant"""
        listing = []
        for goal in self.list_goals(filters):
            tracked_goal, tracked_logs = self._tracked(goal)
            snapshot = ProgressEngine.build_snapshot(tracked_goal, tracked_logs, now)
            stats = ProgressEngine.to_stats(tracked_goal, snapshot)

            data = GoalResponse.model_validate(goal).model_dump()
            data["milestones"] = tracked_goal.milestones
            listing.append(GoalWithStats(
                **data,
                progress_pct=stats.progress_pct,
                achieved=stats.achieved,
                achieved_value=stats.achieved_value,
                required_pace=stats.required_pace,
                actual_pace=stats.actual_pace,
                streak=stats.streak,
                lifecycle=snapshot.status,
            ))
        return listing

    # === Sharing ===

    def generate_share_token(self, goal_id: int) -> str:
        """
        Give a goal a public share token.

        A goal that is already shared keeps its token, so links handed out
        earlier stay valid.

        Args:
            goal_id: Goal to share

        Returns:
            The goal's share token

        Raises:
            ValidationException: If the goal is private
        """
        goal = self.get_goal(goal_id)
        if goal.privacy not in SHAREABLE_PRIVACY_LEVELS:
            raise ValidationException("privacy", "only public or unlisted goals can be shared")

        if not goal.share_token:
            goal.share_token = _new_share_token()
            goal = self.goal_repo.update(self.db, goal)
            logger.info(f"Created share link for goal {goal_id}")
        return goal.share_token

    def get_goal_by_share_token(self, share_token: str) -> Goal:
        """Get a shared goal; goals made private again are not reachable"""
        goal = self.goal_repo.get_by_share_token(self.db, share_token) if share_token else None
        if not goal or goal.privacy not in SHAREABLE_PRIVACY_LEVELS:
            raise SharedGoalNotFoundException(share_token)
        return goal

    def get_shared_logs(self, share_token: str, filters: Optional[LogFilters] = None) -> List[LogEntry]:
        """Logs of a shared goal"""
        goal = self.get_goal_by_share_token(share_token)
        return self.get_logs(goal.id, filters)

    def get_shared_progress(self, share_token: str, now: datetime) -> ProgressStats:
        """Progress stats of a shared goal"""
        goal = self.get_goal_by_share_token(share_token)
        return self.get_progress(goal.id, now)
