"""
Goal repository - Data access layer for goals and their log entries.
Handles all database queries related to goals and logs.
"""
from datetime import date, datetime, time, timedelta
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from goaltracker.exceptions import DatabaseException
from goaltracker.models import Goal, LogEntry


def _commit(db: Session, operation: str) -> None:
    """Commit, rolling back and wrapping database errors"""
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise DatabaseException(operation, str(e)) from e


class GoalRepository:
    """Repository for Goal data access"""

    @staticmethod
    def get_all(
        db: Session,
        status: Optional[str] = None,
        goal_type: Optional[str] = None,
        q: Optional[str] = None
    ) -> List[Goal]:
        """Get goals, optionally filtered by stored status, type and name"""
        query = db.query(Goal)
        if status:
            query = query.filter(Goal.status == status)
        if goal_type:
            query = query.filter(Goal.goal_type == goal_type)
        if q:
            query = query.filter(Goal.name.ilike(f"%{q}%"))
        return query.order_by(Goal.created_at, Goal.id).all()

    @staticmethod
    def get_by_id(db: Session, goal_id: int) -> Optional[Goal]:
        """Get goal by ID"""
        return db.query(Goal).filter(Goal.id == goal_id).first()

    @staticmethod
    def get_by_share_token(db: Session, share_token: str) -> Optional[Goal]:
        """Get goal by its public share token"""
        return db.query(Goal).filter(Goal.share_token == share_token).first()

    @staticmethod
    def create(db: Session, goal: Goal) -> Goal:
        """Create new goal"""
        db.add(goal)
        _commit(db, "create goal")
        db.refresh(goal)
        return goal

    @staticmethod
    def update(db: Session, goal: Goal) -> Goal:
        """Update existing goal"""
        _commit(db, "update goal")
        db.refresh(goal)
        return goal

    @staticmethod
    def delete(db: Session, goal: Goal) -> None:
        """Delete a goal together with its logs"""
        db.delete(goal)
        _commit(db, "delete goal")


class LogRepository:
    """Repository for LogEntry data access"""

    @staticmethod
    def get_by_goal(
        db: Session,
        goal_id: int,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
        order: str = "desc"
    ) -> List[LogEntry]:
        """
        Get logs of a goal, optionally limited to a date range.

        Both bounds are calendar days and inclusive.
        """
        query = db.query(LogEntry).filter(LogEntry.goal_id == goal_id)
        if from_date:
            query = query.filter(LogEntry.date >= datetime.combine(from_date, time.min))
        if to_date:
            query = query.filter(LogEntry.date < datetime.combine(to_date + timedelta(days=1), time.min))

        ordering = LogEntry.date.asc() if order == "asc" else LogEntry.date.desc()
        return query.order_by(ordering, LogEntry.id).all()

    @staticmethod
    def get_by_day(db: Session, day_start: datetime, day_end: datetime) -> List[LogEntry]:
        """Get logs of all goals in [day_start, day_end)"""
        return db.query(LogEntry).filter(
            LogEntry.date >= day_start,
            LogEntry.date < day_end
        ).order_by(LogEntry.date).all()

    @staticmethod
    def get_by_id(db: Session, log_id: int) -> Optional[LogEntry]:
        """Get log entry by ID"""
        return db.query(LogEntry).filter(LogEntry.id == log_id).first()

    @staticmethod
    def count(db: Session) -> int:
        """Total number of log entries"""
        return db.query(LogEntry).count()

    @staticmethod
    def create(db: Session, log: LogEntry) -> LogEntry:
        """Create new log entry"""
        db.add(log)
        _commit(db, "create log")
        db.refresh(log)
        return log

    @staticmethod
    def update(db: Session, log: LogEntry) -> LogEntry:
        """Update existing log entry"""
        _commit(db, "update log")
        db.refresh(log)
        return log

    @staticmethod
    def delete(db: Session, log: LogEntry) -> None:
        """Delete a log entry"""
        db.delete(log)
        _commit(db, "delete log")
