"""
Shared fixtures: an in-memory database session, a fixed reference instant
and factories for engine inputs.
"""
import pytest
from datetime import date, datetime, timedelta

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from goaltracker.database import Base
from goaltracker import models  # noqa: F401  (register tables)
from goaltracker.schemas import TrackedGoal, TrackedLog


@pytest.fixture
def db_session():
    """Fresh in-memory SQLite database per test"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    Session = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = Session()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def now():
    """Reference instant used instead of the clock"""
    return datetime(2025, 10, 20, 12, 0, 0)


@pytest.fixture
def today(now):
    return now.date()


@pytest.fixture
def yesterday(today):
    return today - timedelta(days=1)


def make_goal(**overrides) -> TrackedGoal:
    """Engine goal with sensible defaults"""
    data = {
        "id": "g1",
        "type": "sum",
        "target": 100,
        "unit": "km",
        "timeframe": {"type": "fixed", "start": "2025-10-01", "end": "2025-10-31"},
    }
    data.update(overrides)
    return TrackedGoal.model_validate(data)


def make_log(day, value=1, goal_id="g1", **extra) -> TrackedLog:
    """Engine log on a date, datetime or ISO string"""
    return TrackedLog(goal_id=goal_id, date=day, value=value, **extra)


def consecutive_logs(last_day: date, count: int, goal_id="g1"):
    """One log per day for count days ending on last_day"""
    return [make_log(last_day - timedelta(days=offset), goal_id=goal_id) for offset in range(count)]
