from sqlalchemy import Column, Integer, String, DateTime, Float, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime

from goaltracker.database import Base


class Goal(Base):
    __tablename__ = "goals"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(String, nullable=True)
    emoji = Column(String, default="🎯")
    goal_type = Column(String, nullable=False, default="count")  # count, sum, streak, milestone, open
    unit = Column(String, default="times")  # Display only: "times", "km", "pages"...
    target = Column(Float, nullable=True)  # Required for count/sum/milestone

    # Timeframe
    timeframe_type = Column(String, nullable=False, default="rolling")  # fixed, rolling, recurring
    start_at = Column(DateTime, nullable=True)  # fixed: first day of the window
    end_at = Column(DateTime, nullable=True)  # fixed: last day of the window (inclusive)
    rolling_days = Column(Integer, nullable=True)  # rolling: trailing window length
    rrule = Column(String, nullable=True)  # recurring: stored, resolved as rolling 30 days

    privacy = Column(String, default="private")  # public, unlisted, private
    status = Column(String, default="active")  # draft, active, ended (explicit user state)

    # JSON object, e.g. {"milestones": [{"label": "Half way", "threshold": 50}]}
    settings_json = Column(String, nullable=True)

    # Public link id, set once the goal is shared
    share_token = Column(String, nullable=True, unique=True, index=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    logs = relationship(
        "LogEntry",
        back_populates="goal",
        cascade="all, delete-orphan",
        order_by="LogEntry.date",
    )


class LogEntry(Base):
    __tablename__ = "log_entries"

    id = Column(Integer, primary_key=True, index=True)
    goal_id = Column(Integer, ForeignKey("goals.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(DateTime, nullable=False, index=True)  # Calendar day or exact timestamp
    value = Column(Float, nullable=False)  # Delta added to the goal, never an absolute value
    note = Column(String, nullable=True)
    attachment_url = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    goal = relationship("Goal", back_populates="logs")
