#!/usr/bin/env python3
"""
Create the goal tracker database and load demo goals and logs.
Run this script once on an empty database to have something to look at.

Usage: python3 scripts/seed_db.py [YYYY-MM-DD]
The optional date is used as "now" for the progress summary.
"""

import sys
from datetime import date, datetime, timedelta

from goaltracker.database import SessionLocal, init_db
from goaltracker.logging_setup import configure_logging
from goaltracker.schemas import GoalCreate, LogCreate, Milestone
from goaltracker.services.goal_service import GoalService


def _quarters(labels):
    return [
        Milestone(label=label, threshold=threshold)
        for label, threshold in zip(labels, (25, 50, 75, 100))
    ]


def seed(service: GoalService, today: date):
    """Insert demo goals with their logs, return the created goals"""
    books = service.create_goal(GoalCreate(
        name="Read 20 Books in 2025",
        emoji="📚",
        goal_type="count",
        unit="books",
        target=20,
        timeframe_type="fixed",
        start_at=date(2025, 1, 1),
        end_at=date(2025, 12, 31),
        milestones=_quarters(["25%", "50%", "75%", "100%"]),
    ))
    for day, note in [
        ("2025-01-15", "Finished 'Atomic Habits'"),
        ("2025-02-03", "Completed 'The Lean Startup'"),
        ("2025-02-20", "Read 'Deep Work'"),
        ("2025-03-10", "Finished 'Thinking Fast and Slow'"),
        ("2025-03-25", "Completed 'The Power of Now'"),
    ]:
        service.add_log(books.id, LogCreate(value=1, date=day, note=note))

    running = service.create_goal(GoalCreate(
        name="Run 200 km in October",
        emoji="🏃",
        goal_type="sum",
        unit="km",
        target=200,
        timeframe_type="fixed",
        start_at=date(2025, 10, 1),
        end_at=date(2025, 10, 31),
        privacy="unlisted",
    ))
    for day, km in [(3, 10), (7, 12), (10, 8), (14, 15), (18, 11), (22, 9)]:
        service.add_log(running.id, LogCreate(value=km, date=date(2025, 10, day)))

    meditation = service.create_goal(GoalCreate(
        name="Daily Meditation Streak",
        emoji="🧘",
        goal_type="streak",
        unit="days",
        target=30,
        timeframe_type="rolling",
        rolling_days=30,
    ))
    for offset in range(10, 0, -1):
        service.add_log(meditation.id, LogCreate(value=1, date=today - timedelta(days=offset)))

    spanish = service.create_goal(GoalCreate(
        name="Learn Spanish",
        emoji="🇪🇸",
        goal_type="milestone",
        unit="levels",
        target=10,
        timeframe_type="fixed",
        start_at=date(2025, 1, 1),
        end_at=date(2025, 12, 31),
        privacy="public",
        milestones=[
            Milestone(label="Beginner", threshold=20),
            Milestone(label="Intermediate", threshold=50),
            Milestone(label="Advanced", threshold=80),
            Milestone(label="Fluent", threshold=100),
        ],
    ))
    for level, day in enumerate(["2025-01-05", "2025-01-12", "2025-01-20", "2025-02-01", "2025-02-15"], start=1):
        service.add_log(spanish.id, LogCreate(value=1, date=day, note=f"Completed Level {level}"))

    return [books, running, meditation, spanish]


if __name__ == "__main__":
    now = datetime.now()
    if len(sys.argv) > 1:
        try:
            now = datetime.combine(date.fromisoformat(sys.argv[1]), datetime.min.time()).replace(hour=12)
        except ValueError:
            print(f"Error: not a date: {sys.argv[1]}")
            print("\nUsage: python3 scripts/seed_db.py [YYYY-MM-DD]")
            sys.exit(1)

    configure_logging()
    init_db()

    db = SessionLocal()
    try:
        service = GoalService(db)
        if service.list_goals():
            print("Database already has goals, nothing to seed")
            sys.exit(0)

        goals = seed(service, now.date())
        print(f"Seeded {len(goals)} goals\n")

        for goal in goals:
            snapshot = service.get_snapshot(goal.id, now)
            print(
                f"  {goal.name}: {snapshot.progress.current:g}/{snapshot.progress.target:g} {goal.unit} "
                f"({snapshot.progress.percentage:.0%}, {snapshot.status}), "
                f"pace {snapshot.pace.actual:.2f}/{snapshot.pace.required:.2f} per day, "
                f"streak {snapshot.streak.current} (best {snapshot.streak.best})"
            )
    finally:
        db.close()
