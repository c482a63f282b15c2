"""
Goal tracker backend.

Goals, progress logs and the progress engine that derives
progress, pace, streaks and milestones from them.
"""

__version__ = "1.0.0"
