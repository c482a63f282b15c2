"""
Application-wide constants and environment-driven configuration.
"""
import os

# Goal types
GOAL_TYPE_COUNT = "count"
GOAL_TYPE_SUM = "sum"
GOAL_TYPE_STREAK = "streak"
GOAL_TYPE_MILESTONE = "milestone"
GOAL_TYPE_OPEN = "open"
GOAL_TYPES = (
    GOAL_TYPE_COUNT,
    GOAL_TYPE_SUM,
    GOAL_TYPE_STREAK,
    GOAL_TYPE_MILESTONE,
    GOAL_TYPE_OPEN,
)
# Types that cannot be tracked without a positive target
TARGETED_GOAL_TYPES = (GOAL_TYPE_COUNT, GOAL_TYPE_SUM, GOAL_TYPE_MILESTONE)

# Timeframe types
TIMEFRAME_FIXED = "fixed"
TIMEFRAME_ROLLING = "rolling"
TIMEFRAME_RECURRING = "recurring"
TIMEFRAME_TYPES = (TIMEFRAME_FIXED, TIMEFRAME_ROLLING, TIMEFRAME_RECURRING)

# Window lengths (days)
DEFAULT_WINDOW_DAYS = 30  # Missing or malformed timeframe
RECURRING_WINDOW_DAYS = 30  # Recurrence rules are stored, not evaluated

# Stored goal status (set explicitly by the user)
GOAL_STATUS_DRAFT = "draft"
GOAL_STATUS_ACTIVE = "active"
GOAL_STATUS_ENDED = "ended"
GOAL_STATUSES = (GOAL_STATUS_DRAFT, GOAL_STATUS_ACTIVE, GOAL_STATUS_ENDED)

# Derived lifecycle classification (recomputed on every read)
LIFECYCLE_ACTIVE = "active"
LIFECYCLE_COMPLETED = "completed"
LIFECYCLE_EXPIRED = "expired"
LIFECYCLES = (LIFECYCLE_ACTIVE, LIFECYCLE_COMPLETED, LIFECYCLE_EXPIRED)

# Privacy levels
PRIVACY_PUBLIC = "public"
PRIVACY_UNLISTED = "unlisted"
PRIVACY_PRIVATE = "private"
PRIVACY_LEVELS = (PRIVACY_PUBLIC, PRIVACY_UNLISTED, PRIVACY_PRIVATE)

# Only these goals can be opened through a share link
SHAREABLE_PRIVACY_LEVELS = (PRIVACY_PUBLIC, PRIVACY_UNLISTED)
SHARE_TOKEN_LENGTH = 32

# Milestones are stored on the percentage scale (0-100)
MILESTONE_SCALE = 100.0

# Heatmap intensity buckets: upper bound (inclusive) of each level 1..3,
# anything above the last bound is level 4
HEATMAP_INTENSITY_BOUNDS = (1, 3, 5)

# Period totals
WEEK_DAYS = 7
MONTH_DAYS = 30

# Database
DATABASE_URL = os.getenv("GOAL_TRACKER_DATABASE_URL", "sqlite:///./goals.db")

# Logging
DEFAULT_LOG_DIRECTORY_PROD = "/var/log/goal-tracker"
DEFAULT_LOG_DIRECTORY_DEV = "./logs"
LOG_DIR = os.getenv("GOAL_TRACKER_LOG_DIR", DEFAULT_LOG_DIRECTORY_PROD)
LOG_FILE = os.getenv("GOAL_TRACKER_LOG_FILE", "goal_tracker.log")
LOG_LEVEL = os.getenv("GOAL_TRACKER_LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
