"""
Logging configuration.

Writes to a log file and the console. The log directory defaults to the
production location and falls back to a local directory when it is not
writable (development machines).
"""
import logging
from pathlib import Path
from typing import Optional

from goaltracker.constants import (
    DEFAULT_LOG_DIRECTORY_DEV,
    LOG_DIR,
    LOG_FILE,
    LOG_FORMAT,
    LOG_LEVEL,
)


def resolve_log_path(log_dir: str = LOG_DIR, log_file: str = LOG_FILE) -> Path:
    """Create the log directory if needed and return the log file path"""
    try:
        Path(log_dir).mkdir(parents=True, exist_ok=True)
    except PermissionError:
        # Fallback to local directory if no permissions for /var/log
        log_dir = DEFAULT_LOG_DIRECTORY_DEV
        Path(log_dir).mkdir(parents=True, exist_ok=True)
    return Path(log_dir) / log_file


def configure_logging(
    level: Optional[str] = None,
    log_dir: str = LOG_DIR,
    log_file: str = LOG_FILE,
) -> Path:
    """
    Configure root logging with file and console handlers.

    Args:
        level: Level name, defaults to GOAL_TRACKER_LOG_LEVEL
        log_dir: Directory for the log file
        log_file: Log file name

    Returns:
        Path of the log file in use
    """
    log_path = resolve_log_path(log_dir, log_file)

    logging.basicConfig(
        level=getattr(logging, (level or LOG_LEVEL).upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=[
            logging.FileHandler(log_path),
            logging.StreamHandler(),  # Also log to console
        ],
    )

    logging.getLogger("goal_tracker").info(f"Logging to: {log_path}")
    return log_path
