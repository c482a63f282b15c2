"""
Date calculation and manipulation service.
Handles calendar-day arithmetic shared by the progress engine and analytics:
normalizing dates/timestamps, day boundaries and day differences.
"""
import math
from datetime import datetime, timedelta, date, time, timezone
from typing import Iterator, Union

DAY = timedelta(days=1)

DateLike = Union[datetime, date, str]


class DateService:
    """Service for date-related operations"""

    @staticmethod
    def to_datetime(value: DateLike) -> datetime:
        """
        Normalize a date, datetime or ISO 8601 string to a naive datetime.

        Plain dates become midnight of that day. Timezone-aware values are
        converted to UTC and stripped of tzinfo so they compare with naive
        reference instants.

        Args:
            value: date, datetime, "2025-10-03" or "2025-10-03T10:00:00Z"

        Returns:
            Naive datetime

        Raises:
            ValueError: If a string is not ISO 8601
            TypeError: If value is of an unsupported type
        """
        if isinstance(value, str):
            value = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))

        if isinstance(value, datetime):
            if value.tzinfo is not None:
                value = value.astimezone(timezone.utc).replace(tzinfo=None)
            return value

        if isinstance(value, date):
            return datetime.combine(value, time.min)

        raise TypeError(f"Unsupported date value: {value!r}")

    @staticmethod
    def calendar_day(value: DateLike) -> date:
        """Calendar day a date or timestamp falls on"""
        return DateService.to_datetime(value).date()

    @staticmethod
    def normalize_to_midnight(dt: datetime) -> datetime:
        """
        Normalize datetime to midnight (remove time component).

        Args:
            dt: Datetime to normalize

        Returns:
            Datetime set to midnight
        """
        return datetime.combine(dt.date(), time.min)

    @staticmethod
    def end_of_day(dt: datetime) -> datetime:
        """Last representable instant of the day dt falls on"""
        return datetime.combine(dt.date(), time.max)

    @staticmethod
    def get_day_range(target_date: date) -> tuple[datetime, datetime]:
        """
        Get datetime range for a full day (midnight to midnight).

        Args:
            target_date: Date to get range for

        Returns:
            Tuple of (day_start, day_end) datetimes
        """
        day_start = datetime.combine(target_date, time.min)
        day_end = datetime.combine(target_date + DAY, time.min)
        return day_start, day_end

    @staticmethod
    def days_between(later: date, earlier: date) -> int:
        """Whole calendar days from earlier to later (negative if reversed)"""
        return (later - earlier).days

    @staticmethod
    def span_in_days(start: datetime, end: datetime) -> int:
        """
        Number of days an interval covers, rounded up.

        A partial day counts as a full day and the result is never below 1,
        so it is always safe to divide by.
        """
        return max(1, math.ceil((end - start) / DAY))

    @staticmethod
    def iter_days(start: date, count: int) -> Iterator[date]:
        """Yield count consecutive calendar days starting at start"""
        for offset in range(count):
            yield start + timedelta(days=offset)
