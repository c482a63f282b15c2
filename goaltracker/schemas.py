from pydantic import BaseModel, BeforeValidator, Field, field_validator, model_validator
from datetime import datetime, date
from typing import Annotated, List, Literal, Optional, Union

from goaltracker.services.date_service import DateService

GoalType = Literal["count", "sum", "streak", "milestone", "open"]
TimeframeType = Literal["fixed", "rolling", "recurring"]
GoalStatus = Literal["draft", "active", "ended"]
Lifecycle = Literal["active", "completed", "expired"]
PrivacyLevel = Literal["public", "unlisted", "private"]
RecordId = Union[int, str]


def _to_datetime(value):
    """Accept dates, datetimes and ISO strings; return a naive datetime"""
    if value is None:
        return value
    try:
        return DateService.to_datetime(value)
    except TypeError as e:
        # pydantic only reports ValueError as a validation error
        raise ValueError(str(e))


NaiveDatetime = Annotated[datetime, BeforeValidator(_to_datetime)]


# Timeframe variants (tagged on "type")
class FixedTimeframe(BaseModel):
    type: Literal["fixed"] = "fixed"
    start: NaiveDatetime
    end: NaiveDatetime  # Last day of the window, inclusive

    @model_validator(mode="after")
    def check_order(self):
        if self.end.date() < self.start.date():
            raise ValueError("end must not be before start")
        return self


class RollingTimeframe(BaseModel):
    type: Literal["rolling"] = "rolling"
    rolling_days: int = Field(default=30, ge=1, le=3650)


class RecurringTimeframe(BaseModel):
    type: Literal["recurring"] = "recurring"
    rrule: Optional[str] = None  # Stored for later, not evaluated


Timeframe = Annotated[
    Union[FixedTimeframe, RollingTimeframe, RecurringTimeframe],
    Field(discriminator="type"),
]


class Milestone(BaseModel):
    label: str = Field(..., min_length=1, max_length=100)
    threshold: float = Field(..., ge=0, allow_inf_nan=False)  # Percentage of target (0-100)


# Engine inputs, validated once at the boundary
class TrackedGoal(BaseModel):
    id: RecordId
    type: GoalType
    target: Optional[float] = Field(None, allow_inf_nan=False)
    unit: str = ""
    timeframe: Optional[Timeframe] = None  # None -> default trailing window
    milestones: List[Milestone] = Field(default_factory=list)
    status: GoalStatus = "active"


class TrackedLog(BaseModel):
    id: Optional[RecordId] = None
    goal_id: RecordId
    date: NaiveDatetime
    value: float = Field(..., allow_inf_nan=False)
    note: Optional[str] = None


# Engine outputs
class ActiveWindow(BaseModel):
    start: datetime
    end: datetime


class ProgressData(BaseModel):
    current: float = 0.0
    target: float = 0.0
    percentage: float = 0.0  # 0..1
    remaining: float = 0.0


class PaceData(BaseModel):
    required: float = 0.0
    actual: float = 0.0
    delta: float = 0.0  # positive = ahead, negative = behind


class StreakData(BaseModel):
    current: int = 0
    best: int = 0


class ProgressSnapshot(BaseModel):
    goal_id: RecordId
    now: datetime
    window: ActiveWindow
    window_days: int
    progress: ProgressData
    pace: PaceData
    streak: StreakData
    milestones_reached: List[Milestone] = Field(default_factory=list)
    status: Lifecycle
    days_remaining: int


class ProgressStats(BaseModel):
    """Progress summary in the shape served to clients"""
    progress_pct: float  # 0..100
    achieved: bool
    achieved_value: float
    target: float
    unit: str
    required_pace: float
    actual_pace: float
    streak: StreakData


# Analytics
class ChartPoint(BaseModel):
    date: date
    day: int  # 1-based index within the window
    daily: float
    cumulative: float
    target_progress: float  # Where a constant pace would be by this day


class HeatmapCell(BaseModel):
    date: date
    value: float
    intensity: int = Field(..., ge=0, le=4)


class PeriodTotals(BaseModel):
    today: float = 0.0
    week: float = 0.0
    month: float = 0.0


class OverviewStats(BaseModel):
    total_goals: int = 0
    active_goals: int = 0
    completed_goals: int = 0
    expired_goals: int = 0
    total_logs: int = 0
    best_day: Optional[date] = None
    best_week: Optional[date] = None  # Monday of the strongest week
    longest_streak: int = 0
    completion_rate: float = 0.0


# Goal schemas
class GoalBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    emoji: str = Field(default="🎯", max_length=16)
    goal_type: GoalType = "count"
    unit: str = Field(default="times", max_length=50)
    target: Optional[float] = Field(None, ge=0, allow_inf_nan=False)  # Required for count/sum/milestone
    timeframe_type: TimeframeType = "rolling"
    start_at: Optional[NaiveDatetime] = None
    end_at: Optional[NaiveDatetime] = None
    rolling_days: Optional[int] = Field(None, ge=1, le=3650)
    rrule: Optional[str] = None
    privacy: PrivacyLevel = "private"
    milestones: List[Milestone] = Field(default_factory=list)


class GoalCreate(GoalBase):
    status: GoalStatus = "active"


class GoalUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    emoji: Optional[str] = Field(None, max_length=16)
    target: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    start_at: Optional[NaiveDatetime] = None
    end_at: Optional[NaiveDatetime] = None
    rolling_days: Optional[int] = Field(None, ge=1, le=3650)
    privacy: Optional[PrivacyLevel] = None
    status: Optional[GoalStatus] = None
    milestones: Optional[List[Milestone]] = None


class GoalFilters(BaseModel):
    status: Optional[GoalStatus] = None
    goal_type: Optional[GoalType] = None
    q: Optional[str] = None  # Case-insensitive name search


class GoalResponse(GoalBase):
    id: int
    status: GoalStatus
    share_token: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class GoalWithStats(GoalResponse):
    """Goal listing entry with its current progress"""
    progress_pct: float
    achieved: bool
    achieved_value: float
    required_pace: float
    actual_pace: float
    streak: StreakData
    lifecycle: Lifecycle


# Log schemas
class LogCreate(BaseModel):
    value: float = Field(..., allow_inf_nan=False)
    date: Optional[NaiveDatetime] = None  # Defaults to "now" when omitted
    note: Optional[str] = Field(None, max_length=1000)
    attachment_url: Optional[str] = Field(None, max_length=500)

    @field_validator("value")
    @classmethod
    def value_not_zero(cls, value: float) -> float:
        if value == 0:
            raise ValueError("value must not be zero")
        return value


class LogUpdate(BaseModel):
    value: Optional[float] = Field(None, allow_inf_nan=False)
    date: Optional[NaiveDatetime] = None
    note: Optional[str] = Field(None, max_length=1000)

    @field_validator("value")
    @classmethod
    def value_not_zero(cls, value: Optional[float]) -> Optional[float]:
        if value == 0:
            raise ValueError("value must not be zero")
        return value


class LogResponse(BaseModel):
    id: int
    goal_id: int
    date: datetime
    value: float
    note: Optional[str] = None
    attachment_url: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class LogFilters(BaseModel):
    from_date: Optional[date] = None
    to_date: Optional[date] = None
    order: Literal["asc", "desc"] = "desc"
