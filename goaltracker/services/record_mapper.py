"""
Boundary mapping from raw goal/log records to validated engine types.

Two record shapes reach the engine:
- local-store records: ``type``, ``timeframe {type, start, end, rollingDays,
  rrule}``, ``settings.milestones``, ``goalId``
- remote-API / database records: ``goal_type``, ``timeframe_type``,
  ``start_at``, ``end_at``, ``rolling_days``, ``rrule``,
  ``settings_json.milestones``, ``goal_id``

Both are validated here once so the engine never deals with optional chaining.
A broken timeframe degrades to the default window instead of failing.
"""
import json
import logging
import math
from typing import Any, Iterable, List, Mapping, Optional

from pydantic import TypeAdapter, ValidationError

from goaltracker.constants import GOAL_STATUS_ACTIVE, GOAL_STATUSES, GOAL_TYPES, MILESTONE_SCALE
from goaltracker.exceptions import ValidationException
from goaltracker.models import Goal, LogEntry
from goaltracker.schemas import Milestone, Timeframe, TrackedGoal, TrackedLog

logger = logging.getLogger("goal_tracker.records")

_timeframe_adapter = TypeAdapter(Timeframe)


def normalize_milestones(raw: Optional[Iterable[Any]], detect_fractions: bool = True) -> List[Milestone]:
    """
    Validate milestones and bring them to the 0-100 percentage scale.

    Local-store records keep thresholds as fractions (0.25, 0.5, 1). With
    detect_fractions, a list whose thresholds are all <= 1 is treated as
    fractional and scaled by 100. Entries without a label or with a
    non-numeric threshold are dropped.

    Args:
        raw: Milestone dicts or Milestone objects
        detect_fractions: False for records already on the 0-100 scale

    Returns:
        Milestones sorted ascending by threshold
    """
    milestones = []
    for item in raw or []:
        if isinstance(item, Milestone):
            milestones.append(item)
            continue
        try:
            milestones.append(Milestone.model_validate(item))
        except ValidationError as e:
            logger.warning(f"Skipping invalid milestone {item!r}: {e.error_count()} error(s)")

    if detect_fractions and milestones and all(m.threshold <= 1 for m in milestones):
        milestones = [
            Milestone(label=m.label, threshold=m.threshold * MILESTONE_SCALE)
            for m in milestones
        ]

    return sorted(milestones, key=lambda m: m.threshold)


def _load_settings(raw: Any) -> Mapping[str, Any]:
    """Settings blob as a mapping; stored JSON strings are decoded"""
    if not raw:
        return {}
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Ignoring settings that are not valid JSON")
            return {}
    return raw if isinstance(raw, Mapping) else {}


def _timeframe_fields(record: Mapping[str, Any]) -> Optional[dict]:
    """Pull timeframe fields out of either record shape"""
    nested = record.get("timeframe")
    if isinstance(nested, Mapping):
        fields = {
            "type": nested.get("type"),
            "start": nested.get("start"),
            "end": nested.get("end"),
            "rolling_days": nested.get("rollingDays", nested.get("rolling_days")),
            "rrule": nested.get("rrule"),
        }
    elif record.get("timeframe_type"):
        fields = {
            "type": record.get("timeframe_type"),
            "start": record.get("start_at"),
            "end": record.get("end_at"),
            "rolling_days": record.get("rolling_days"),
            "rrule": record.get("rrule"),
        }
    else:
        return None

    # Unset values fall back to the model defaults (e.g. rolling 30 days)
    return {key: value for key, value in fields.items() if value is not None}


def timeframe_from_record(record: Mapping[str, Any]):
    """
    Validated timeframe of a goal record, or None when missing or malformed.

    None resolves to the default trailing window in the engine.
    """
    fields = _timeframe_fields(record)
    if fields is None:
        logger.warning(f"Goal {record.get('id')} has no timeframe, using default window")
        return None

    try:
        return _timeframe_adapter.validate_python(fields)
    except ValidationError as e:
        logger.warning(
            f"Goal {record.get('id')} has a malformed timeframe, using default window: "
            f"{e.errors()[0]['msg']}"
        )
        return None


def _coerce_target(raw: Any) -> Optional[float]:
    if raw is None or raw == "":
        return None
    try:
        target = float(raw)
    except (TypeError, ValueError):
        raise ValidationException("target", f"not a number: {raw!r}")
    if not math.isfinite(target):
        raise ValidationException("target", f"not a finite number: {raw!r}")
    return target


def goal_from_record(record: Mapping[str, Any]) -> TrackedGoal:
    """
    Validate a goal record of either shape.

    Args:
        record: Raw goal record

    Returns:
        TrackedGoal

    Raises:
        ValidationException: Missing id, unknown goal type or non-numeric target
    """
    goal_id = record.get("id")
    if goal_id is None:
        raise ValidationException("id", "goal record has no id")

    goal_type = record.get("type") or record.get("goal_type")
    if goal_type not in GOAL_TYPES:
        raise ValidationException("type", f"unknown goal type {goal_type!r}")

    # settings_json is written on the 0-100 scale; only local-store settings
    # may hold fractions
    if record.get("settings"):
        settings = _load_settings(record.get("settings"))
        detect_fractions = True
    else:
        settings = _load_settings(record.get("settings_json"))
        detect_fractions = False

    status = record.get("status") or GOAL_STATUS_ACTIVE
    if status not in GOAL_STATUSES:
        logger.warning(f"Goal {goal_id} has unknown status {status!r}, treating as active")
        status = GOAL_STATUS_ACTIVE

    return TrackedGoal(
        id=goal_id,
        type=goal_type,
        target=_coerce_target(record.get("target")),
        unit=record.get("unit") or "",
        timeframe=timeframe_from_record(record),
        milestones=normalize_milestones(settings.get("milestones"), detect_fractions),
        status=status,
    )


def log_from_record(record: Mapping[str, Any]) -> TrackedLog:
    """
    Validate a log record of either shape.

    Raises:
        ValidationException: Missing goal id, bad date or non-numeric value
    """
    goal_id = record.get("goal_id", record.get("goalId"))
    if goal_id is None:
        raise ValidationException("goal_id", "log record has no goal id")

    try:
        return TrackedLog(
            id=record.get("id"),
            goal_id=goal_id,
            date=record.get("date"),
            value=record.get("value"),
            note=record.get("note"),
        )
    except ValidationError as e:
        error = e.errors()[0]
        field = ".".join(str(part) for part in error["loc"]) or "log"
        raise ValidationException(field, error["msg"])


def logs_from_records(records: Iterable[Mapping[str, Any]]) -> List[TrackedLog]:
    return [log_from_record(record) for record in records]


def goal_from_model(goal: Goal) -> TrackedGoal:
    """Stored goal row to engine type"""
    return goal_from_record({
        "id": goal.id,
        "goal_type": goal.goal_type,
        "target": goal.target,
        "unit": goal.unit,
        "timeframe_type": goal.timeframe_type,
        "start_at": goal.start_at,
        "end_at": goal.end_at,
        "rolling_days": goal.rolling_days,
        "rrule": goal.rrule,
        "settings_json": goal.settings_json,
        "status": goal.status,
    })


def log_from_model(log: LogEntry) -> TrackedLog:
    """Stored log row to engine type"""
    return TrackedLog(
        id=log.id,
        goal_id=log.goal_id,
        date=log.date,
        value=log.value,
        note=log.note,
    )
