"""
Tests for boundary record mapping.

Tests cover:
1. Local-store and API goal record shapes
2. Lenient timeframe degradation
3. Milestone scale normalization
4. Log record validation
"""
import pytest
from datetime import datetime, timedelta

from goaltracker.exceptions import ValidationException
from goaltracker.schemas import FixedTimeframe, LogCreate, LogUpdate, RecurringTimeframe, RollingTimeframe
from goaltracker.services.progress_engine import ProgressEngine
from goaltracker.services.record_mapper import (
    goal_from_record,
    log_from_record,
    logs_from_records,
    normalize_milestones,
)


class TestGoalFromRecord:
    """Tests for goal_from_record"""

    def test_local_store_shape(self):
        goal = goal_from_record({
            "id": "g2",
            "name": "Run 200 km in October",
            "type": "sum",
            "unit": "km",
            "target": 200,
            "timeframe": {"type": "fixed", "start": "2025-10-01", "end": "2025-10-31"},
            "privacy": "unlisted",
        })

        assert goal.id == "g2"
        assert goal.type == "sum"
        assert goal.target == 200
        assert isinstance(goal.timeframe, FixedTimeframe)
        assert goal.timeframe.start == datetime(2025, 10, 1)
        assert goal.status == "active"

    def test_api_shape(self):
        goal = goal_from_record({
            "id": 12,
            "goal_type": "streak",
            "unit": "days",
            "target": "30",
            "timeframe_type": "rolling",
            "start_at": "2025-01-01T00:00:00Z",
            "rolling_days": 14,
            "status": "draft",
            "settings_json": {"milestones": [{"label": "Week", "threshold": 25}]},
        })

        assert goal.id == 12
        assert goal.type == "streak"
        assert goal.target == 30.0
        assert isinstance(goal.timeframe, RollingTimeframe)
        assert goal.timeframe.rolling_days == 14
        assert goal.status == "draft"
        assert [m.label for m in goal.milestones] == ["Week"]

    def test_rolling_days_default(self):
        goal = goal_from_record({"id": 1, "type": "count", "target": 5, "timeframe": {"type": "rolling"}})

        assert goal.timeframe.rolling_days == 30

    def test_recurring_keeps_rrule(self):
        goal = goal_from_record({
            "id": 1,
            "type": "count",
            "target": 4,
            "timeframe": {"type": "recurring", "rrule": "FREQ=WEEKLY;BYDAY=MO"},
        })

        assert isinstance(goal.timeframe, RecurringTimeframe)
        assert goal.timeframe.rrule == "FREQ=WEEKLY;BYDAY=MO"

    def test_settings_json_string_is_decoded(self):
        goal = goal_from_record({
            "id": 1,
            "goal_type": "milestone",
            "target": 10,
            "timeframe_type": "rolling",
            "settings_json": '{"milestones": [{"label": "Half", "threshold": 50}]}',
        })

        assert [m.threshold for m in goal.milestones] == [50]

    def test_invalid_settings_json_is_ignored(self):
        goal = goal_from_record({"id": 1, "type": "open", "settings_json": "{not json"})

        assert goal.milestones == []

    def test_missing_id_raises(self):
        with pytest.raises(ValidationException) as exc_info:
            goal_from_record({"type": "count", "target": 1})

        assert exc_info.value.field == "id"

    def test_unknown_type_raises(self):
        with pytest.raises(ValidationException) as exc_info:
            goal_from_record({"id": 1, "type": "weekly", "target": 1})

        assert exc_info.value.field == "type"

    def test_non_numeric_target_raises(self):
        with pytest.raises(ValidationException):
            goal_from_record({"id": 1, "type": "count", "target": "lots"})

    def test_unknown_status_falls_back_to_active(self):
        goal = goal_from_record({"id": 1, "type": "open", "status": "archived"})

        assert goal.status == "active"


class TestTimeframeDegradation:
    """Malformed timeframes resolve to the default 30-day window"""

    @pytest.mark.parametrize("timeframe", [
        {"type": "fixed", "start": "2025-10-01"},
        {"type": "fixed", "start": "yesterday", "end": "2025-10-31"},
        {"type": "fixed", "start": "2025-10-31", "end": "2025-10-01"},
        {"type": "rolling", "rollingDays": -3},
        {"type": "weekly"},
        {},
    ])
    def test_malformed_timeframe_becomes_none(self, timeframe, now):
        goal = goal_from_record({"id": 1, "type": "sum", "target": 10, "timeframe": timeframe})

        assert goal.timeframe is None
        window = ProgressEngine.resolve_window(goal, now)
        assert window.start == now - timedelta(days=30)
        assert window.end == now

    def test_missing_timeframe_becomes_none(self):
        goal = goal_from_record({"id": 1, "type": "sum", "target": 10})

        assert goal.timeframe is None


class TestNormalizeMilestones:
    """Tests for normalize_milestones"""

    def test_fractions_are_scaled_to_percentages(self):
        milestones = normalize_milestones([
            {"label": "25%", "threshold": 0.25},
            {"label": "50%", "threshold": 0.5},
            {"label": "75%", "threshold": 0.75},
            {"label": "100%", "threshold": 1},
        ])

        assert [m.threshold for m in milestones] == [25, 50, 75, 100]

    def test_percentages_are_kept(self):
        milestones = normalize_milestones([
            {"label": "Beginner", "threshold": 20},
            {"label": "Fluent", "threshold": 100},
        ])

        assert [m.threshold for m in milestones] == [20, 100]

    def test_sorted_ascending(self):
        milestones = normalize_milestones([
            {"label": "Fluent", "threshold": 100},
            {"label": "Beginner", "threshold": 20},
            {"label": "Advanced", "threshold": 80},
        ])

        assert [m.label for m in milestones] == ["Beginner", "Advanced", "Fluent"]

    def test_invalid_entries_are_dropped(self):
        milestones = normalize_milestones([
            {"label": "Half", "threshold": 50},
            {"label": "", "threshold": 10},
            {"threshold": 30},
            {"label": "Bad", "threshold": "high"},
        ])

        assert [m.label for m in milestones] == ["Half"]

    def test_empty(self):
        assert normalize_milestones(None) == []
        assert normalize_milestones([]) == []

    def test_fractional_milestones_evaluate_on_percentage_scale(self, now):
        """A goal stored with 0..1 thresholds reaches them at the right progress"""
        goal = goal_from_record({
            "id": "g1",
            "type": "count",
            "target": 20,
            "timeframe": {"type": "fixed", "start": "2025-01-01", "end": "2025-12-31"},
            "settings": {"milestones": [
                {"label": "25%", "threshold": 0.25},
                {"label": "50%", "threshold": 0.5},
            ]},
        })
        logs = logs_from_records([
            {"goalId": "g1", "date": f"2025-0{month}-10", "value": 1} for month in range(1, 6)
        ])

        snapshot = ProgressEngine.build_snapshot(goal, logs, now)

        assert snapshot.progress.percentage == pytest.approx(0.25)
        assert [m.label for m in snapshot.milestones_reached] == ["25%"]


class TestLogFromRecord:
    """Tests for log_from_record"""

    def test_local_store_shape(self):
        log = log_from_record({"id": "l1", "goalId": "g1", "date": "2025-01-15", "value": 1, "note": "Done"})

        assert log.goal_id == "g1"
        assert log.date == datetime(2025, 1, 15)
        assert log.value == 1
        assert log.note == "Done"

    def test_api_shape_with_timezone(self):
        log = log_from_record({"id": 3, "goal_id": 9, "date": "2025-10-03T08:30:00+02:00", "value": "2.5"})

        assert log.goal_id == 9
        assert log.date == datetime(2025, 10, 3, 6, 30)
        assert log.value == 2.5

    def test_missing_goal_id_raises(self):
        with pytest.raises(ValidationException) as exc_info:
            log_from_record({"date": "2025-01-15", "value": 1})

        assert exc_info.value.field == "goal_id"

    def test_bad_date_raises(self):
        with pytest.raises(ValidationException) as exc_info:
            log_from_record({"goal_id": 1, "date": "15/01/2025", "value": 1})

        assert exc_info.value.field == "date"

    def test_missing_value_raises(self):
        with pytest.raises(ValidationException) as exc_info:
            log_from_record({"goal_id": 1, "date": "2025-01-15"})

        assert exc_info.value.field == "value"


class TestStoredMilestoneScale:
    """Milestones saved on the percentage scale are read back unchanged"""

    def test_settings_json_thresholds_are_not_rescaled(self):
        goal = goal_from_record({
            "id": 1,
            "goal_type": "sum",
            "target": 100,
            "timeframe_type": "rolling",
            "settings_json": '{"milestones": [{"label": "First step", "threshold": 1}]}',
        })

        assert [m.threshold for m in goal.milestones] == [1]

    def test_local_store_fractions_are_still_scaled(self):
        goal = goal_from_record({
            "id": "g1",
            "type": "count",
            "target": 4,
            "settings": {"milestones": [{"label": "Done", "threshold": 1}]},
        })

        assert [m.threshold for m in goal.milestones] == [100]


class TestNonFiniteNumbers:
    """NaN and infinity never reach the engine"""

    @pytest.mark.parametrize("value", ["nan", "inf", "-inf", float("nan")])
    def test_log_value(self, value):
        with pytest.raises(ValidationException) as exc_info:
            log_from_record({"goal_id": "g1", "date": "2025-10-05", "value": value})

        assert exc_info.value.field == "value"

    @pytest.mark.parametrize("target", ["nan", "inf", float("inf")])
    def test_goal_target(self, target):
        with pytest.raises(ValidationException) as exc_info:
            goal_from_record({"id": 1, "type": "sum", "target": target})

        assert exc_info.value.field == "target"

    def test_infinite_milestone_is_dropped(self):
        milestones = normalize_milestones([
            {"label": "Half", "threshold": 50},
            {"label": "Endless", "threshold": float("inf")},
        ])

        assert [m.label for m in milestones] == ["Half"]

    @pytest.mark.parametrize("value", [float("nan"), float("inf")])
    def test_log_payloads(self, value):
        with pytest.raises(ValueError):
            LogCreate(value=value)
        with pytest.raises(ValueError):
            LogUpdate(value=value)
