"""Tests for the recommendation rule engine and defaults."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from campuspulse.recommendations.types import ScheduleEntry, StudentFeatureSet, TaskSummary
from campuspulse.rules.defaults import default_recommendations
from campuspulse.rules.recommendations import RecommendationRuleEngine

AS_OF = datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc)


def _features(**overrides) -> StudentFeatureSet:
    base = dict(student_id="1", as_of=AS_OF, attendance_rate=95)
    base.update(overrides)
    return StudentFeatureSet(**base)


def _task(status: str, days_from_now: int, idx: int = 0) -> TaskSummary:
    return TaskSummary(task_id=str(idx), title=f"Task {idx}", status=status, due_date=AS_OF + timedelta(days=days_from_now))


def test_low_attendance_scenario() -> None:
    result = RecommendationRuleEngine().evaluate(_features(attendance_rate=60))

    assert [rec.type for rec in result] == ["attendance_improvement", "study_tip"]
    assert result[0].priority == "high"
    assert "60%" in result[0].description


def test_overdue_tasks_scenario() -> None:
    tasks = [_task("pending", -3, idx) for idx in range(3)]

    result = RecommendationRuleEngine().evaluate(_features(tasks=tasks))

    overdue = [rec for rec in result if rec.type == "task_prioritization"]
    assert len(overdue) == 1
    assert overdue[0].priority == "high"
    assert "3" in overdue[0].description


def test_future_and_completed_tasks_are_not_overdue() -> None:
    tasks = [_task("pending", 5, 1), _task("completed", -5, 2), TaskSummary("3", "No date", "pending")]

    result = RecommendationRuleEngine().evaluate(_features(tasks=tasks))

    assert all(rec.type != "task_prioritization" for rec in result)


def test_healthy_student_scenario() -> None:
    tasks = [_task("completed", -1, idx) for idx in range(9)] + [_task("pending", 3, 9)]

    result = RecommendationRuleEngine().evaluate(_features(tasks=tasks))

    assert len(result) == 1
    assert result[0].type == "study_tip"
    assert result[0].priority == "medium"
    assert result[0].title == "Implement Active Recall Techniques"


def test_low_completion_ratio_changes_study_tip_framing() -> None:
    tasks = [_task("completed", -1, 1), _task("pending", 3, 2)]

    result = RecommendationRuleEngine().evaluate(_features(tasks=tasks))

    assert result[-1].title == "Build a Task Completion Habit"
    assert "1 of your 2 tasks" in result[-1].description


def test_busy_days_are_named() -> None:
    features = _features(
        schedule=[ScheduleEntry("Monday", str(i)) for i in range(4)],
        busiest_weekdays=["Monday", "Thursday"],
    )

    result = RecommendationRuleEngine().evaluate(features)

    schedule = [rec for rec in result if rec.type == "schedule_optimization"]
    assert len(schedule) == 1
    assert "Monday, Thursday" in schedule[0].description
    assert schedule[0].priority == "medium"


def test_performance_metrics_add_a_study_tip() -> None:
    low = RecommendationRuleEngine().evaluate(_features(performance_metrics={"average_task_score": 55.0}))
    high = RecommendationRuleEngine().evaluate(_features(performance_metrics={"classes": 2}))

    assert [rec.id for rec in low] == ["rule_study_habit", "rule_performance"]
    assert low[1].title == "Review the Fundamentals"
    assert high[1].title == "Set a Stretch Goal"


def test_rules_fire_in_fixed_order_and_truncate() -> None:
    features = _features(
        attendance_rate=50,
        tasks=[_task("pending", -1, 1)],
        busiest_weekdays=["Friday"],
        performance_metrics={"average_task_score": 90},
    )

    result = RecommendationRuleEngine().evaluate(features)
    wide = RecommendationRuleEngine({"recommendations": {"max_items": 6}}).evaluate(features)

    assert [rec.id for rec in result] == ["rule_attendance", "rule_overdue_tasks", "rule_busy_days", "rule_study_habit"]
    assert len(wide) == 5
    assert wide[-1].id == "rule_performance"


def test_rule_engine_is_deterministic() -> None:
    features = _features(attendance_rate=70, tasks=[_task("pending", -2, 1)], busiest_weekdays=["Monday"])
    engine = RecommendationRuleEngine()

    assert engine.evaluate(features) == engine.evaluate(features)


def test_ids_are_unique_within_a_call() -> None:
    features = _features(attendance_rate=10, tasks=[_task("pending", -2, 1)], busiest_weekdays=["Monday"])

    ids = [rec.id for rec in RecommendationRuleEngine().evaluate(features)]

    assert len(ids) == len(set(ids))


def test_thresholds_come_from_config() -> None:
    cfg = {"recommendations": {"thresholds": {"attendance_rate": 50}}}

    result = RecommendationRuleEngine(cfg).evaluate(_features(attendance_rate=60))

    assert [rec.type for rec in result] == ["study_tip"]


def test_default_recommendations_cover_core_categories() -> None:
    defaults = default_recommendations()

    assert {rec.category for rec in defaults} == {"Attendance", "Organization", "Study Habits"}
    assert all(rec.description for rec in defaults)
    defaults[0].title = "changed"
    assert default_recommendations()[0].title == "Maintain Consistent Attendance"
