"""Deterministic recommendation rules."""

from __future__ import annotations

from typing import Any, Dict, List

from campuspulse.recommendations.types import Recommendation, StudentFeatureSet


class RecommendationRuleEngine:
    """Map a feature set to prioritized recommendations using fixed thresholds.

    Every rule is evaluated independently and the results are concatenated in
    rule order. An empty result is possible only when ``max_items`` is zero;
    the orchestrator owns the static defaults.
    """

    def __init__(self, cfg: Dict[str, Any] | None = None) -> None:
        rec_cfg = (cfg or {}).get("recommendations") or {}
        thresholds = rec_cfg.get("thresholds") or {}
        self.attendance_threshold = float(thresholds.get("attendance_rate", 80))
        self.completion_threshold = float(thresholds.get("completion_ratio", 0.7))
        self.score_threshold = float(thresholds.get("average_score", 70))
        self.max_items = int(rec_cfg.get("max_items", 4))

    def evaluate(self, features: StudentFeatureSet) -> List[Recommendation]:
        recommendations: List[Recommendation] = []

        attendance = self._attendance_rule(features)
        if attendance:
            recommendations.append(attendance)

        overdue = self._overdue_rule(features)
        if overdue:
            recommendations.append(overdue)

        schedule = self._schedule_rule(features)
        if schedule:
            recommendations.append(schedule)

        recommendations.append(self._study_habit_rule(features))

        performance = self._performance_rule(features)
        if performance:
            recommendations.append(performance)

        return recommendations[: self.max_items]

    def _attendance_rule(self, features: StudentFeatureSet) -> Recommendation | None:
        if features.attendance_rate >= self.attendance_threshold:
            return None
        return Recommendation(
            id="rule_attendance",
            type="attendance_improvement",
            title="Improve Your Attendance Rate",
            description=(
                f"Your attendance rate is {features.attendance_rate}%, below the "
                f"{self.attendance_threshold:g}% target. Attending more classes will improve your "
                "understanding of the material and your overall performance."
            ),
            priority="high",
            actionable=True,
            estimated_impact="High impact on overall performance",
            category="Attendance",
        )

    def _overdue_rule(self, features: StudentFeatureSet) -> Recommendation | None:
        overdue = [task for task in features.tasks if task.is_overdue(features.as_of)]
        if not overdue:
            return None
        noun = "task" if len(overdue) == 1 else "tasks"
        return Recommendation(
            id="rule_overdue_tasks",
            type="task_prioritization",
            title="Catch Up on Overdue Tasks",
            description=(
                f"You have {len(overdue)} overdue {noun}. Start with the one that was due first "
                "and block out time today to finish it before taking on new work."
            ),
            priority="high",
            actionable=True,
            estimated_impact="High impact on stress reduction and grades",
            category="Task Management",
        )

    def _schedule_rule(self, features: StudentFeatureSet) -> Recommendation | None:
        if not features.busiest_weekdays:
            return None
        days = ", ".join(features.busiest_weekdays)
        return Recommendation(
            id="rule_busy_days",
            type="schedule_optimization",
            title="Balance Your Study Schedule",
            description=(
                f"Your busiest days are {days}. Spread your study sessions across lighter days "
                "to avoid burnout when classes pile up."
            ),
            priority="medium",
            actionable=True,
            estimated_impact="Medium impact on workload management",
            category="Schedule Planning",
        )

    def _study_habit_rule(self, features: StudentFeatureSet) -> Recommendation:
        total = len(features.tasks)
        completed = sum(1 for task in features.tasks if task.status == "completed")
        if total and completed / total < self.completion_threshold:
            return Recommendation(
                id="rule_study_habit",
                type="study_tip",
                title="Build a Task Completion Habit",
                description=(
                    f"You have completed {completed} of your {total} tasks. Break large assignments "
                    "into short focused sessions and finish one piece before starting the next."
                ),
                priority="medium",
                actionable=True,
                estimated_impact="Medium impact on task completion",
                category="Study Habits",
            )
        return Recommendation(
            id="rule_study_habit",
            type="study_tip",
            title="Implement Active Recall Techniques",
            description=(
                "Active recall (self-testing) is more effective than passive review. "
                "Try summarizing what you have learned without looking at your notes."
            ),
            priority="medium",
            actionable=False,
            estimated_impact="High impact on long-term retention",
            category="Study Methods",
        )

    def _performance_rule(self, features: StudentFeatureSet) -> Recommendation | None:
        metrics = features.performance_metrics
        if metrics is None:
            return None
        score = metrics.get("average_task_score")
        if score is not None and float(score) < self.score_threshold:
            return Recommendation(
                id="rule_performance",
                type="study_tip",
                title="Review the Fundamentals",
                description=(
                    f"Your average task score is {float(score):.1f}. Revisit the core concepts of "
                    "your weaker classes and ask your teacher for feedback on recent work."
                ),
                priority="medium",
                actionable=True,
                estimated_impact="High impact on grades",
                category="Performance",
            )
        return Recommendation(
            id="rule_performance",
            type="study_tip",
            title="Set a Stretch Goal",
            description=(
                "Your class results are on track. Pick one subject and set a stretch goal, "
                "such as an extra practice set each week, to keep improving."
            ),
            priority="low",
            actionable=True,
            estimated_impact="Medium impact on mastery",
            category="Performance",
        )
