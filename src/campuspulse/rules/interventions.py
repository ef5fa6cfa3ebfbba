"""Deterministic counselor intervention rules."""

from __future__ import annotations

from typing import Any, Dict, List

from campuspulse.recommendations.types import (
    AttendanceSummary,
    InterventionSuggestion,
    StudentProfile,
    TaskCompletionSummary,
)


class InterventionRuleEngine:
    """Suggest counselor interventions from attendance and task summaries.

    The general check-in is always appended, so the result is never empty.
    """

    def __init__(self, cfg: Dict[str, Any] | None = None) -> None:
        thresholds = ((cfg or {}).get("interventions") or {}).get("thresholds") or {}
        self.attendance_threshold = float(thresholds.get("attendance_rate", 75))
        self.completion_threshold = float(thresholds.get("completion_rate", 70))

    def evaluate(
        self,
        attendance: AttendanceSummary,
        tasks: TaskCompletionSummary,
        profile: StudentProfile,
    ) -> List[InterventionSuggestion]:
        name = profile.display_name
        suggestions: List[InterventionSuggestion] = []

        if attendance.rate < self.attendance_threshold:
            suggestions.append(
                InterventionSuggestion(
                    id="attendance_intervention",
                    type="attendance",
                    title="Schedule Attendance Intervention",
                    approach="One-on-one meeting",
                    description=(
                        f"{name} has an attendance rate of {attendance.rate:.1f}%. Schedule a meeting to "
                        "discuss barriers to attendance and develop an improvement plan."
                    ),
                    urgency="immediate",
                    expected_outcome="Improved attendance within 2 weeks",
                    follow_up="Weekly check-ins for the next month",
                    category="Attendance",
                )
            )

        if tasks.completion_rate < self.completion_threshold:
            suggestions.append(
                InterventionSuggestion(
                    id="task_management_intervention",
                    type="academic",
                    title="Task Management Support",
                    approach="Study skills workshop",
                    description=(
                        f"{name} has a task completion rate of {tasks.completion_rate:.1f}%. Recommend a "
                        "time management workshop and provide one-on-one task prioritization guidance."
                    ),
                    urgency="soon",
                    expected_outcome="Improved task completion rate and fewer late submissions",
                    follow_up="Review progress in 3 weeks",
                    category="Academic",
                )
            )

        suggestions.append(
            InterventionSuggestion(
                id="general_support",
                type="personal",
                title="General Academic Support Check-in",
                approach="Casual check-in meeting",
                description=(
                    f"Schedule a general check-in with {name} to assess overall academic satisfaction "
                    "and identify any unreported challenges or concerns."
                ),
                urgency="monitoring",
                expected_outcome="Early identification of potential issues",
                follow_up="Regular semester check-ins",
                category="Wellbeing",
            )
        )
        return suggestions
