"""Static recommendations served when nothing personalized is available."""

from __future__ import annotations

from dataclasses import replace
from typing import List

from campuspulse.recommendations.types import Recommendation

_DEFAULT_RECOMMENDATIONS = (
    Recommendation(
        id="default_attendance",
        type="attendance_improvement",
        title="Maintain Consistent Attendance",
        description=(
            "Regular attendance is strongly correlated with academic success. "
            "Try to attend all your classes and arrive on time."
        ),
        priority="high",
        actionable=False,
        estimated_impact="High impact on learning outcomes",
        category="Attendance",
    ),
    Recommendation(
        id="default_organization",
        type="task_prioritization",
        title="Organize Your Study Materials",
        description=(
            "Keep your notes, assignments, and study materials well-organized. "
            "This will save you time and reduce stress when preparing for exams."
        ),
        priority="medium",
        actionable=False,
        estimated_impact="Medium impact on study efficiency",
        category="Organization",
    ),
    Recommendation(
        id="default_study",
        type="study_tip",
        title="Develop a Consistent Study Routine",
        description=(
            "Establish a regular study schedule with dedicated time slots for each subject. "
            "Consistency is key to effective learning."
        ),
        priority="medium",
        actionable=False,
        estimated_impact="High impact on knowledge retention",
        category="Study Habits",
    ),
)


def default_recommendations() -> List[Recommendation]:
    """Return fresh copies so callers can mutate their list safely."""
    return [replace(rec) for rec in _DEFAULT_RECOMMENDATIONS]
