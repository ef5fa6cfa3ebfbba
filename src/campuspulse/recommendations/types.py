"""Recommendation data structures."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

RECOMMENDATION_TYPES = (
    "study_tip",
    "schedule_optimization",
    "attendance_improvement",
    "task_prioritization",
)
PRIORITIES = ("high", "medium", "low")

INTERVENTION_TYPES = ("attendance", "academic", "personal", "career", "behavioral")
URGENCIES = ("immediate", "soon", "monitoring")

ATTENDANCE_STATUSES = ("present", "absent", "late", "excused")
TASK_STATUSES = ("pending", "in_progress", "completed", "overdue")

INTERACTION_ACTIONS = ("viewed", "dismissed", "acted_upon")


@dataclass
class AttendanceEvent:
    status: str
    timestamp: Optional[datetime] = None
    class_name: str = ""


@dataclass
class TaskSummary:
    task_id: str
    title: str
    status: str
    due_date: Optional[datetime] = None
    priority: str = "medium"

    def is_overdue(self, as_of: datetime) -> bool:
        return self.status != "completed" and self.due_date is not None and self.due_date < as_of


@dataclass
class ScheduleEntry:
    weekday: str
    class_ref: str


@dataclass
class StudentFeatureSet:
    student_id: str
    as_of: datetime
    attendance_rate: int = 100
    recent_attendance: List[AttendanceEvent] = field(default_factory=list)
    tasks: List[TaskSummary] = field(default_factory=list)
    schedule: List[ScheduleEntry] = field(default_factory=list)
    busiest_weekdays: List[str] = field(default_factory=list)
    performance_metrics: Optional[Dict[str, Any]] = None


@dataclass
class Recommendation:
    id: str
    type: str
    title: str
    description: str
    priority: str = "medium"
    actionable: bool = True
    estimated_impact: str = ""
    category: str = ""


@dataclass
class StudentProfile:
    id: str
    full_name: str = ""
    email: str = ""
    role: str = "student"
    department: str = ""
    year_level: Optional[int] = None

    @property
    def display_name(self) -> str:
        return self.full_name or f"Student {self.id}"


@dataclass
class AttendanceSummary:
    total_sessions: int = 0
    present_count: int = 0
    absent_count: int = 0
    late_count: int = 0
    excused_count: int = 0
    rate: float = 100.0
    recent: List[AttendanceEvent] = field(default_factory=list)


@dataclass
class TaskCompletionSummary:
    total_tasks: int = 0
    completed_count: int = 0
    pending_count: int = 0
    overdue_count: int = 0
    completion_rate: float = 100.0
    recent: List[TaskSummary] = field(default_factory=list)


@dataclass
class CounselingInputs:
    profile: StudentProfile
    attendance: AttendanceSummary
    tasks: TaskCompletionSummary
    analytics: List[Dict[str, Any]] = field(default_factory=list)


@dataclass
class InterventionSuggestion:
    id: str
    type: str
    title: str
    description: str
    approach: str = ""
    urgency: str = "monitoring"
    actionable: bool = True
    expected_outcome: str = ""
    follow_up: str = ""
    category: str = ""
