"""Reduce raw store rows for one student to a feature set."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

import pandas as pd

from campuspulse.errors import StoreError, StudentNotFoundError
from campuspulse.recommendations.tools import normalize_id, parse_timestamp, round_half_up, safe_text, utc_now
from campuspulse.recommendations.types import (
    ATTENDANCE_STATUSES,
    AttendanceEvent,
    AttendanceSummary,
    CounselingInputs,
    ScheduleEntry,
    StudentFeatureSet,
    StudentProfile,
    TaskCompletionSummary,
    TaskSummary,
)
from campuspulse.store.records import RecordStore

logger = logging.getLogger(__name__)

WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
SUMMARY_RECENT_LIMIT = 5

PROFILES_TABLE = "profiles"
ATTENDANCE_TABLE = "attendance_records"
TASKS_TABLE = "tasks"
SCHEDULES_TABLE = "schedules"
ANALYTICS_TABLE = "student_analytics"


def normalize_weekday(value: Any) -> str | None:
    """Map names, abbreviations, or 0-6 (Monday first) to a weekday name."""
    text = safe_text(value).strip().lower()
    if not text:
        return None
    if text.isdigit():
        idx = int(text)
        return WEEKDAYS[idx] if 0 <= idx < len(WEEKDAYS) else None
    for day in WEEKDAYS:
        if len(text) >= 3 and day.lower().startswith(text):
            return day
    return None


def attendance_rate(statuses: Sequence[str]) -> int:
    """Percentage of present-or-late records; 100 when there are none."""
    total = len(statuses)
    if total == 0:
        return 100
    attended = sum(1 for status in statuses if status in {"present", "late"})
    return round_half_up(100 * attended / total)


def busiest_weekdays(schedule: Sequence[ScheduleEntry], threshold: int) -> List[str]:
    """Weekdays carrying at least ``threshold`` classes, in calendar order."""
    if not schedule:
        return []
    counts = pd.Series([entry.weekday for entry in schedule]).value_counts()
    busy = set(counts[counts >= threshold].index)
    return [day for day in WEEKDAYS if day in busy]


def performance_metrics(rows: Sequence[Mapping[str, Any]]) -> Optional[Dict[str, Any]]:
    """Average the analytics snapshot columns across classes."""
    if not rows:
        return None
    df = pd.DataFrame(list(rows))
    metrics: Dict[str, Any] = {"classes": int(len(df))}
    for column in ("attendance_rate", "task_completion_rate", "average_task_score"):
        if column not in df.columns:
            continue
        values = pd.to_numeric(df[column], errors="coerce").dropna()
        if not values.empty:
            metrics[column] = round(float(values.mean()), 1)
    return metrics


def to_attendance_event(row: Mapping[str, Any]) -> AttendanceEvent:
    status = safe_text(row.get("status")).strip().lower()
    if status not in ATTENDANCE_STATUSES:
        status = "absent"
    return AttendanceEvent(
        status=status,
        timestamp=parse_timestamp(row.get("check_in_time")),
        class_name=safe_text(row.get("class_name")),
    )


def to_task_summary(row: Mapping[str, Any]) -> TaskSummary:
    return TaskSummary(
        task_id=normalize_id(row.get("id", "")),
        title=safe_text(row.get("title")),
        status=safe_text(row.get("status")).strip().lower() or "pending",
        due_date=parse_timestamp(row.get("due_date")),
        priority=safe_text(row.get("priority")).strip().lower() or "medium",
    )


def to_schedule_entry(row: Mapping[str, Any]) -> ScheduleEntry | None:
    weekday = normalize_weekday(row.get("day") or row.get("day_of_week") or row.get("weekday"))
    if weekday is None:
        return None
    class_ref = safe_text(row.get("class_id") or row.get("class_name"))
    return ScheduleEntry(weekday=weekday, class_ref=class_ref)


def _optional_int(value: Any) -> int | None:
    text = safe_text(value).strip()
    if not text:
        return None
    try:
        return int(float(text))
    except ValueError:
        return None


def to_profile(row: Mapping[str, Any]) -> StudentProfile:
    return StudentProfile(
        id=normalize_id(row.get("id", "")),
        full_name=safe_text(row.get("full_name")),
        email=safe_text(row.get("email")),
        role=safe_text(row.get("role")) or "student",
        department=safe_text(row.get("department")),
        year_level=_optional_int(row.get("year_level")),
    )


def summarize_attendance(events: Sequence[AttendanceEvent]) -> AttendanceSummary:
    statuses = [event.status for event in events]
    total = len(statuses)
    attended = statuses.count("present") + statuses.count("late")
    return AttendanceSummary(
        total_sessions=total,
        present_count=statuses.count("present"),
        absent_count=statuses.count("absent"),
        late_count=statuses.count("late"),
        excused_count=statuses.count("excused"),
        rate=(attended / total) * 100 if total else 100.0,
        recent=list(events[:SUMMARY_RECENT_LIMIT]),
    )


def summarize_tasks(tasks: Sequence[TaskSummary], as_of: datetime) -> TaskCompletionSummary:
    total = len(tasks)
    completed = sum(1 for task in tasks if task.status == "completed")
    return TaskCompletionSummary(
        total_tasks=total,
        completed_count=completed,
        pending_count=sum(1 for task in tasks if task.status == "pending"),
        overdue_count=sum(1 for task in tasks if task.is_overdue(as_of)),
        completion_rate=(completed / total) * 100 if total else 100.0,
        recent=list(tasks[:SUMMARY_RECENT_LIMIT]),
    )


class FeatureAggregator:
    """Read one student's records and derive the features the engines consume."""

    def __init__(
        self,
        store: RecordStore,
        cfg: Dict[str, Any] | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.store = store
        self.clock = clock
        cfg = cfg or {}
        self.rec_cfg = cfg.get("recommendations") or {}
        self.int_cfg = cfg.get("interventions") or {}

    def aggregate(self, student_id: str | int) -> StudentFeatureSet:
        sid = normalize_id(student_id)
        self.load_profile(sid)
        as_of = self.clock()

        events = [
            to_attendance_event(row)
            for row in self._read_or_empty(
                ATTENDANCE_TABLE,
                {"student_id": sid},
                order="-check_in_time",
                limit=int(self.rec_cfg.get("attendance_window", 30)),
            )
        ]
        tasks = [
            to_task_summary(row)
            for row in self._read_or_empty(
                TASKS_TABLE,
                {"assigned_to": sid},
                order="-due_date",
                limit=int(self.rec_cfg.get("task_window", 50)),
            )
        ]
        tasks.sort(key=lambda task: (task.due_date is None, task.due_date))
        schedule = [
            entry
            for entry in (to_schedule_entry(row) for row in self._read_or_empty(SCHEDULES_TABLE, {"student_id": sid}))
            if entry is not None
        ]
        analytics = self._read_or_empty(ANALYTICS_TABLE, {"student_id": sid})

        features = StudentFeatureSet(
            student_id=sid,
            as_of=as_of,
            attendance_rate=attendance_rate([event.status for event in events]),
            recent_attendance=events[: int(self.rec_cfg.get("recent_attendance_limit", 10))],
            tasks=tasks,
            schedule=schedule,
            busiest_weekdays=busiest_weekdays(schedule, int(self.rec_cfg.get("busy_day_threshold", 4))),
            performance_metrics=performance_metrics(analytics),
        )
        logger.info(
            "Aggregated features for student %s: attendance_rate=%s tasks=%d schedule=%d",
            sid,
            features.attendance_rate,
            len(tasks),
            len(schedule),
        )
        return features

    def load_counseling_inputs(self, student_id: str | int) -> CounselingInputs:
        sid = normalize_id(student_id)
        profile = self.load_profile(sid)
        as_of = self.clock()
        events = [
            to_attendance_event(row)
            for row in self._read_or_empty(
                ATTENDANCE_TABLE,
                {"student_id": sid},
                order="-check_in_time",
                limit=int(self.int_cfg.get("attendance_window", 20)),
            )
        ]
        tasks = [
            to_task_summary(row)
            for row in self._read_or_empty(
                TASKS_TABLE,
                {"assigned_to": sid},
                order="-due_date",
                limit=int(self.int_cfg.get("task_window", 20)),
            )
        ]
        return CounselingInputs(
            profile=profile,
            attendance=summarize_attendance(events),
            tasks=summarize_tasks(tasks, as_of),
            analytics=self._read_or_empty(ANALYTICS_TABLE, {"student_id": sid}),
        )

    def load_profile(self, sid: str) -> StudentProfile:
        try:
            rows = self.store.query(PROFILES_TABLE, {"id": sid}, limit=1)
        except StoreError as exc:
            logger.warning("Profile lookup failed for student %s: %s", sid, exc)
            raise StudentNotFoundError(sid) from exc
        if not rows:
            raise StudentNotFoundError(sid)
        return to_profile(rows[0])

    def _read_or_empty(
        self,
        table: str,
        filters: Mapping[str, Any],
        order: str | None = None,
        limit: int | None = None,
    ) -> List[Dict[str, Any]]:
        try:
            return self.store.query(table, filters, order=order, limit=limit)
        except StoreError as exc:
            logger.warning("Degrading %s to empty: %s", table, exc)
            return []
