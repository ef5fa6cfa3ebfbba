"""Write a small demo CSV store for trying the recommendation scripts."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

import pandas as pd

PROJECT_ROOT = Path(__file__).resolve().parent.parent
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from campuspulse.config import DEFAULT_CONFIG_PATH, load_config
from campuspulse.recommendations.tools import resolve_path


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed a demo CSV record store.")
    parser.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Path to config YAML.")
    parser.add_argument("--force", action="store_true", help="Overwrite existing table files.")
    return parser.parse_args()


def ensure_demo_store(data_dir: Path, force: bool = False) -> None:
    """Create demo tables for three students unless they already exist."""
    tables = {
        "profiles": [
            {"id": 1, "full_name": "Ada Mensah", "email": "ada@example.edu", "role": "student", "department": "CS", "year_level": 2},
            {"id": 2, "full_name": "Ben Okafor", "email": "ben@example.edu", "role": "student", "department": "Math", "year_level": 1},
            {"id": 3, "full_name": "Chloe Park", "email": "chloe@example.edu", "role": "student", "department": "CS", "year_level": 3},
        ],
        "attendance_records": [
            {"id": 1, "student_id": 1, "status": "present", "check_in_time": "2026-09-01T09:00:00Z", "class_name": "Algorithms"},
            {"id": 2, "student_id": 1, "status": "late", "check_in_time": "2026-09-03T09:10:00Z", "class_name": "Algorithms"},
            {"id": 3, "student_id": 1, "status": "present", "check_in_time": "2026-09-05T09:00:00Z", "class_name": "Databases"},
            {"id": 4, "student_id": 2, "status": "absent", "check_in_time": "2026-09-01T11:00:00Z", "class_name": "Calculus"},
            {"id": 5, "student_id": 2, "status": "absent", "check_in_time": "2026-09-03T11:00:00Z", "class_name": "Calculus"},
            {"id": 6, "student_id": 2, "status": "present", "check_in_time": "2026-09-05T11:00:00Z", "class_name": "Linear Algebra"},
            {"id": 7, "student_id": 2, "status": "excused", "check_in_time": "2026-09-08T11:00:00Z", "class_name": "Calculus"},
        ],
        "tasks": [
            {"id": 1, "assigned_to": 1, "title": "Graph search lab", "status": "completed", "due_date": "2026-09-10T23:59:00Z", "priority": "medium"},
            {"id": 2, "assigned_to": 1, "title": "SQL project", "status": "completed", "due_date": "2026-09-20T23:59:00Z", "priority": "high"},
            {"id": 3, "assigned_to": 2, "title": "Problem set 1", "status": "pending", "due_date": "2026-09-12T23:59:00Z", "priority": "high"},
            {"id": 4, "assigned_to": 2, "title": "Problem set 2", "status": "in_progress", "due_date": "2026-09-19T23:59:00Z", "priority": "medium"},
            {"id": 5, "assigned_to": 2, "title": "Reading notes", "status": "completed", "due_date": "2026-09-05T23:59:00Z", "priority": "low"},
        ],
        "schedules": [
            {"student_id": 3, "day": "Monday", "class_id": 10},
            {"student_id": 3, "day": "Monday", "class_id": 11},
            {"student_id": 3, "day": "Monday", "class_id": 12},
            {"student_id": 3, "day": "Monday", "class_id": 13},
            {"student_id": 3, "day": "Wednesday", "class_id": 10},
            {"student_id": 1, "day": "Tuesday", "class_id": 20},
        ],
        "student_analytics": [
            {"student_id": 3, "class_id": 10, "attendance_rate": 92, "task_completion_rate": 88, "average_task_score": 64},
            {"student_id": 3, "class_id": 11, "attendance_rate": 95, "task_completion_rate": 90, "average_task_score": 70},
        ],
        "recommendation_interactions": [],
    }

    data_dir.mkdir(parents=True, exist_ok=True)
    for table, rows in tables.items():
        path = data_dir / f"{table}.csv"
        if path.exists() and not force:
            continue
        if rows:
            pd.DataFrame(rows).to_csv(path, index=False)
        else:
            pd.DataFrame(columns=["user_id", "recommendation_id", "action", "created_at"]).to_csv(path, index=False)


def main() -> None:
    args = parse_args()
    cfg_path = args.config if args.config.is_absolute() else PROJECT_ROOT / args.config
    cfg = load_config(cfg_path)
    data_dir = resolve_path(cfg["store"]["data_dir"])
    ensure_demo_store(data_dir, force=args.force)
    print(f"Demo store ready at {data_dir}")


if __name__ == "__main__":
    main()
