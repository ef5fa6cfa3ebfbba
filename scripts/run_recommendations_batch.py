"""Generate recommendations for every student profile in the store."""

from __future__ import annotations

import argparse
import json
import sys
from datetime import date
from pathlib import Path
from typing import Any, Dict, List

PROJECT_ROOT = Path(__file__).resolve().parent.parent
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from campuspulse.config import DEFAULT_CONFIG_PATH, load_config
from campuspulse.logging_config import configure_logging
from campuspulse.recommendations.orchestrator import RecommendationOrchestrator, build_recommendation_orchestrator
from campuspulse.recommendations.tools import normalize_id, resolve_path
from campuspulse.store.records import CsvRecordStore, RecordStore


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run recommendations for all students.")
    parser.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Path to config YAML.")
    parser.add_argument("--top_n", type=int, default=None, help="Only process the first N students.")
    return parser.parse_args()


def student_ids(store: RecordStore, top_n: int | None = None) -> List[str]:
    rows = store.query("profiles", order="id")
    ids = [normalize_id(row["id"]) for row in rows if (row.get("role") or "student") == "student"]
    return ids[:top_n] if top_n is not None else ids


def run_batch(orchestrator: RecommendationOrchestrator, ids: List[str]) -> List[Dict[str, Any]]:
    return [orchestrator.run(sid).to_dict() for sid in ids]


def make_markdown(date_str: str, students: List[Dict[str, Any]]) -> str:
    lines = [f"# Daily Recommendation Pack – {date_str}"]
    for student in students:
        lines.append(f"## Student {student.get('student_id')} (tier: {student.get('tier')})")
        for rec in student.get("recommendations", []):
            lines.append(f"- [{rec.get('priority')}] {rec.get('title')}: {rec.get('description')}")
    return "\n\n".join(lines)


def main() -> None:
    args = parse_args()
    cfg_path = args.config if args.config.is_absolute() else PROJECT_ROOT / args.config
    if not cfg_path.exists():
        print(f"Config not found: {cfg_path}", file=sys.stderr)
        sys.exit(1)

    cfg = load_config(cfg_path)
    configure_logging(cfg)
    store = CsvRecordStore(resolve_path(cfg["store"]["data_dir"]))

    outputs = run_batch(build_recommendation_orchestrator(cfg, store), student_ids(store, args.top_n))

    today_str = date.today().isoformat()
    output_dir = PROJECT_ROOT / "reports" / "agent_outputs"
    output_dir.mkdir(parents=True, exist_ok=True)
    json_path = output_dir / f"recommendation_pack_{today_str}.json"
    md_path = output_dir / f"recommendation_pack_{today_str}.md"

    payload = {"date": today_str, "students": outputs}
    json_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    md_path.write_text(make_markdown(today_str, outputs), encoding="utf-8")

    print(f"Processed {len(outputs)} students.")
    print(f"Wrote {json_path}")
    print(f"Wrote {md_path}")


if __name__ == "__main__":
    main()
