"""Generate recommendations or counselor interventions for one student."""

from __future__ import annotations

import argparse
import json
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict

PROJECT_ROOT = Path(__file__).resolve().parent.parent
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from campuspulse.config import DEFAULT_CONFIG_PATH, load_config
from campuspulse.errors import StudentNotFoundError
from campuspulse.logging_config import configure_logging
from campuspulse.recommendations.orchestrator import (
    build_intervention_orchestrator,
    build_recommendation_orchestrator,
)
from campuspulse.recommendations.tools import resolve_path
from campuspulse.store.records import CsvRecordStore


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the CampusPulse recommendation pipeline.")
    parser.add_argument("--student_id", required=True, help="Student identifier to process.")
    parser.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Path to config YAML.")
    parser.add_argument(
        "--mode",
        choices=["recommendations", "interventions"],
        default="recommendations",
        help="Student recommendations or counselor interventions.",
    )
    parser.add_argument("--concern", default=None, help="Specific counselor concern (interventions mode).")
    return parser.parse_args()


def render_markdown(student_id: str, mode: str, payload: Dict[str, Any]) -> str:
    items = payload.get("recommendations") or payload.get("suggestions") or []
    lines = [f"# Student {student_id} {mode.title()}", f"Served by tier: `{payload.get('tier')}`"]
    for item in items:
        label = item.get("priority") or item.get("urgency")
        lines.append(f"## {item.get('title')} ({item.get('type')}, {label})")
        lines.append(item.get("description", ""))
        if item.get("approach"):
            lines.append(f"- Approach: {item['approach']}")
        if item.get("follow_up"):
            lines.append(f"- Follow-up: {item['follow_up']}")
        if item.get("estimated_impact"):
            lines.append(f"- Impact: {item['estimated_impact']}")
    lines.append("## Audit Log")
    lines.append("\n".join(f"- {entry}" for entry in payload.get("audit_log", []) or []))
    return "\n\n".join(lines)


def write_outputs(student_id: str, mode: str, payload: Dict[str, Any]) -> None:
    output_dir = PROJECT_ROOT / "reports" / "agent_outputs"
    output_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    json_path = output_dir / f"student_{student_id}_{mode}_{timestamp}.json"
    md_path = output_dir / f"student_{student_id}_{mode}_{timestamp}.md"

    json_path.write_text(json.dumps(payload, indent=2, default=str), encoding="utf-8")
    md_path.write_text(render_markdown(student_id, mode, payload), encoding="utf-8")

    print(f"Wrote outputs to {json_path} and {md_path}")


def main() -> None:
    args = parse_args()
    cfg_path = args.config if args.config.is_absolute() else PROJECT_ROOT / args.config
    if not cfg_path.exists():
        print(f"Config not found: {cfg_path}", file=sys.stderr)
        sys.exit(1)

    cfg = load_config(cfg_path)
    configure_logging(cfg)
    store = CsvRecordStore(resolve_path(cfg["store"]["data_dir"]))

    if args.mode == "interventions":
        orchestrator = build_intervention_orchestrator(cfg, store)
        try:
            payload = orchestrator.suggest_for(args.student_id, args.concern).to_dict()
        except StudentNotFoundError as exc:
            print(str(exc), file=sys.stderr)
            sys.exit(1)
    else:
        payload = build_recommendation_orchestrator(cfg, store).run(args.student_id).to_dict()

    write_outputs(str(args.student_id), args.mode, payload)


if __name__ == "__main__":
    main()
