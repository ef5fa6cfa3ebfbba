"""Record a user's reaction to a recommendation."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from campuspulse.config import DEFAULT_CONFIG_PATH, load_config
from campuspulse.errors import StoreError
from campuspulse.logging_config import configure_logging
from campuspulse.recommendations.tools import resolve_path
from campuspulse.recommendations.types import INTERACTION_ACTIONS
from campuspulse.store.records import CsvRecordStore
from campuspulse.tracking.interactions import InteractionTracker


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Record a recommendation interaction.")
    parser.add_argument("--user_id", required=True)
    parser.add_argument("--recommendation_id", required=True)
    parser.add_argument("--action", required=True, choices=list(INTERACTION_ACTIONS))
    parser.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Path to config YAML.")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    cfg_path = args.config if args.config.is_absolute() else PROJECT_ROOT / args.config
    cfg = load_config(cfg_path)
    configure_logging(cfg)

    store = CsvRecordStore(resolve_path(cfg["store"]["data_dir"]))
    tracker = InteractionTracker(store, table=cfg["tracking"]["table"])
    try:
        tracker.record(args.user_id, args.recommendation_id, args.action)
    except StoreError as exc:
        print(f"Could not record interaction: {exc}", file=sys.stderr)
        sys.exit(1)
    print(f"Recorded {args.action} for {args.recommendation_id}")


if __name__ == "__main__":
    main()
