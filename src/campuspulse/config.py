"""Configuration loading with defaults for every section."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("configs") / "config.yaml"


def load_config(path: Path | str) -> Dict[str, Any]:
    """Read a YAML config file and merge in defaults.

    Raises ``FileNotFoundError`` when the file is missing and ``ValueError``
    when the document is not a mapping.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    with path.open("r", encoding="utf-8") as handle:
        cfg = yaml.safe_load(handle) or {}
    if not isinstance(cfg, dict):
        raise ValueError("Configuration must be a mapping.")
    logger.info("Loaded configuration from %s", path)
    return apply_defaults(cfg)


def apply_defaults(cfg: Dict[str, Any]) -> Dict[str, Any]:
    """Fill in missing keys in place and return the same mapping."""
    store = cfg.setdefault("store", {})
    store.setdefault("data_dir", "data/store")

    rec = cfg.setdefault("recommendations", {})
    rec.setdefault("max_items", 4)
    rec.setdefault("attendance_window", 30)
    rec.setdefault("recent_attendance_limit", 10)
    rec.setdefault("task_window", 50)
    rec.setdefault("busy_day_threshold", 4)
    rec_thresholds = rec.setdefault("thresholds", {})
    rec_thresholds.setdefault("attendance_rate", 80)
    rec_thresholds.setdefault("completion_ratio", 0.7)
    rec_thresholds.setdefault("average_score", 70)

    interventions = cfg.setdefault("interventions", {})
    interventions.setdefault("max_items", 5)
    interventions.setdefault("attendance_window", 20)
    interventions.setdefault("task_window", 20)
    int_thresholds = interventions.setdefault("thresholds", {})
    int_thresholds.setdefault("attendance_rate", 75)
    int_thresholds.setdefault("completion_rate", 70)

    llm = cfg.setdefault("llm", {})
    llm.setdefault("enabled", True)
    llm.setdefault("provider", "groq")
    llm.setdefault("temperature", 0.7)
    llm.setdefault("max_tokens", 2000)
    llm.setdefault("timeout_seconds", 8)

    tracking = cfg.setdefault("tracking", {})
    tracking.setdefault("table", "recommendation_interactions")

    log_cfg = cfg.setdefault("logging", {})
    log_cfg.setdefault("level", "INFO")
    log_cfg.setdefault("format", "text")

    return cfg
