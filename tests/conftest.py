"""Shared fixtures: CSV-backed stores built in ``tmp_path``."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Dict, List

import pandas as pd
import pytest

from campuspulse.store.records import CsvRecordStore


@pytest.fixture
def make_store(tmp_path: Path) -> Callable[..., CsvRecordStore]:
    """Write each keyword argument as a table and return a store over them."""

    def _make(**tables: List[Dict[str, Any]]) -> CsvRecordStore:
        data_dir = tmp_path / "store"
        data_dir.mkdir(exist_ok=True)
        for table, rows in tables.items():
            pd.DataFrame(rows).to_csv(data_dir / f"{table}.csv", index=False)
        return CsvRecordStore(data_dir)

    return _make
