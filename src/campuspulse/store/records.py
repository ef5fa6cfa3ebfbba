"""Record store interface and a CSV-backed implementation."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Protocol

import pandas as pd

from campuspulse.errors import StoreError
from campuspulse.recommendations.tools import normalize_id

logger = logging.getLogger(__name__)

_UNREADABLE = (OSError, UnicodeDecodeError, pd.errors.ParserError)


class RecordStore(Protocol):
    def query(
        self,
        table: str,
        filters: Mapping[str, Any] | None = None,
        order: str | None = None,
        limit: int | None = None,
    ) -> List[Dict[str, Any]]:
        """Return rows matching equality filters; ``order`` may be prefixed with ``-`` for descending."""
        ...

    def insert(self, table: str, record: Mapping[str, Any]) -> None:
        """Append one record to a table."""
        ...


def _sort_key(series: pd.Series) -> pd.Series:
    present = series != ""
    numeric = pd.to_numeric(series.where(present), errors="coerce")
    if numeric[present].notna().all():
        return numeric
    parsed = pd.to_datetime(series.where(present), errors="coerce", utc=True, format="ISO8601")
    if parsed[present].notna().all():
        return parsed
    return series


class CsvRecordStore:
    """One CSV file per table under ``data_dir``. Every cell is read back as text."""

    def __init__(self, data_dir: Path | str) -> None:
        self.data_dir = Path(data_dir)

    def _table_path(self, table: str) -> Path:
        return self.data_dir / f"{table}.csv"

    def _read(self, table: str) -> pd.DataFrame:
        path = self._table_path(table)
        if not path.exists():
            raise StoreError(table, f"table not found at {path}")
        try:
            df = pd.read_csv(path, dtype=str, keep_default_na=False)
        except pd.errors.EmptyDataError:
            return pd.DataFrame()
        except _UNREADABLE as exc:
            raise StoreError(table, f"unreadable table file {path}") from exc
        df.columns = [str(c).strip() for c in df.columns]
        return df

    def _header(self, table: str) -> List[str]:
        path = self._table_path(table)
        if not path.exists():
            return []
        try:
            columns = pd.read_csv(path, nrows=0).columns
        except pd.errors.EmptyDataError:
            return []
        except _UNREADABLE as exc:
            raise StoreError(table, f"unreadable table file {path}") from exc
        return [str(c).strip() for c in columns]

    def query(
        self,
        table: str,
        filters: Mapping[str, Any] | None = None,
        order: str | None = None,
        limit: int | None = None,
    ) -> List[Dict[str, Any]]:
        df = self._read(table)
        if df.empty:
            return []

        for column, value in (filters or {}).items():
            if column not in df.columns:
                raise StoreError(table, f"unknown column '{column}'")
            df = df[df[column].map(normalize_id) == normalize_id(value)]

        if order:
            column = order.lstrip("-")
            if column not in df.columns:
                raise StoreError(table, f"unknown order column '{column}'")
            df = df.sort_values(by=column, ascending=not order.startswith("-"), key=_sort_key, kind="stable")

        if limit is not None:
            df = df.head(limit)

        return [
            {key: (val if val != "" else None) for key, val in row.items()}
            for row in df.to_dict(orient="records")
        ]

    def insert(self, table: str, record: Mapping[str, Any]) -> None:
        """Append one row. The file is rewritten only when the record brings new columns."""
        path = self._table_path(table)
        row = pd.DataFrame([{key: "" if val is None else val for key, val in record.items()}])
        columns = self._header(table)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            if columns and set(row.columns) <= set(columns):
                row.reindex(columns=columns).to_csv(path, mode="a", header=False, index=False)
            else:
                if columns:
                    row = pd.concat([self._read(table), row], ignore_index=True)
                row.to_csv(path, index=False)
        except OSError as exc:
            raise StoreError(table, f"write failed for {path}") from exc
        logger.debug("Inserted one row into %s", table)
