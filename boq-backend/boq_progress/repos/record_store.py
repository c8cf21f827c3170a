from __future__ import annotations

import copy
import itertools
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol, Sequence, Union

logger = logging.getLogger(__name__)


RowId = Union[int, str]

PROJECTS_TABLE = "projects"
ACTIVITIES_TABLE = "boq_activities"
KPI_TABLE = "kpi_records"
HOLIDAYS_TABLE = "holidays"

KNOWN_TABLES: Sequence[str] = (PROJECTS_TABLE, ACTIVITIES_TABLE, KPI_TABLE, HOLIDAYS_TABLE)


class RecordStoreError(RuntimeError):
    """A single read or write against the record store failed."""


class RecordStore(Protocol):
    def query(
        self,
        table: str,
        filters: Optional[Mapping[str, Any]] = None,
        order_by: Sequence[str] = (),
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> List[dict]: ...

    def insert(self, table: str, rows: Iterable[Mapping[str, Any]]) -> List[dict]: ...

    def update(self, table: str, row_id: RowId, patch: Mapping[str, Any]) -> dict: ...

    def delete(self, table: str, row_id: RowId) -> None: ...


def check_table(table: str) -> str:
    if table not in KNOWN_TABLES:
        raise ValueError(f"Unknown table {table!r}")
    return table


def parse_ordering(order_by: Sequence[str]) -> List[tuple]:
    """``["-target_date", "id"]`` -> ``[("target_date", True), ("id", False)]``."""
    ordering = []
    for column in order_by:
        descending = column.startswith("-")
        ordering.append((column.lstrip("-"), descending))
    return ordering


def fetch_all(
    store: RecordStore,
    table: str,
    filters: Optional[Mapping[str, Any]] = None,
    order_by: Sequence[str] = ("id",),
    page_size: int = 1000,
) -> List[dict]:
    """Read every matching row, one page at a time, until a short page comes back."""
    if page_size < 1:
        raise ValueError("page_size must be positive")
    rows: List[dict] = []
    offset = 0
    while True:
        page = store.query(table, filters=filters, order_by=order_by, offset=offset, limit=page_size)
        rows.extend(page)
        if len(page) < page_size:
            break
        offset += page_size
    logger.debug("fetch_all table=%s rows=%s pages=%s", table, len(rows), offset // page_size + 1)
    return rows


def _sort_key(value: Any):
    # None sorts first, and mixed int/str ids compare as text
    if value is None:
        return (0, "")
    if isinstance(value, (int, float)):
        return (1, value)
    return (2, str(value))


class InMemoryRecordStore:
    """Dictionary-backed store used by tests and when no database is reachable."""

    def __init__(self, tables: Optional[Mapping[str, Iterable[Mapping[str, Any]]]] = None) -> None:
        self._tables: Dict[str, Dict[RowId, dict]] = {table: {} for table in KNOWN_TABLES}
        self._ids = itertools.count(1)
        for table, rows in (tables or {}).items():
            self.insert(table, rows)

    def _table(self, table: str) -> Dict[RowId, dict]:
        return self._tables[check_table(table)]

    def query(
        self,
        table: str,
        filters: Optional[Mapping[str, Any]] = None,
        order_by: Sequence[str] = (),
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> List[dict]:
        rows = [
            row
            for row in self._table(table).values()
            if all(row.get(column) == expected for column, expected in (filters or {}).items())
        ]
        for column, descending in reversed(parse_ordering(order_by)):
            rows.sort(key=lambda row: _sort_key(row.get(column)), reverse=descending)
        end = None if limit is None else offset + limit
        return [copy.deepcopy(row) for row in rows[offset:end]]

    def insert(self, table: str, rows: Iterable[Mapping[str, Any]]) -> List[dict]:
        target = self._table(table)
        inserted = []
        for row in rows:
            stored = dict(row)
            if stored.get("id") is None:
                stored["id"] = next(self._ids)
            target[stored["id"]] = stored
            inserted.append(copy.deepcopy(stored))
        return inserted

    def update(self, table: str, row_id: RowId, patch: Mapping[str, Any]) -> dict:
        target = self._table(table)
        if row_id not in target:
            raise RecordStoreError(f"{table} row {row_id!r} not found")
        target[row_id].update({key: value for key, value in patch.items() if key != "id"})
        return copy.deepcopy(target[row_id])

    def delete(self, table: str, row_id: RowId) -> None:
        target = self._table(table)
        if target.pop(row_id, None) is None:
            raise RecordStoreError(f"{table} row {row_id!r} not found")
