from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from ..config import settings
from ..models.records import PLANNED, KPIRecord
from .record_store import KPI_TABLE, RecordStore, RowId, fetch_all

logger = logging.getLogger(__name__)


class KpiRepo:
    """Typed access to the KPI table; rows are normalised on the way out."""

    def __init__(self, store: RecordStore, page_size: Optional[int] = None) -> None:
        self.store = store
        self.page_size = page_size or settings.store_page_size

    def fetch_all(self) -> List[KPIRecord]:
        rows = fetch_all(self.store, KPI_TABLE, order_by=("id",), page_size=self.page_size)
        return [KPIRecord.model_validate(row) for row in rows]

    def fetch_generated_plan(self, project_full_code: str, activity_name: str) -> List[KPIRecord]:
        """Planned rows generated for one activity, oldest date first."""
        rows = fetch_all(
            self.store,
            KPI_TABLE,
            filters={
                "project_full_code": project_full_code,
                "activity_name": activity_name,
                "input_type": PLANNED,
            },
            order_by=("target_date", "id"),
            page_size=self.page_size,
        )
        return [KPIRecord.model_validate(row) for row in rows]

    def insert(self, record: KPIRecord) -> KPIRecord:
        rows = self.store.insert(KPI_TABLE, [record.to_row()])
        return KPIRecord.model_validate(rows[0])

    def insert_many(self, records: Iterable[KPIRecord]) -> List[KPIRecord]:
        rows = self.store.insert(KPI_TABLE, [record.to_row() for record in records])
        return [KPIRecord.model_validate(row) for row in rows]

    def update(self, row_id: RowId, patch: dict) -> KPIRecord:
        return KPIRecord.model_validate(self.store.update(KPI_TABLE, row_id, patch))

    def delete(self, row_id: RowId) -> None:
        self.store.delete(KPI_TABLE, row_id)
