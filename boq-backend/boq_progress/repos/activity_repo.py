from __future__ import annotations

from typing import List, Optional

from ..config import settings
from ..models.records import Activity, Project
from .record_store import ACTIVITIES_TABLE, PROJECTS_TABLE, RecordStore, fetch_all


class ActivityRepo:
    def __init__(self, store: RecordStore, page_size: Optional[int] = None) -> None:
        self.store = store
        self.page_size = page_size or settings.store_page_size

    def fetch_projects(self) -> List[Project]:
        rows = fetch_all(self.store, PROJECTS_TABLE, order_by=("project_code", "id"), page_size=self.page_size)
        return [Project.model_validate(row) for row in rows]

    def fetch_activities(self) -> List[Activity]:
        rows = fetch_all(self.store, ACTIVITIES_TABLE, order_by=("id",), page_size=self.page_size)
        return [Activity.model_validate(row) for row in rows]
