from __future__ import annotations

import logging
from typing import List

from ..models.calendar import CalendarConfig, Holiday
from ..models.records import coerce_date
from ..services.calendar import default_config
from .record_store import HOLIDAYS_TABLE, RecordStore, RecordStoreError

logger = logging.getLogger(__name__)


class HolidayRepo:
    def __init__(self, store: RecordStore) -> None:
        self.store = store

    def fetch_active(self) -> List[Holiday]:
        rows = self.store.query(HOLIDAYS_TABLE, filters={"is_active": True}, order_by=("date",))
        holidays = []
        for row in rows:
            day = coerce_date(row.get("date"))
            if day is None:
                logger.warning("Skipping holiday id=%s with unreadable date %r", row.get("id"), row.get("date"))
                continue
            holidays.append(Holiday(date=day, name=row.get("name") or "", is_recurring=bool(row.get("is_recurring"))))
        return holidays

    def load_calendar(self) -> CalendarConfig:
        """Working calendar from settings plus the active holidays.

        Holidays are optional input; when they cannot be read the calendar
        falls back to weekends only.
        """
        try:
            holidays = self.fetch_active()
        except RecordStoreError as exc:
            logger.warning("Could not load holidays; using weekends only: %s", exc)
            holidays = []
        return default_config(holidays)
