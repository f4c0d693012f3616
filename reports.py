"""Completed-pomodoro records and the rolling weekly report.

Days are UTC calendar days. Records are grouped and the window is generated
with the same ``date.isoformat()`` key so both sides always line up.
"""
from collections import Counter
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Union

from fastapi import Depends

from database import Database, get_database, utcnow
from logger import get_logger
from schemas import Record

logger = get_logger(__name__)

REPORT_DAYS = 7


def day_key(value: Union[date, datetime]) -> str:
    if isinstance(value, datetime):
        value = value.date()
    return value.isoformat()


def date_range(today: date, days: int = REPORT_DAYS) -> List[str]:
    """Inclusive window of ``days`` calendar days ending at ``today``, oldest first."""
    return [day_key(today - timedelta(days=offset)) for offset in range(days - 1, -1, -1)]


class RecordStore:
    COLLECTION = "record"

    def __init__(self, database: Database):
        self.database = database

    def append(self, user_id: str, created_at: Optional[datetime] = None) -> str:
        data = Record(user=user_id).model_dump()
        if created_at is not None:
            data["createdAt"] = created_at
        record_id = self.database.create_document(self.COLLECTION, data)
        logger.info("Pomodoro record added", user_id=user_id, record_id=record_id)
        return record_id

    def weekly_report(self, user_id: str, today: Optional[date] = None) -> List[Dict[str, object]]:
        today = today or utcnow().date()
        window = date_range(today)
        start = datetime.combine(today - timedelta(days=REPORT_DAYS - 1), datetime.min.time())
        end = datetime.combine(today + timedelta(days=1), datetime.min.time())

        docs = self.database.get_documents(
            self.COLLECTION,
            {"user": user_id, "createdAt": {"$gte": start, "$lt": end}},
        )
        counts = Counter(day_key(doc["createdAt"]) for doc in docs)
        return [{"date": day, "recordCount": counts.get(day, 0)} for day in window]


def get_record_store(database: Database = Depends(get_database)) -> RecordStore:
    return RecordStore(database)
