"""
MongoDB access for the Orbit Pomodoro API.

A single ``Database`` owns the ``MongoClient`` for the lifetime of the app.
It is created during startup and closed on shutdown; request handlers reach
it through ``request.app.state.database``.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import Request
from pymongo import ASCENDING, MongoClient
from pymongo.errors import PyMongoError

from config import Settings
from logger import get_logger

logger = get_logger(__name__)


def utcnow() -> datetime:
    # pymongo hands datetimes back naive (UTC); store them the same way
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Database:
    def __init__(self, client: MongoClient, name: str):
        self.client = client
        self.db = client[name]
        self.name = name

    @classmethod
    def connect(cls, settings: Settings) -> "Database":
        client = MongoClient(settings.database_url, serverSelectionTimeoutMS=5000)
        logger.info("MongoDB client created", database=settings.database_name)
        return cls(client, settings.database_name)

    def __getitem__(self, collection_name: str):
        return self.db[collection_name]

    def ensure_indexes(self) -> None:
        self.db["user"].create_index([("name", ASCENDING)], unique=True)
        self.db["task"].create_index([("user", ASCENDING), ("createdAt", ASCENDING)])
        self.db["record"].create_index([("user", ASCENDING), ("createdAt", ASCENDING)])

    def ping(self) -> bool:
        try:
            self.client.admin.command("ping")
            return True
        except PyMongoError:
            return False

    def close(self) -> None:
        self.client.close()
        logger.info("MongoDB client closed", database=self.name)

    # ----------------------
    # Document helpers
    # ----------------------
    def create_document(self, collection_name: str, data: Dict[str, Any]) -> str:
        """Insert ``data`` with createdAt/updatedAt stamps and return the new id."""
        now = utcnow()
        doc = dict(data)
        doc.setdefault("createdAt", now)
        doc.setdefault("updatedAt", doc["createdAt"])
        result = self.db[collection_name].insert_one(doc)
        return str(result.inserted_id)

    def get_documents(
        self,
        collection_name: str,
        filter_dict: Optional[Dict[str, Any]] = None,
        limit: Optional[int] = None,
        sort: Optional[List[tuple]] = None,
    ) -> List[Dict[str, Any]]:
        cursor = self.db[collection_name].find(filter_dict or {})
        if sort:
            cursor = cursor.sort(sort)
        if limit:
            cursor = cursor.limit(limit)
        return list(cursor)


def get_database(request: Request) -> Database:
    return request.app.state.database
