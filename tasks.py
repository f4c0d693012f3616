"""Per-user task list.

Every mutation returns the caller's full, freshly read task list; clients
replace their local copy with it.
"""
from typing import Any, Dict, List, Optional

from bson import ObjectId
from fastapi import Depends
from pymongo import ASCENDING

from database import Database, get_database, utcnow
from errors import InvalidInput, NotFound
from logger import get_logger
from schemas import Task

logger = get_logger(__name__)


# Counts are kept within int32
MAX_COUNT = 2**31 - 1


def coerce_target(num: Any) -> int:
    """Target counts fall back to 1 when missing, non-numeric or out of range."""
    if isinstance(num, bool):
        return 1
    try:
        value = int(num)
    except (TypeError, ValueError, OverflowError):
        return 1
    return value if 0 < value <= MAX_COUNT else 1


def coerce_finish(finish: Any) -> int:
    if finish is None or finish == "":
        raise InvalidInput("Finish value is required")
    if isinstance(finish, bool):
        raise InvalidInput("Finish must be a non-negative integer")
    try:
        value = int(finish)
    except (TypeError, ValueError, OverflowError):
        raise InvalidInput("Finish must be a non-negative integer")
    if not 0 <= value <= MAX_COUNT:
        raise InvalidInput("Finish must be a non-negative integer")
    return value


def serialize_task(doc: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "_id": str(doc["_id"]),
        "name": doc.get("name"),
        "num": int(doc.get("num", 1)),
        "finish": int(doc.get("finish", 0)),
        "user": doc.get("user"),
        "createdAt": doc["createdAt"].isoformat() if doc.get("createdAt") else None,
        "updatedAt": doc["updatedAt"].isoformat() if doc.get("updatedAt") else None,
    }


class TaskStore:
    COLLECTION = "task"

    def __init__(self, database: Database):
        self.database = database

    @property
    def collection(self):
        return self.database[self.COLLECTION]

    def _owned(self, user_id: str, task_id: Optional[str]) -> Optional[Dict[str, Any]]:
        # Unknown ids and tasks of other users look exactly the same
        if not task_id or not ObjectId.is_valid(task_id):
            return None
        return {"_id": ObjectId(task_id), "user": user_id}

    def list(self, user_id: str) -> List[Dict[str, Any]]:
        docs = self.database.get_documents(
            self.COLLECTION,
            {"user": user_id},
            sort=[("createdAt", ASCENDING), ("_id", ASCENDING)],
        )
        return [serialize_task(doc) for doc in docs]

    def add(self, user_id: str, name: Optional[str], num: Any = None) -> List[Dict[str, Any]]:
        name = name.strip() if isinstance(name, str) else ""
        if not name:
            raise InvalidInput("Task name is required")

        task = Task(name=name, num=coerce_target(num), finish=0, user=user_id)
        task_id = self.database.create_document(self.COLLECTION, task.model_dump())
        logger.info("Task created", user_id=user_id, task_id=task_id, name=name)
        return self.list(user_id)

    def update(self, user_id: str, task_id: Optional[str], finish: Any) -> List[Dict[str, Any]]:
        value = coerce_finish(finish)
        query = self._owned(user_id, task_id)
        if query is None:
            raise NotFound("Task not found")

        result = self.collection.update_one(query, {"$set": {"finish": value, "updatedAt": utcnow()}})
        if result.matched_count == 0:
            raise NotFound("Task not found")

        logger.info("Task updated", user_id=user_id, task_id=task_id, finish=value)
        return self.list(user_id)

    def remove(self, user_id: str, task_id: Optional[str]) -> List[Dict[str, Any]]:
        query = self._owned(user_id, task_id)
        if query is None:
            raise NotFound("Task not found")

        result = self.collection.delete_one(query)
        if result.deleted_count == 0:
            raise NotFound("Task not found")

        logger.info("Task deleted", user_id=user_id, task_id=task_id)
        return self.list(user_id)

    def remove_all(self, user_id: str) -> List[Dict[str, Any]]:
        result = self.collection.delete_many({"user": user_id})
        logger.info("All tasks deleted", user_id=user_id, deleted=result.deleted_count)
        return []


def get_task_store(database: Database = Depends(get_database)) -> TaskStore:
    return TaskStore(database)
