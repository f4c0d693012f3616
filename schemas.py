"""
Database Schemas for Orbit Pomodoro

Each Pydantic model represents a MongoDB collection (collection name is the lowercase class name).
createdAt/updatedAt are stamped by ``Database.create_document``.
"""
from pydantic import BaseModel, Field


class User(BaseModel):
    """
    Registered users
    Collection: "user"
    """
    name: str = Field(..., min_length=3, description="Unique login name")
    password: str = Field(..., description="bcrypt hash (server-side only)")


class Task(BaseModel):
    """
    Per-user task list entries
    Collection: "task"
    """
    name: str = Field(..., min_length=1)
    num: int = Field(1, ge=1, description="Target number of pomodoros")
    finish: int = Field(0, ge=0, description="Completed pomodoros")
    user: str = Field(..., description="Owning user id")


class Record(BaseModel):
    """
    One completed pomodoro, append-only
    Collection: "record"
    """
    user: str
