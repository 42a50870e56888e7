from __future__ import annotations
from pydantic import BaseModel
from enum import Enum
from datetime import datetime
from typing import Optional

# Fields a client may set; everything else is owned by the store.
EDITABLE_FIELDS = ("title", "description", "status", "due_date")

# Ids, offsets and limits are signed 64-bit integers in every supported store.
MAX_INT64 = 2**63 - 1


class TaskStatus(str, Enum):
    pending = "Pending"
    in_progress = "InProgress"
    completed = "Completed"


class TaskCreate(BaseModel):
    title: str = ""
    description: str = ""
    # Free string: values outside TaskStatus are stored as given.
    status: str = TaskStatus.pending.value
    due_date: Optional[datetime] = None


class TaskPatch(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None
    due_date: Optional[datetime] = None

    def changes(self) -> dict:
        """Fields present in the request body, minus nulls that can't be stored."""
        data = self.model_dump(include=set(EDITABLE_FIELDS), exclude_unset=True)
        return {k: v for k, v in data.items() if v is not None or k == "due_date"}


class Task(TaskCreate):
    id: int
    created_at: datetime
    updated_at: datetime


class TaskPage(BaseModel):
    tasks: list[Task]
    total_count: int
    page: int
    size: int
