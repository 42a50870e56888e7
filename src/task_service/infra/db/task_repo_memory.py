from __future__ import annotations
from itertools import count
from typing import Dict, List, Optional
from datetime import datetime, timezone

from task_service.domain.errors import NotFound, StorageError
from task_service.domain.task_models import Task, TaskCreate


class InMemoryTaskRepo:
    """
    Process-local store with the same contract as SQLTaskRepo.
    Hands out copies, so callers never mutate stored tasks directly.
    """
    def __init__(self):
        self._tasks: Dict[int, Task] = {}
        self._ids = count(1)

    def _matching(self, status: Optional[str]) -> List[Task]:
        tasks = [t for t in self._tasks.values() if not status or t.status == status]
        # newest first
        return sorted(tasks, key=lambda t: (t.created_at, t.id), reverse=True)

    async def list(self, offset: int, limit: int, status: Optional[str] = None) -> List[Task]:
        return [t.model_copy() for t in self._matching(status)[offset:offset + limit]]

    async def count(self, status: Optional[str] = None) -> int:
        return len(self._matching(status))

    async def get(self, task_id: int) -> Task:
        task = self._tasks.get(task_id)
        if task is None:
            raise NotFound(task_id)
        return task.model_copy()

    async def create(self, data: TaskCreate) -> Task:
        now = datetime.now(timezone.utc)
        task = Task(id=next(self._ids), created_at=now, updated_at=now, **data.model_dump())
        self._tasks[task.id] = task
        return task.model_copy()

    async def update(self, task: Task) -> Task:
        current = self._tasks.get(task.id)
        if current is None:
            raise StorageError(f"task {task.id} no longer exists")
        saved = task.model_copy(
            update={"created_at": current.created_at, "updated_at": datetime.now(timezone.utc)}
        )
        self._tasks[task.id] = saved
        return saved.model_copy()

    async def delete(self, task: Task) -> None:
        self._tasks.pop(task.id, None)
