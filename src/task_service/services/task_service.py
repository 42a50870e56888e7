import logging
from typing import List, Optional, Tuple
from task_service.domain.errors import NotFound, ValidationError
from task_service.domain.task_models import MAX_INT64, Task, TaskCreate, TaskPatch

logger = logging.getLogger("tasks.service")

DEFAULT_PAGE = 1
DEFAULT_SIZE = 10


class TaskService:
    def __init__(self, repo):
        self.repo = repo

    async def list_tasks(
        self, page: int = DEFAULT_PAGE, size: int = DEFAULT_SIZE, status: Optional[str] = None
    ) -> Tuple[List[Task], int]:
        if page < 1 or size < 1:
            raise ValidationError(f"page and size must be >= 1 (got page={page}, size={size})")
        offset = (page - 1) * size
        if offset > MAX_INT64:
            # Past the last row any store could hold.
            tasks = []
        else:
            tasks = await self.repo.list(offset, size, status)
        total = await self.repo.count(status)
        return tasks, total

    async def get_task(self, task_id: int) -> Task:
        return await self.repo.get(task_id)

    async def create_task(self, data: TaskCreate) -> Task:
        task = await self.repo.create(data)
        logger.info("task.create", extra={"category": "tasks", "event": "task.create", "task_id": task.id})
        return task

    async def update_task(self, task_id: int, patch: TaskPatch) -> Task:
        existing = await self.repo.get(task_id)
        changes = patch.changes()
        merged = existing.model_copy(update=changes)
        task = await self.repo.update(merged)
        logger.info(
            "task.update",
            extra={"category": "tasks", "event": "task.update", "task_id": task_id, "fields": sorted(changes)},
        )
        return task

    async def delete_task(self, task_id: int) -> None:
        try:
            existing = await self.repo.get(task_id)
        except Exception as exc:
            # Lookup failures of any kind count as a missing task here.
            raise NotFound(task_id) from exc
        await self.repo.delete(existing)
        logger.info("task.delete", extra={"category": "tasks", "event": "task.delete", "task_id": task_id})
