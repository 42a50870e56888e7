import logging
import re
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from task_service.domain.errors import NotFound
from task_service.domain.task_models import MAX_INT64, Task, TaskCreate, TaskPage, TaskPatch
from task_service.services.task_service import DEFAULT_PAGE, DEFAULT_SIZE, TaskService

router = APIRouter(prefix="/tasks", tags=["tasks"])
logger = logging.getLogger("tasks.api")


def get_service(request: Request) -> TaskService:
    # Wired in main.create_app()
    return request.app.state.task_service


_DECIMAL = re.compile(r"[+-]?[0-9]+")


def _parse_int(raw: Optional[str]) -> Optional[int]:
    """Plain ASCII decimal within signed 64-bit range, else None."""
    if raw is None or not _DECIMAL.fullmatch(raw):
        return None
    value = int(raw)
    if not -MAX_INT64 - 1 <= value <= MAX_INT64:
        return None
    return value


def _positive_or_default(raw: Optional[str], default: int) -> int:
    value = _parse_int(raw)
    return value if value is not None and value > 0 else default


def _task_id(raw: str) -> int:
    task_id = _parse_int(raw)
    if task_id is None or task_id <= 0:
        raise HTTPException(status_code=400, detail="Invalid task ID")
    return task_id


def _log_failure(event: str, **fields) -> None:
    logger.exception(event, extra={"category": "tasks", "event": event, **fields})


@router.get("", response_model=TaskPage)
@router.get("/", response_model=TaskPage, include_in_schema=False)
async def list_tasks(
    page: Optional[str] = None,
    size: Optional[str] = None,
    status: Optional[str] = None,
    svc: TaskService = Depends(get_service),
):
    page_no = _positive_or_default(page, DEFAULT_PAGE)
    page_size = _positive_or_default(size, DEFAULT_SIZE)
    try:
        tasks, total = await svc.list_tasks(page_no, page_size, status or None)
    except Exception:
        _log_failure("task.list.failed", page=page_no, size=page_size, status=status)
        raise HTTPException(status_code=500, detail="Failed to fetch tasks")
    return TaskPage(tasks=tasks, total_count=total, page=page_no, size=page_size)


@router.get("/{task_id}", response_model=Task)
async def get_task(task_id: str, svc: TaskService = Depends(get_service)):
    tid = _task_id(task_id)
    try:
        return await svc.get_task(tid)
    except NotFound:
        raise HTTPException(status_code=404, detail="Task not found")
    except Exception:
        # Read path reports every failure as missing.
        _log_failure("task.get.failed", task_id=tid)
        raise HTTPException(status_code=404, detail="Task not found")


@router.post("", response_model=Task, status_code=201)
@router.post("/", response_model=Task, status_code=201, include_in_schema=False)
async def create_task(payload: TaskCreate, svc: TaskService = Depends(get_service)):
    try:
        return await svc.create_task(payload)
    except Exception:
        _log_failure("task.create.failed")
        raise HTTPException(status_code=500, detail="Failed to create task")


@router.put("/{task_id}", status_code=204, response_class=Response)
async def update_task(task_id: str, payload: TaskPatch, svc: TaskService = Depends(get_service)):
    tid = _task_id(task_id)
    try:
        await svc.update_task(tid, payload)
    except Exception:
        # Missing tasks are not told apart from storage failures here.
        _log_failure("task.update.failed", task_id=tid)
        raise HTTPException(status_code=500, detail="Failed to update task")
    return Response(status_code=204)


@router.delete("/{task_id}", status_code=204, response_class=Response)
async def delete_task(task_id: str, svc: TaskService = Depends(get_service)):
    tid = _task_id(task_id)
    try:
        await svc.delete_task(tid)
    except Exception:
        _log_failure("task.delete.failed", task_id=tid)
        raise HTTPException(status_code=500, detail="Failed to delete task")
    return Response(status_code=204)
