import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from api.dependencies import get_repository
from api.metrics import TASKS_STORED
from smart_tasks.models import (
    BulkActionName,
    Priority,
    Source,
    TaskQuery,
    TaskUpdate,
)
from storage.task_codec import export_tasks, import_tasks
from storage.task_repository import TaskRepository

router = APIRouter()
logger = logging.getLogger(__name__)


class CompleteIn(BaseModel):
    completed: bool


class BulkIn(BaseModel):
    ids: List[int] = Field(..., min_length=1)
    action: BulkActionName
    params: Dict[str, Any] = Field(default_factory=dict)


class ImportIn(BaseModel):
    tasks: List[Any]
    replace: bool = False


def _refresh_gauge(repository: TaskRepository) -> None:
    try:
        TASKS_STORED.set(repository.count())
    except Exception:
        pass


@router.get("/tasks")
async def list_tasks(
    completed: Optional[bool] = None,
    source: Optional[Source] = None,
    priority: Optional[Priority] = None,
    assignee: Optional[str] = None,
    overdue: Optional[bool] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1),
    repository: TaskRepository = Depends(get_repository),
) -> dict:
    """Filtered, sorted and paginated task list, plus stats over every task."""
    result = repository.query(
        TaskQuery(
            completed=completed,
            source=source,
            priority=priority,
            assignee=assignee,
            overdue=overdue,
            search=search,
            page=page,
            limit=limit,
        )
    )
    body = result.public()
    return {
        "success": True,
        "tasks": body["items"],
        "pagination": body["pagination"],
        "stats": body["stats"],
    }


@router.get("/tasks/stats")
async def task_stats(repository: TaskRepository = Depends(get_repository)) -> dict:
    return {"success": True, "stats": repository.stats().public()}


@router.get("/tasks/export")
async def export_all(repository: TaskRepository = Depends(get_repository)) -> dict:
    return export_tasks(repository).public()


@router.post("/tasks/import")
async def import_all(
    payload: ImportIn,
    repository: TaskRepository = Depends(get_repository),
) -> dict:
    result = import_tasks(repository, payload.tasks, replace=payload.replace)
    _refresh_gauge(repository)
    return {
        "success": True,
        **result.public(),
        "message": f"Imported {result.imported_count} task(s)",
    }


@router.post("/tasks/bulk")
async def bulk_action(
    payload: BulkIn,
    repository: TaskRepository = Depends(get_repository),
) -> dict:
    result = repository.bulk_action(payload.ids, payload.action, payload.params)
    _refresh_gauge(repository)
    return {"success": True, **result.public()}


@router.delete("/tasks/source/{source}")
async def delete_by_source(
    source: Source,
    repository: TaskRepository = Depends(get_repository),
) -> dict:
    result = repository.delete_by_source(source)
    _refresh_gauge(repository)
    return {
        "success": True,
        **result.public(),
        "message": f"Deleted {result.count} {source.value} task(s)",
    }


@router.get("/tasks/{task_id}")
async def get_task(task_id: int, repository: TaskRepository = Depends(get_repository)) -> dict:
    return {"success": True, "task": repository.get(task_id).public()}


@router.put("/tasks/{task_id}")
async def update_task(
    task_id: int,
    payload: TaskUpdate,
    repository: TaskRepository = Depends(get_repository),
) -> dict:
    task = repository.update(task_id, payload)
    return {
        "success": True,
        "task": task.public(),
        "message": "Task updated successfully",
    }


@router.patch("/tasks/{task_id}/complete")
async def toggle_complete(
    task_id: int,
    payload: CompleteIn,
    repository: TaskRepository = Depends(get_repository),
) -> dict:
    task = repository.toggle_complete(task_id, payload.completed)
    return {"success": True, "task": task.public()}


@router.delete("/tasks/{task_id}")
async def delete_task(task_id: int, repository: TaskRepository = Depends(get_repository)) -> dict:
    task = repository.delete(task_id)
    _refresh_gauge(repository)
    logger.info(f"Task {task.id} deleted via API")
    return {
        "success": True,
        "task": task.public(),
        "message": "Task deleted successfully",
    }
