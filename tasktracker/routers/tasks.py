from typing import Any, List, Optional

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.orm import Session
from tasktracker.cache import TaskCache, get_cache
from tasktracker.database import get_db
from tasktracker.schemas.task import BatchReorderIn, TaskCreate, TaskOut, TaskUpdate
from tasktracker.schemas.validation import require_valid
from tasktracker.services.tasks import TaskService
from tasktracker.utils.auth import get_current_user_id

router = APIRouter(prefix="/api/tasks", tags=["tasks"])


def get_task_service(db: Session = Depends(get_db), cache: TaskCache = Depends(get_cache)) -> TaskService:
    return TaskService(db, cache)


@router.get("", response_model=List[TaskOut])
def list_tasks(
    workspace_id: Optional[int] = Query(None, alias="workspaceId"),
    user_id: int = Depends(get_current_user_id),
    tasks: TaskService = Depends(get_task_service),
):
    """All of the caller's tasks (cached), or only those in ``workspaceId``."""
    return tasks.list(user_id, workspace_id)


# declared before /{task_id} so "batch" is not parsed as an id
@router.put("/batch")
def batch_update(
    payload: Any = Body(None),
    user_id: int = Depends(get_current_user_id),
    tasks: TaskService = Depends(get_task_service),
):
    data = require_valid(BatchReorderIn, payload)
    tasks.batch_reorder(user_id, data.tasks)
    return {"message": "Tasks updated"}


@router.post("", response_model=TaskOut, status_code=201)
def create_task(
    payload: Any = Body(None),
    user_id: int = Depends(get_current_user_id),
    tasks: TaskService = Depends(get_task_service),
):
    data = require_valid(TaskCreate, payload)
    return tasks.create(user_id, data)


@router.put("/{task_id}", response_model=TaskOut)
def update_task(
    task_id: int,
    payload: Any = Body(None),
    user_id: int = Depends(get_current_user_id),
    tasks: TaskService = Depends(get_task_service),
):
    data = require_valid(TaskUpdate, payload)
    return tasks.update(task_id, user_id, data)


@router.delete("/{task_id}")
def delete_task(
    task_id: int,
    user_id: int = Depends(get_current_user_id),
    tasks: TaskService = Depends(get_task_service),
):
    tasks.delete(task_id, user_id)
    return {"message": "Task deleted"}
