from typing import Any, List

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session
from tasktracker.cache import TaskCache, get_cache
from tasktracker.database import get_db
from tasktracker.schemas.validation import require_valid
from tasktracker.schemas.workspace import WorkspaceIn, WorkspaceOut
from tasktracker.services.demo import create_demo_workspace
from tasktracker.services.workspaces import WorkspaceService
from tasktracker.utils.auth import get_current_user_id

router = APIRouter(prefix="/api/workspaces", tags=["workspaces"])


def get_workspace_service(db: Session = Depends(get_db), cache: TaskCache = Depends(get_cache)) -> WorkspaceService:
    return WorkspaceService(db, cache)


@router.get("", response_model=List[WorkspaceOut])
def list_workspaces(
    user_id: int = Depends(get_current_user_id),
    workspaces: WorkspaceService = Depends(get_workspace_service),
):
    return workspaces.list(user_id)


@router.post("", response_model=WorkspaceOut, status_code=201)
def create_workspace(
    payload: Any = Body(None),
    user_id: int = Depends(get_current_user_id),
    workspaces: WorkspaceService = Depends(get_workspace_service),
):
    data = require_valid(WorkspaceIn, payload)
    return workspaces.create(user_id, data.name)


@router.post("/demo", response_model=WorkspaceOut, status_code=201)
def create_demo(
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    cache: TaskCache = Depends(get_cache),
):
    return create_demo_workspace(db, cache, user_id)


@router.get("/{workspace_id}", response_model=WorkspaceOut)
def get_workspace(
    workspace_id: int,
    user_id: int = Depends(get_current_user_id),
    workspaces: WorkspaceService = Depends(get_workspace_service),
):
    return workspaces.get(workspace_id, user_id)


@router.put("/{workspace_id}", response_model=WorkspaceOut)
def rename_workspace(
    workspace_id: int,
    payload: Any = Body(None),
    user_id: int = Depends(get_current_user_id),
    workspaces: WorkspaceService = Depends(get_workspace_service),
):
    data = require_valid(WorkspaceIn, payload)
    return workspaces.rename(workspace_id, user_id, data.name)


@router.delete("/{workspace_id}")
def delete_workspace(
    workspace_id: int,
    user_id: int = Depends(get_current_user_id),
    workspaces: WorkspaceService = Depends(get_workspace_service),
):
    workspaces.delete(workspace_id, user_id)
    return {"message": "Workspace deleted"}
