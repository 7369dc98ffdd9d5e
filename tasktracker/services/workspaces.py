import logging
from typing import List

from sqlalchemy import delete, or_, select
from sqlalchemy.orm import Session
from tasktracker.cache import TaskCache
from tasktracker.errors import NotFoundError
from tasktracker.models.task import Task
from tasktracker.models.user import User
from tasktracker.models.workspace import Workspace

logger = logging.getLogger(__name__)


def _visible_to(user_id):
    """Predicate matching workspaces the user owns or is a member of."""
    return or_(Workspace.owner_id == user_id, Workspace.members.any(User.id == user_id))


class WorkspaceService:
    """Workspace CRUD.

    Lookups fold the authorization check into the query, so "not found" also
    covers "exists but you may not see it" (read) or "you are not the owner"
    (rename/delete).
    """

    def __init__(self, db: Session, cache: TaskCache):
        self.db = db
        self.cache = cache

    def list(self, user_id: int) -> List[Workspace]:
        stmt = (
            select(Workspace)
            .where(_visible_to(user_id))
            .order_by(Workspace.created_at.desc(), Workspace.id.desc())
        )
        return list(self.db.scalars(stmt).all())

    def create(self, user_id: int, name: str, commit: bool = True) -> Workspace:
        owner = self.db.get(User, user_id)
        if owner is None:
            # token outlived its account
            raise NotFoundError("User not found")
        workspace = Workspace(name=name, owner_id=user_id, members=[owner])
        self.db.add(workspace)
        if commit:
            self.db.commit()
            self.db.refresh(workspace)
        else:
            self.db.flush()
        return workspace

    def get(self, workspace_id: int, user_id: int) -> Workspace:
        stmt = select(Workspace).where(Workspace.id == workspace_id, _visible_to(user_id))
        workspace = self.db.scalars(stmt).first()
        if workspace is None:
            raise NotFoundError("Workspace not found")
        return workspace

    def _get_owned(self, workspace_id: int, user_id: int) -> Workspace:
        stmt = select(Workspace).where(Workspace.id == workspace_id, Workspace.owner_id == user_id)
        workspace = self.db.scalars(stmt).first()
        if workspace is None:
            raise NotFoundError("Workspace not found or not authorized")
        return workspace

    def rename(self, workspace_id: int, user_id: int, name: str) -> Workspace:
        workspace = self._get_owned(workspace_id, user_id)
        workspace.name = name
        self.db.commit()
        self.db.refresh(workspace)
        return workspace

    def delete(self, workspace_id: int, user_id: int) -> None:
        workspace = self._get_owned(workspace_id, user_id)
        # members may own tasks here too; each of their listings goes stale
        task_owners = set(self.db.scalars(
            select(Task.owner_id).where(Task.workspace_id == workspace.id).distinct()
        ).all())
        task_owners.add(user_id)
        # tasks and workspace are removed in one transaction
        try:
            removed = self.db.execute(delete(Task).where(Task.workspace_id == workspace.id)).rowcount
            self.db.delete(workspace)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info("Deleted workspace %s with %s tasks", workspace_id, removed)
        for owner_id in sorted(task_owners):
            self.cache.invalidate(owner_id)
