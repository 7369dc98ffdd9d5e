"""Task business logic.

Every query is scoped by owner. Any write invalidates the owner's cached task
list before returning, so a read right after a write never sees stale data.
"""
import logging
from typing import List, Optional, Set, Tuple

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session
from tasktracker.cache import TaskCache
from tasktracker.errors import NotFoundError
from tasktracker.models.task import POSITION_STEP, Task
from tasktracker.schemas.task import BatchItem, TaskCreate, TaskUpdate, serialize_task
from tasktracker.services.workspaces import WorkspaceService

logger = logging.getLogger(__name__)


class TaskService:
    def __init__(self, db: Session, cache: TaskCache):
        self.db = db
        self.cache = cache

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list(self, user_id: int, workspace_id: Optional[int] = None) -> List[dict]:
        """List tasks by position, newest first within equal positions.

        Only the unfiltered, whole-user listing goes through the cache.
        """
        if workspace_id is None:
            cached = self.cache.get(user_id)
            if cached is not None:
                return cached

        stmt = select(Task).where(Task.owner_id == user_id)
        if workspace_id is not None:
            stmt = stmt.where(Task.workspace_id == workspace_id)
        stmt = stmt.order_by(Task.position.asc(), Task.created_at.desc(), Task.id.desc())
        tasks = [serialize_task(t) for t in self.db.scalars(stmt).all()]

        if workspace_id is None:
            self.cache.set(user_id, tasks)
        return tasks

    def _get_owned(self, task_id: int, user_id: int) -> Task:
        # existence and ownership in one predicate: someone else's task is "not found"
        stmt = select(Task).where(Task.id == task_id, Task.owner_id == user_id)
        task = self.db.scalars(stmt).first()
        if task is None:
            raise NotFoundError("Task not found")
        return task

    def next_position(self, user_id: int, workspace_id: int, status: str) -> int:
        stmt = select(func.max(Task.position)).where(
            Task.owner_id == user_id,
            Task.workspace_id == workspace_id,
            Task.status == status,
        )
        current = self.db.scalar(stmt)
        return POSITION_STEP if current is None else current + POSITION_STEP

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(self, user_id: int, data: TaskCreate) -> Task:
        # raises NotFoundError for workspaces the caller cannot see
        WorkspaceService(self.db, self.cache).get(data.workspace_id, user_id)

        task = Task(
            title=data.title,
            description=data.description or "",
            status=data.status,
            priority=data.priority,
            color=data.color,
            due_date=data.due_date,
            owner_id=user_id,
            workspace_id=data.workspace_id,
            position=self.next_position(user_id, data.workspace_id, data.status),
        )
        self.db.add(task)
        self.db.commit()
        self.db.refresh(task)
        self.cache.invalidate(user_id)
        return task

    def update(self, task_id: int, user_id: int, data: TaskUpdate) -> Task:
        task = self._get_owned(task_id, user_id)
        for field, value in data.changes().items():
            setattr(task, field, value)
        self.db.commit()
        self.db.refresh(task)
        self.cache.invalidate(user_id)
        return task

    def delete(self, task_id: int, user_id: int) -> None:
        task = self._get_owned(task_id, user_id)
        self.db.delete(task)
        self.db.commit()
        self.cache.invalidate(user_id)

    def batch_reorder(self, user_id: int, items: List[BatchItem]) -> int:
        """Apply a settled drag-and-drop: new status and position per task.

        Items naming tasks the caller does not own are ignored. All rows are
        written in one bulk UPDATE and one transaction. Returns the number of
        tasks updated.
        """
        if not items:
            self.cache.invalidate(user_id)
            return 0

        requested = {item.id: item for item in items}
        owned = self.db.execute(
            select(Task.id, Task.workspace_id, Task.status).where(
                Task.id.in_(requested.keys()),
                Task.owner_id == user_id,
            )
        ).all()

        touched: Set[Tuple[int, str]] = set()
        rows = []
        for task_id, workspace_id, old_status in owned:
            item = requested[task_id]
            rows.append({"id": task_id, "status": item.status, "position": item.position})
            touched.add((workspace_id, old_status))
            touched.add((workspace_id, item.status))

        skipped = len(requested) - len(rows)
        if skipped:
            logger.info("batch reorder for user=%s skipped %s unknown or foreign tasks", user_id, skipped)

        try:
            if rows:
                # bulk UPDATE by primary key
                self.db.execute(update(Task), rows)
                self._respace_collisions(user_id, touched)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        finally:
            self.cache.invalidate(user_id)
        return len(rows)

    def _respace_collisions(self, user_id: int, columns: Set[Tuple[int, str]]) -> None:
        """Renumber any column whose positions collide, keeping its current order.

        Distinct positions are left alone; a column is only rewritten to
        multiples of the step when two of its tasks share a position.
        """
        for workspace_id, status in sorted(columns):
            stmt = (
                select(Task)
                .where(
                    Task.owner_id == user_id,
                    Task.workspace_id == workspace_id,
                    Task.status == status,
                )
                .order_by(Task.position.asc(), Task.created_at.desc(), Task.id.desc())
            )
            column = list(self.db.scalars(stmt).all())
            positions = [t.position for t in column]
            if len(positions) == len(set(positions)):
                continue
            for index, task in enumerate(column, start=1):
                task.position = index * POSITION_STEP
            logger.info(
                "respaced column workspace=%s status=%s for user=%s (%s tasks)",
                workspace_id, status, user_id, len(column),
            )
            self.db.flush()
