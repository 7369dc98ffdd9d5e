"""Onboarding workspace created for every newly verified account."""
from datetime import timedelta

from sqlalchemy.orm import Session
from tasktracker.cache import TaskCache
from tasktracker.database import utcnow
from tasktracker.models.task import POSITION_STEP, Task
from tasktracker.models.workspace import Workspace
from tasktracker.services.workspaces import WorkspaceService

DEMO_WORKSPACE_NAME = "Getting Started"

# (status, title, description, color, due in days or None)
DEMO_TASKS = [
    ("todo", "Create your first task",
     "Use the + button on any column to add a task. Only the title is required.",
     "#6366f1", 2),
    ("todo", "Give a task a due date",
     "Tasks with a due date show up on the timeline view.",
     "#8b5cf6", 3),
    ("todo", "Try a different view",
     "Switch between board, list, table and timeline from the toolbar.",
     "#a855f7", 4),
    ("in-progress", "Drag a card to another column",
     "Dropping a card on a column changes its status. Order inside a column is kept too.",
     "#f59e0b", 1),
    ("in-progress", "Set a priority",
     "Low, medium or high. New tasks start at medium.",
     "#f97316", 2),
    ("in-progress", "Color-code your work",
     "Pick a color tag to group related tasks at a glance.",
     "#ef4444", 3),
    ("in-review", "Rename this workspace",
     "Only the owner of a workspace can rename or delete it.",
     "#10b981", 5),
    ("in-review", "Create a second workspace",
     "Workspaces keep unrelated projects apart.",
     "#14b8a6", 6),
    ("in-review", "Edit a task inline",
     "Open a task to change its title, description or due date.",
     "#06b6d4", 7),
    ("completed", "Sign up",
     "You created an account.",
     "#22c55e", None),
    ("completed", "Verify your email",
     "The 6-digit code worked.",
     "#84cc16", None),
    ("completed", "Open the demo workspace",
     "You are here. Delete this workspace whenever you like.",
     "#eab308", None),
]


def create_demo_workspace(db: Session, cache: TaskCache, user_id: int, commit: bool = True) -> Workspace:
    """Seed a workspace with three sample tasks in each status column."""
    workspace = WorkspaceService(db, cache).create(user_id, DEMO_WORKSPACE_NAME, commit=False)

    now = utcnow()
    column_counts = {}
    for status, title, description, color, due_in in DEMO_TASKS:
        column_counts[status] = column_counts.get(status, 0) + 1
        db.add(Task(
            title=title,
            description=description,
            status=status,
            priority="medium",
            color=color,
            position=column_counts[status] * POSITION_STEP,
            due_date=now + timedelta(days=due_in) if due_in is not None else None,
            owner_id=user_id,
            workspace_id=workspace.id,
        ))

    if commit:
        db.commit()
        db.refresh(workspace)
        cache.invalidate(user_id)
    return workspace
