from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Text
from tasktracker.database import Base, utcnow

STATUSES = ("todo", "in-progress", "in-review", "completed")
PRIORITIES = ("low", "medium", "high")

# Gap left between neighbouring positions so a card can be dropped between
# two others without renumbering the column.
POSITION_STEP = 1024


class Task(Base):
    __tablename__ = "tasks"
    __table_args__ = (
        Index("ix_tasks_column", "owner_id", "workspace_id", "status"),
    )

    id = Column(Integer, primary_key=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False, default="")
    status = Column(String(16), nullable=False, default="todo", index=True)
    priority = Column(String(8), nullable=False, default="medium")
    color = Column(String(32), nullable=True)
    position = Column(Integer, nullable=False, default=0)
    due_date = Column(DateTime, nullable=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    workspace_id = Column(Integer, ForeignKey("workspaces.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
