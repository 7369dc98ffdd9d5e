import re
from datetime import datetime, UTC
from typing import List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

Status = Literal["todo", "in-progress", "in-review", "completed"]
Priority = Literal["low", "medium", "high"]

_DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")

# Stays clear of the 64-bit integer column limit even after appending a step
MAX_POSITION = 2 ** 62


def parse_due_date(v):
    """Accept an ISO 8601 datetime (any offset) or a bare ``YYYY-MM-DD`` date.

    Aware values are normalised to naive UTC, which is what the database stores.
    """
    if v is None or isinstance(v, datetime):
        return v
    if not isinstance(v, str):
        raise ValueError("dueDate must be an ISO 8601 date or datetime string")
    raw = v.strip()
    try:
        if _DATE_ONLY.match(raw):
            return datetime.strptime(raw, "%Y-%m-%d")
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        raise ValueError("dueDate must be an ISO 8601 date or datetime string")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(UTC).replace(tzinfo=None)
    return parsed


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TaskCreate(_CamelModel):
    title: str
    description: Optional[str] = ""
    status: Status = "todo"
    priority: Priority = "medium"
    due_date: Optional[datetime] = None
    color: Optional[str] = None
    workspace_id: int

    @field_validator("title")
    @classmethod
    def title_not_empty(cls, v):
        if not v.strip():
            raise ValueError("Title is required")
        return v.strip()

    @field_validator("description")
    @classmethod
    def description_default(cls, v):
        return (v or "").strip()

    @field_validator("due_date", mode="before")
    @classmethod
    def due_date_format(cls, v):
        return parse_due_date(v)


class TaskUpdate(_CamelModel):
    """Every field is optional; only the ones present in the body are applied."""

    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[Status] = None
    priority: Optional[Priority] = None
    due_date: Optional[datetime] = None
    color: Optional[str] = None

    @field_validator("title")
    @classmethod
    def title_not_empty(cls, v):
        if v is None or not v.strip():
            raise ValueError("Title cannot be empty")
        return v.strip()

    @field_validator("status", "priority")
    @classmethod
    def not_null(cls, v):
        if v is None:
            raise ValueError("Field cannot be null")
        return v

    @field_validator("description")
    @classmethod
    def description_default(cls, v):
        return (v or "").strip()

    @field_validator("due_date", mode="before")
    @classmethod
    def due_date_format(cls, v):
        return parse_due_date(v)

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)


class BatchItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int = Field(alias="_id", gt=0, le=MAX_POSITION)
    status: Status
    position: int = Field(ge=0, le=MAX_POSITION)


class BatchReorderIn(BaseModel):
    tasks: List[BatchItem]

    @field_validator("tasks")
    @classmethod
    def unique_ids(cls, v):
        ids = [item.id for item in v]
        if len(ids) != len(set(ids)):
            raise ValueError("Each task may appear only once in a batch")
        return v


class TaskOut(_CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: int
    title: str
    description: str = ""
    status: Status
    priority: Priority
    color: Optional[str] = None
    position: int
    due_date: Optional[datetime] = None
    owner: int = Field(validation_alias=AliasChoices("owner", "owner_id"))
    workspace_id: int
    created_at: datetime


def serialize_task(task) -> dict:
    """JSON-ready dict of a task, as sent over the wire and stored in the cache."""
    return TaskOut.model_validate(task).model_dump(mode="json", by_alias=True)
