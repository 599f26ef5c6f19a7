import uuid
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator

from lifehub.models.dependency import Dependency


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class TaskStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


def _ordered_unique(values: list[str]) -> list[str]:
    seen: set[str] = set()
    result = []
    for value in values:
        if value not in seen:
            seen.add(value)
            result.append(value)
    return result


class Subtask(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    title: str
    completed: bool = False
    created_at: datetime = Field(default_factory=datetime.now)


class Task(BaseModel):
    """
    Task with subtasks, outgoing dependencies and tracked time.

    Key fields:
    - completed: only set to True through the store's dependency-gated toggle
    - completed_at: when the task was last completed (None while open)
    - actual_duration: minutes, sum of closed time entries for this task
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    title: str
    description: str | None = None
    completed: bool = False
    priority: TaskPriority = TaskPriority.MEDIUM
    status: TaskStatus = TaskStatus.PENDING
    tags: list[str] = Field(default_factory=list)
    subtasks: list[Subtask] = Field(default_factory=list)
    dependencies: list[Dependency] = Field(default_factory=list)
    due_date: datetime | None = None
    estimated_duration: int | None = Field(default=None, ge=0)
    actual_duration: int = Field(default=0, ge=0)
    template_id: str | None = None

    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)
    completed_at: datetime | None = None

    @field_validator("tags")
    @classmethod
    def dedupe_tags(cls, v: list[str]) -> list[str]:
        return _ordered_unique(v)


class SubtaskTemplate(BaseModel):
    title: str
    completed: bool = False


class TaskTemplate(BaseModel):
    """Named, reusable bundle used to create tasks."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str
    description: str = ""
    category: str = "general"
    estimated_duration: int | None = Field(default=None, ge=0)
    priority: TaskPriority = TaskPriority.MEDIUM
    tags: list[str] = Field(default_factory=list)
    subtasks: list[SubtaskTemplate] = Field(default_factory=list)
    usage_count: int = 0
    created_at: datetime = Field(default_factory=datetime.now)

    @field_validator("tags")
    @classmethod
    def dedupe_tags(cls, v: list[str]) -> list[str]:
        return _ordered_unique(v)
