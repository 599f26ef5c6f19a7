from datetime import datetime
from pydantic import BaseModel, Field

from lifehub.models import TaskPriority, TaskStatus


class TaskCreate(BaseModel):
    """Schema for creating a new task."""
    title: str = Field(min_length=1)
    description: str | None = None
    priority: TaskPriority = TaskPriority.MEDIUM
    status: TaskStatus = TaskStatus.PENDING
    tags: list[str] = Field(default_factory=list)
    due_date: datetime | None = None
    estimated_duration: int | None = Field(default=None, ge=0)


class TaskUpdate(BaseModel):
    """Schema for updating a task. Completion goes through /toggle."""
    title: str | None = None
    description: str | None = None
    priority: TaskPriority | None = None
    status: TaskStatus | None = None
    tags: list[str] | None = None
    due_date: datetime | None = None
    estimated_duration: int | None = Field(default=None, ge=0)


class SubtaskCreate(BaseModel):
    title: str = Field(min_length=1)


class TemplateCreate(BaseModel):
    """Schema for creating a task template."""
    name: str = Field(min_length=1)
    description: str = ""
    category: str = "general"
    estimated_duration: int | None = Field(default=None, ge=0)
    priority: TaskPriority = TaskPriority.MEDIUM
    tags: list[str] = Field(default_factory=list)
    subtasks: list[str] = Field(default_factory=list)


class TemplateInstantiate(BaseModel):
    """Optional overrides when creating a task from a template."""
    title: str | None = None
    description: str | None = None
    priority: TaskPriority | None = None
    tags: list[str] | None = None
    estimated_duration: int | None = Field(default=None, ge=0)
    due_date: datetime | None = None
