import uuid
from datetime import datetime

from pydantic import BaseModel, Field


class TimeEntry(BaseModel):
    """
    One tracked interval of work on a task.

    Entries are never reopened: pausing closes the entry and resuming
    appends a new one. duration is in minutes and only set once closed.
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    task_id: str
    start_time: datetime
    end_time: datetime | None = None
    duration: int | None = Field(default=None, ge=0)
    notes: str | None = None
    is_active: bool = True
