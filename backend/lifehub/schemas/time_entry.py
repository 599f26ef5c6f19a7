from pydantic import BaseModel


class TrackingStart(BaseModel):
    notes: str | None = None


class TaskTimeRead(BaseModel):
    task_id: str
    total_minutes: int
