from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field


class ProductivityDataPoint(BaseModel):
    """One day's aggregated productivity signals. Immutable once written."""

    model_config = ConfigDict(frozen=True)

    date: date
    tasks_completed: int = Field(ge=0)
    focus_minutes: int = Field(ge=0)
    habits_score: int = Field(ge=0, le=100)
    events_count: int = Field(ge=0)
    productivity_score: int = Field(ge=0, le=100)
    created_at: datetime = Field(default_factory=datetime.now)


class WearableSample(BaseModel):
    date: date
    steps: int = Field(ge=0)
    sleep_hours: float = Field(ge=0)


class FocusSession(BaseModel):
    """A closed focus session as reported by the focus timer."""

    start_time: datetime
    duration_seconds: int = Field(ge=0)
