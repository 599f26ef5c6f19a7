import uuid
from datetime import date, datetime

from pydantic import BaseModel, Field, model_validator


class Habit(BaseModel):
    """
    A recurring habit tracked per day.

    current is clamped to [0, target]; completed_dates holds ISO dates.
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str
    description: str | None = None
    category: str = "general"
    target: int = Field(default=1, ge=1)
    current: int = Field(default=0, ge=0)
    streak: int = Field(default=0, ge=0)
    longest_streak: int = Field(default=0, ge=0)
    completed_today: bool = False
    completed_dates: list[str] = Field(default_factory=list)
    is_active: bool = True
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    @model_validator(mode="after")
    def clamp_current(self) -> "Habit":
        if self.current > self.target:
            self.current = self.target
        return self


class WellnessCheckin(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    date: date
    mood: int = Field(ge=1, le=5)
    energy: int = Field(ge=1, le=5)
    sleep_hours: float = Field(ge=0, le=12)
    notes: str | None = None
    created_at: datetime = Field(default_factory=datetime.now)


class CorrelationSample(BaseModel):
    """Habit adherence vs productivity for one day, with wellness context."""

    date: date
    habits_score: int = Field(ge=0, le=100)
    productivity: int = Field(ge=0, le=100)
    mood: int | None = None
    energy: int | None = None
    sleep_hours: float | None = None
