from datetime import date
from pydantic import BaseModel, Field


class HabitCreate(BaseModel):
    """Schema for creating a habit."""
    name: str = Field(min_length=1)
    description: str | None = None
    category: str = "general"
    target: int = Field(default=1, ge=1)


class HabitUpdate(BaseModel):
    name: str | None = None
    description: str | None = None
    category: str | None = None
    target: int | None = Field(default=None, ge=1)
    is_active: bool | None = None


class CheckinCreate(BaseModel):
    """Schema for a daily wellness check-in."""
    day: date | None = None
    mood: int = Field(ge=1, le=5)
    energy: int = Field(ge=1, le=5)
    sleep_hours: float = Field(ge=0, le=12)
    notes: str | None = None
    replace: bool = False


class CompletionRateRead(BaseModel):
    period: str
    rate: int


class StreakStatsRead(BaseModel):
    current: int
    longest: int
    average: int
