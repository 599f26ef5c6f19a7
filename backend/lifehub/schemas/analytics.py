from datetime import date
from pydantic import BaseModel


class CollectRequest(BaseModel):
    """Collect productivity for ``day`` (defaults to today)."""
    day: date | None = None


class SeriesPointRead(BaseModel):
    date: date
    habits_score: int
    productivity: int
    source: str


class CorrelationRead(BaseModel):
    """Correlation summary with the series it was computed from."""
    days: int
    coefficient: float
    strength: str
    direction: str
    series: list[SeriesPointRead]
