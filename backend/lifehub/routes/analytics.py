"""
Productivity analytics routes for the LifeHub API.
"""

from fastapi import APIRouter, Depends, Query

from lifehub.config import get_settings
from lifehub.container import Container, get_container
from lifehub.models import ProductivityDataPoint
from lifehub.schemas import CollectRequest, CorrelationRead, SeriesPointRead
from lifehub.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.post("/collect", response_model=ProductivityDataPoint)
async def collect_productivity(
    body: CollectRequest | None = None,
    container: Container = Depends(get_container),
) -> ProductivityDataPoint:
    """
    Aggregate the day's productivity on demand.

    Returns the stored point if the day was already collected.
    """
    day = body.day if body else None
    logger.info(f"On-demand productivity collection for {day or 'today'}")
    return await container.aggregator.collect(day)


@router.get("/data-points", response_model=list[ProductivityDataPoint])
def list_data_points(container: Container = Depends(get_container)) -> list[ProductivityDataPoint]:
    """All recorded data points, most recent first."""
    return container.productivity_log.list_points(newest_first=True)


@router.get("/correlation", response_model=CorrelationRead)
def habit_productivity_correlation(
    days: int | None = Query(default=None, ge=0),
    container: Container = Depends(get_container),
) -> CorrelationRead:
    """Pearson correlation between habit adherence and productivity."""
    if days is None:
        days = get_settings().correlation_window_days
    summary = container.correlation.correlation(days)
    return CorrelationRead(
        days=days,
        coefficient=summary.coefficient,
        strength=summary.strength,
        direction=summary.direction,
        series=[
            SeriesPointRead(date=p.date, habits_score=p.habits_score, productivity=p.productivity, source=p.source)
            for p in summary.series
        ],
    )
