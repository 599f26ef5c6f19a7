"""
Habit adherence vs productivity correlation.

Pearson's r over the trailing window, rounded to two decimals:

    r = sum((x - mx)(y - my)) / sqrt(sum((x - mx)^2) * sum((y - my)^2))

Fewer than two samples, or a constant series, gives r = 0.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Callable, Sequence

import numpy as np

from lifehub.logging_config import get_logger
from lifehub.services.habit_ledger import HabitLedger
from lifehub.services.productivity_log import ProductivityLog

logger = get_logger(__name__)


@dataclass
class SeriesPoint:
    date: date
    habits_score: int
    productivity: int
    source: str  # "log" or "checkin"


@dataclass
class CorrelationSummary:
    coefficient: float
    strength: str
    direction: str
    series: list[SeriesPoint] = field(default_factory=list)


def pearson(xs: Sequence[float], ys: Sequence[float]) -> float:
    """Pearson correlation of two paired series, 0.0 when undefined."""
    if len(xs) != len(ys):
        raise ValueError("Series must have the same length")
    if len(xs) < 2:
        return 0.0

    x = np.asarray(xs, dtype=float)
    y = np.asarray(ys, dtype=float)
    dx = x - x.mean()
    dy = y - y.mean()
    sxx = float(np.sum(dx * dx))
    syy = float(np.sum(dy * dy))
    if sxx == 0.0 or syy == 0.0:
        return 0.0

    r = float(np.sum(dx * dy)) / float(np.sqrt(sxx * syy))
    # Floating point can overshoot the bounds by an ulp
    return max(-1.0, min(1.0, r))


def classify_strength(r: float) -> str:
    magnitude = abs(r)
    if magnitude >= 0.7:
        return "strong"
    if magnitude >= 0.4:
        return "moderate"
    if magnitude >= 0.2:
        return "weak"
    return "very weak"


def classify_direction(r: float) -> str:
    if r > 0:
        return "positive"
    if r < 0:
        return "negative"
    return "neutral"


class CorrelationEngine:
    """Read-only view over the productivity log and habit samples."""

    def __init__(
        self,
        productivity_log: ProductivityLog,
        habit_ledger: HabitLedger | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.productivity_log = productivity_log
        self.habit_ledger = habit_ledger
        self._clock = clock

    def series(self, days: int) -> list[SeriesPoint]:
        """
        Paired samples dated within [today - days, today], oldest first.

        Logged data points win; synthesized check-in samples only fill
        dates the log has no point for.
        """
        today = self._clock().date()
        start = today - timedelta(days=days)

        by_date: dict[date, SeriesPoint] = {}
        if self.habit_ledger is not None:
            for sample in self.habit_ledger.correlation_samples():
                if start <= sample.date <= today and sample.date not in by_date:
                    by_date[sample.date] = SeriesPoint(
                        sample.date, sample.habits_score, sample.productivity, "checkin"
                    )
        for point in self.productivity_log.window(days):
            by_date[point.date] = SeriesPoint(point.date, point.habits_score, point.productivity_score, "log")

        return [by_date[d] for d in sorted(by_date)]

    def correlation(self, days: int) -> CorrelationSummary:
        points = self.series(days)
        r = round(pearson([p.habits_score for p in points], [p.productivity for p in points]), 2)
        if r == 0:
            r = 0.0  # drop negative zero
        summary = CorrelationSummary(
            coefficient=r,
            strength=classify_strength(r),
            direction=classify_direction(r),
            series=points,
        )
        logger.debug(f"Correlation over {days} days: r={r} n={len(points)}")
        return summary
