"""
Append-only log of daily productivity data points.

At most one point per date; points are never edited or removed.
"""

import threading
from contextlib import contextmanager
from datetime import date, datetime, timedelta
from typing import Callable, Iterator

from lifehub.exceptions import DataPointExistsError
from lifehub.logging_config import get_logger
from lifehub.models import ProductivityDataPoint
from lifehub.services.storage import Collection, KeyValueStore

logger = get_logger(__name__)

DATA_POINTS_KEY = "productivity_data_points"


class ProductivityLog:
    def __init__(
        self,
        storage: KeyValueStore,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._clock = clock
        self._lock = threading.RLock()
        self._col = Collection(storage, DATA_POINTS_KEY, list[ProductivityDataPoint])
        self._points: dict[date, ProductivityDataPoint] = {
            p.date: p for p in self._col.read(default=[])
        }
        logger.info(f"ProductivityLog ready: points={len(self._points)}")

    def _sync(self) -> None:
        points = self._col.read_if_changed()
        if points is not None:
            self._points = {p.date: p for p in points}

    @contextmanager
    def _locked(self) -> Iterator[None]:
        with self._lock:
            self._sync()
            yield

    def append(self, point: ProductivityDataPoint) -> ProductivityDataPoint:
        with self._locked():
            if point.date in self._points:
                raise DataPointExistsError(point.date.isoformat())
            points = dict(self._points)
            points[point.date] = point
            self._col.write(sorted(points.values(), key=lambda p: p.date))
            self._points = points

        logger.info(f"Recorded productivity for {point.date}: score={point.productivity_score}")
        return point

    def get(self, day: date) -> ProductivityDataPoint | None:
        with self._locked():
            return self._points.get(day)

    def list_points(self, newest_first: bool = True) -> list[ProductivityDataPoint]:
        with self._locked():
            points = list(self._points.values())
        return sorted(points, key=lambda p: p.date, reverse=newest_first)

    def window(self, days: int) -> list[ProductivityDataPoint]:
        """Points dated within [today - days, today], oldest first."""
        today = self._clock().date()
        start = today - timedelta(days=days)
        return [p for p in self.list_points(newest_first=False) if start <= p.date <= today]

    def average_score(self, days: int) -> float:
        points = self.window(days)
        if not points:
            return 0.0
        return sum(p.productivity_score for p in points) / len(points)
