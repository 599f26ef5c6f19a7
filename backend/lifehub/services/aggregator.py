"""
Daily productivity aggregation.

Combines completed tasks, focus minutes and habit adherence into a 0-100
score, with an optional wearable bonus for sleep and steps:

    task  = min(100, tasks * 10)               10 tasks saturate
    focus = min(100, round(minutes / 120 * 100))  120 minutes saturate
    raw   = round(task * 0.5 + focus * 0.3 + habits * 0.2)
    final = clamp(raw + sleep_boost + steps_boost, 0, 100)

The wearable fetch is fail-open: a timeout or error only drops the bonus.
"""

import asyncio
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable

from lifehub.exceptions import DataPointExistsError
from lifehub.logging_config import get_logger
from lifehub.models import ProductivityDataPoint, WearableSample
from lifehub.services.habit_ledger import HabitLedger
from lifehub.services.numeric import clamp, round_half_up
from lifehub.services.productivity_log import ProductivityLog
from lifehub.services.sources import EventSource, FocusSessionSource, WearableFeed
from lifehub.services.task_store import TaskStore

logger = get_logger(__name__)

TASK_WEIGHT = 0.5
FOCUS_WEIGHT = 0.3
HABITS_WEIGHT = 0.2
POINTS_PER_TASK = 10
FOCUS_SATURATION_MINUTES = 120
SLEEP_BASELINE_HOURS = 6
SLEEP_POINTS_PER_HOUR = 4
STEPS_PER_POINT = 2000
MAX_STEPS_BOOST = 10


@dataclass
class ScoreBreakdown:
    """How a day's score was assembled."""
    task_component: int
    focus_component: int
    raw_score: int
    sleep_boost: int
    steps_boost: int
    final_score: int


def compute_productivity_score(
    tasks_completed: int,
    focus_minutes: int,
    habits_score: int,
    wearable: WearableSample | None = None,
) -> ScoreBreakdown:
    task_component = min(100, tasks_completed * POINTS_PER_TASK)
    focus_component = min(100, round_half_up(focus_minutes / FOCUS_SATURATION_MINUTES * 100))
    raw = round_half_up(
        task_component * TASK_WEIGHT
        + focus_component * FOCUS_WEIGHT
        + habits_score * HABITS_WEIGHT
    )

    sleep_boost = steps_boost = 0
    if wearable is not None:
        sleep_boost = max(0, round_half_up((wearable.sleep_hours - SLEEP_BASELINE_HOURS) * SLEEP_POINTS_PER_HOUR))
        steps_boost = min(MAX_STEPS_BOOST, wearable.steps // STEPS_PER_POINT)

    return ScoreBreakdown(
        task_component=task_component,
        focus_component=focus_component,
        raw_score=raw,
        sleep_boost=sleep_boost,
        steps_boost=steps_boost,
        final_score=clamp(raw + sleep_boost + steps_boost),
    )


class ProductivityAggregator:
    def __init__(
        self,
        task_store: TaskStore,
        habit_ledger: HabitLedger,
        productivity_log: ProductivityLog,
        event_source: EventSource,
        focus_source: FocusSessionSource,
        wearable_feed: WearableFeed | None = None,
        wearable_timeout: float = 5.0,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.task_store = task_store
        self.habit_ledger = habit_ledger
        self.productivity_log = productivity_log
        self.event_source = event_source
        self.focus_source = focus_source
        self.wearable_feed = wearable_feed
        self.wearable_timeout = wearable_timeout
        self._clock = clock

    async def _fetch_wearable(self, day: date) -> WearableSample | None:
        if self.wearable_feed is None:
            return None
        try:
            sample = await asyncio.wait_for(
                asyncio.to_thread(self.wearable_feed.sample_for_date, day),
                timeout=self.wearable_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Wearable fetch for {day} timed out after {self.wearable_timeout}s; scoring without it")
            return None
        except Exception as e:
            logger.warning(f"Wearable fetch for {day} failed ({e}); scoring without it")
            return None

        if sample is not None and sample.date != day:
            logger.debug(f"Ignoring wearable sample dated {sample.date} for {day}")
            return None
        return sample

    def focus_minutes_on(self, day: date) -> int:
        sessions = self.focus_source.closed_sessions_on_date(day)
        return sum(s.duration_seconds // 60 for s in sessions if s.start_time.date() == day)

    async def collect(self, day: date | None = None) -> ProductivityDataPoint:
        """
        Compute and append the data point for ``day`` (default: today).

        If the log already has a point for that day it is returned as is.
        """
        day = day or self._clock().date()
        existing = self.productivity_log.get(day)
        if existing is not None:
            logger.info(f"Productivity for {day} already recorded; returning existing point")
            return existing

        tasks_completed = len(self.task_store.completed_on(day))
        focus_minutes = self.focus_minutes_on(day)
        habits_score = clamp(self.habit_ledger.completion_rate("day"))
        events_count = self.event_source.count_events_on_date(day)
        wearable = await self._fetch_wearable(day)

        breakdown = compute_productivity_score(tasks_completed, focus_minutes, habits_score, wearable)
        logger.debug(f"Score breakdown for {day}: {breakdown}")

        point = ProductivityDataPoint(
            date=day,
            tasks_completed=tasks_completed,
            focus_minutes=focus_minutes,
            habits_score=habits_score,
            events_count=events_count,
            productivity_score=breakdown.final_score,
            created_at=self._clock(),
        )
        try:
            return self.productivity_log.append(point)
        except DataPointExistsError:
            # Another collector won the race for this day
            return self.productivity_log.get(day)
