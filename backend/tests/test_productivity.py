"""
Daily productivity aggregation and the append-only productivity log.
"""

import time
from datetime import date, datetime, timedelta

import pydantic
import pytest

from lifehub.exceptions import DataPointExistsError
from lifehub.models import ProductivityDataPoint, WearableSample
from lifehub.services.aggregator import ProductivityAggregator, compute_productivity_score
from lifehub.services.sources import InMemoryEventSource, InMemoryFocusLog, StaticWearableFeed


class RaisingFeed:
    def sample_for_date(self, day: date) -> WearableSample | None:
        raise ConnectionError("device offline")


class SlowFeed:
    def sample_for_date(self, day: date) -> WearableSample | None:
        time.sleep(0.5)
        return WearableSample(date=day, steps=20000, sleep_hours=9)


def make_aggregator(container, clock, wearable_feed=None, timeout=0.2, focus=None, events=None):
    return ProductivityAggregator(
        container.tasks,
        container.habits,
        container.productivity_log,
        event_source=events or container.events,
        focus_source=focus or container.focus,
        wearable_feed=wearable_feed,
        wearable_timeout=timeout,
        clock=clock,
    )


def complete_tasks(container, count):
    for i in range(count):
        task = container.tasks.add_task(f"Task {i}")
        container.tasks.toggle_completion(task.id)


def mark_habits(container, total, done):
    habits = [container.habits.add_habit(f"Habit {i}") for i in range(total)]
    for habit in habits[:done]:
        container.habits.toggle_today(habit.id)


class TestScoreFormula:

    def test_reference_day(self):
        """4 tasks, 60 focus minutes, habits 80 -> 40/50 components, score 51."""
        breakdown = compute_productivity_score(4, 60, 80)

        assert breakdown.task_component == 40
        assert breakdown.focus_component == 50
        assert breakdown.raw_score == 51
        assert breakdown.final_score == 51

    def test_task_component_saturates(self):
        assert compute_productivity_score(15, 0, 0).final_score == compute_productivity_score(10, 0, 0).final_score
        assert compute_productivity_score(15, 0, 0).task_component == 100

    def test_focus_component_saturates(self):
        assert compute_productivity_score(0, 500, 0).focus_component == 100
        assert compute_productivity_score(0, 500, 0).final_score == 30

    def test_wearable_boosts(self):
        """Sleep 7.5h -> +6, 7999 steps -> +3."""
        sample = WearableSample(date=date(2026, 3, 10), steps=7999, sleep_hours=7.5)
        breakdown = compute_productivity_score(4, 60, 80, sample)

        assert breakdown.sleep_boost == 6
        assert breakdown.steps_boost == 3
        assert breakdown.final_score == 60

    def test_short_sleep_gives_no_penalty(self):
        sample = WearableSample(date=date(2026, 3, 10), steps=0, sleep_hours=4)
        assert compute_productivity_score(4, 60, 80, sample).final_score == 51

    def test_steps_boost_capped_and_score_clamped(self):
        sample = WearableSample(date=date(2026, 3, 10), steps=50000, sleep_hours=12)
        breakdown = compute_productivity_score(10, 120, 100, sample)

        assert breakdown.steps_boost == 10
        assert breakdown.sleep_boost == 24
        assert breakdown.final_score == 100

    def test_empty_day(self):
        assert compute_productivity_score(0, 0, 0).final_score == 0


class TestCollect:

    @pytest.mark.asyncio
    async def test_collect_reference_day(self, container, clock):
        complete_tasks(container, 4)
        mark_habits(container, total=5, done=4)
        container.focus.record(clock.now, 60 * 60)
        container.events.add_event(clock.now)
        container.events.add_event(clock.now + timedelta(hours=3))
        container.events.add_event(clock.now + timedelta(days=1))

        point = await container.aggregator.collect()

        assert point.date == clock.now.date()
        assert point.tasks_completed == 4
        assert point.focus_minutes == 60
        assert point.habits_score == 80
        assert point.events_count == 2
        assert point.productivity_score == 51
        assert container.productivity_log.get(clock.now.date()) == point

    @pytest.mark.asyncio
    async def test_collect_with_wearable(self, container, clock):
        complete_tasks(container, 4)
        mark_habits(container, total=5, done=4)
        container.focus.record(clock.now, 60 * 60)
        feed = StaticWearableFeed([WearableSample(date=clock.now.date(), steps=7999, sleep_hours=7.5)])

        point = await make_aggregator(container, clock, wearable_feed=feed).collect()

        assert point.productivity_score == 60

    @pytest.mark.asyncio
    async def test_wearable_failure_is_ignored(self, container, clock):
        complete_tasks(container, 4)
        mark_habits(container, total=5, done=4)
        container.focus.record(clock.now, 60 * 60)

        point = await make_aggregator(container, clock, wearable_feed=RaisingFeed()).collect()

        assert point.productivity_score == 51

    @pytest.mark.asyncio
    async def test_wearable_timeout_is_ignored(self, container, clock):
        complete_tasks(container, 4)
        mark_habits(container, total=5, done=4)
        container.focus.record(clock.now, 60 * 60)

        point = await make_aggregator(container, clock, wearable_feed=SlowFeed(), timeout=0.05).collect()

        assert point.productivity_score == 51

    @pytest.mark.asyncio
    async def test_sample_for_other_date_is_ignored(self, container, clock):
        complete_tasks(container, 4)
        mark_habits(container, total=5, done=4)
        container.focus.record(clock.now, 60 * 60)
        yesterday = clock.now.date() - timedelta(days=1)
        feed = StaticWearableFeed()
        feed.put(WearableSample(date=yesterday, steps=10000, sleep_hours=9))

        point = await make_aggregator(container, clock, wearable_feed=feed).collect()

        assert point.productivity_score == 51

    def test_focus_minutes_floor_each_session(self, container, clock):
        focus = InMemoryFocusLog()
        focus.record(clock.now, 1500)       # 25 min
        focus.record(clock.now, 119)        # 1 min
        focus.record(clock.now, 59)         # 0 min
        focus.record(clock.now - timedelta(days=1), 3600)

        aggregator = make_aggregator(container, clock, focus=focus)

        assert aggregator.focus_minutes_on(clock.now.date()) == 26

    @pytest.mark.asyncio
    async def test_only_todays_completions_count(self, container, clock):
        complete_tasks(container, 2)
        clock.advance(days=1)
        complete_tasks(container, 1)

        point = await container.aggregator.collect()

        assert point.tasks_completed == 1

    @pytest.mark.asyncio
    async def test_collect_past_day(self, container, clock):
        complete_tasks(container, 3)
        day = clock.now.date()
        clock.advance(days=2)

        point = await container.aggregator.collect(day)

        assert point.date == day
        assert point.tasks_completed == 3

    @pytest.mark.asyncio
    async def test_collect_twice_returns_existing(self, container, clock):
        complete_tasks(container, 1)
        first = await container.aggregator.collect()

        complete_tasks(container, 5)
        second = await container.aggregator.collect()

        assert second == first
        assert len(container.productivity_log.list_points()) == 1

    @pytest.mark.asyncio
    async def test_collect_with_empty_sources(self, container, clock):
        point = await make_aggregator(
            container, clock, events=InMemoryEventSource(), focus=InMemoryFocusLog()
        ).collect()

        assert point.productivity_score == 0
        assert point.events_count == 0


class TestProductivityLog:

    def _point(self, day, score):
        return ProductivityDataPoint(
            date=day,
            tasks_completed=0,
            focus_minutes=0,
            habits_score=0,
            events_count=0,
            productivity_score=score,
            created_at=datetime(2026, 3, 10),
        )

    def test_duplicate_date_rejected(self, container, clock):
        log = container.productivity_log
        log.append(self._point(clock.now.date(), 40))

        with pytest.raises(DataPointExistsError):
            log.append(self._point(clock.now.date(), 90))
        assert log.get(clock.now.date()).productivity_score == 40

    def test_window_and_average(self, container, clock):
        log = container.productivity_log
        today = clock.now.date()
        log.append(self._point(today - timedelta(days=10), 10))
        log.append(self._point(today - timedelta(days=3), 40))
        log.append(self._point(today, 60))

        assert [p.productivity_score for p in log.window(7)] == [40, 60]
        assert log.average_score(7) == 50.0
        assert log.average_score(0) == 60.0
        assert [p.productivity_score for p in log.list_points()] == [60, 40, 10]

    def test_average_of_empty_window(self, container):
        assert container.productivity_log.average_score(7) == 0.0

    def test_points_are_immutable(self, container, clock):
        point = container.productivity_log.append(self._point(clock.now.date(), 40))
        with pytest.raises(pydantic.ValidationError):
            point.productivity_score = 99
