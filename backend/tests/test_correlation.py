"""
Habit adherence vs productivity correlation.
"""

from datetime import timedelta

import pytest

from lifehub.models import ProductivityDataPoint
from lifehub.services.correlation import (
    CorrelationEngine,
    classify_direction,
    classify_strength,
    pearson,
)


def log_point(log, day, habits_score, productivity):
    log.append(ProductivityDataPoint(
        date=day,
        tasks_completed=0,
        focus_minutes=0,
        habits_score=habits_score,
        events_count=0,
        productivity_score=productivity,
    ))


class TestPearson:

    def test_reference_series(self):
        r = pearson([50, 60, 70, 80], [40, 55, 65, 85])
        assert round(r, 2) == 0.99

    def test_symmetric(self):
        xs, ys = [10, 30, 20, 50], [5, 40, 10, 35]
        assert pearson(xs, ys) == pytest.approx(pearson(ys, xs))

    def test_perfect_negative(self):
        assert pearson([1, 2, 3, 4], [8, 6, 4, 2]) == pytest.approx(-1.0)

    def test_too_few_points(self):
        assert pearson([], []) == 0.0
        assert pearson([50], [70]) == 0.0

    def test_constant_series(self):
        assert pearson([60, 60, 60], [10, 50, 90]) == 0.0
        assert pearson([10, 50, 90], [70, 70, 70]) == 0.0

    def test_length_mismatch(self):
        with pytest.raises(ValueError):
            pearson([1, 2], [1, 2, 3])


class TestClassification:

    @pytest.mark.parametrize("r,expected", [
        (0.99, "strong"),
        (-0.7, "strong"),
        (0.69, "moderate"),
        (-0.4, "moderate"),
        (0.39, "weak"),
        (0.2, "weak"),
        (0.19, "very weak"),
        (0.0, "very weak"),
    ])
    def test_strength(self, r, expected):
        assert classify_strength(r) == expected

    def test_direction(self):
        assert classify_direction(0.5) == "positive"
        assert classify_direction(-0.1) == "negative"
        assert classify_direction(0.0) == "neutral"


class TestCorrelationEngine:

    def test_reference_window(self, container, clock):
        today = clock.now.date()
        for offset, (h, p) in enumerate([(50, 40), (60, 55), (70, 65), (80, 85)]):
            log_point(container.productivity_log, today - timedelta(days=3 - offset), h, p)

        summary = container.correlation.correlation(7)

        assert summary.coefficient == 0.99
        assert summary.strength == "strong"
        assert summary.direction == "positive"
        assert [p.habits_score for p in summary.series] == [50, 60, 70, 80]

    def test_points_outside_window_excluded(self, container, clock):
        today = clock.now.date()
        log_point(container.productivity_log, today - timedelta(days=30), 0, 100)
        log_point(container.productivity_log, today - timedelta(days=1), 40, 40)
        log_point(container.productivity_log, today, 80, 80)

        summary = container.correlation.correlation(7)

        assert len(summary.series) == 2
        assert summary.coefficient == 1.0

    def test_empty_window_is_neutral(self, container):
        summary = container.correlation.correlation(7)

        assert summary.coefficient == 0.0
        assert summary.strength == "very weak"
        assert summary.direction == "neutral"
        assert summary.series == []

    def test_checkin_samples_fill_gaps(self, container, clock):
        """
        Scenario: log has yesterday; today only has a check-in sample
        Expected: both days in the series, today's from the check-in
        """
        yesterday = clock.now.date() - timedelta(days=1)
        log_point(container.productivity_log, yesterday, 20, 30)
        container.habits.add_checkin(mood=5, energy=5, sleep_hours=8)

        series = container.correlation.series(7)

        assert [(p.date, p.source) for p in series] == [
            (yesterday, "log"),
            (clock.now.date(), "checkin"),
        ]
        assert series[1].productivity == 100

    def test_log_point_wins_over_checkin_sample(self, container, clock):
        container.habits.add_checkin(mood=1, energy=1, sleep_hours=4)
        log_point(container.productivity_log, clock.now.date(), 70, 45)

        series = container.correlation.series(7)

        assert len(series) == 1
        assert series[0].source == "log"
        assert series[0].productivity == 45

    def test_engine_without_habit_ledger(self, container, clock):
        engine = CorrelationEngine(container.productivity_log, clock=clock)
        container.habits.add_checkin(mood=3, energy=3, sleep_hours=7)

        assert engine.series(7) == []
