"""
Habit ledger: habits, daily wellness check-ins and the habit/productivity
samples fed to the correlation engine.
"""

import threading
from contextlib import contextmanager
from datetime import date, datetime, timedelta
from typing import Any, Callable, Iterator, Literal

import pydantic

from lifehub.exceptions import NotFoundError, ValidationError
from lifehub.logging_config import get_logger
from lifehub.models import CorrelationSample, Habit, WellnessCheckin
from lifehub.services.numeric import clamp, round_half_up
from lifehub.services.productivity_log import ProductivityLog
from lifehub.services.storage import Collection, KeyValueStore

logger = get_logger(__name__)

HABITS_KEY = "habits"
CHECKINS_KEY = "wellness_checkins"
CORRELATIONS_KEY = "habit_correlations"

Period = Literal["day", "week", "month"]

PERIOD_WINDOWS = {"week": timedelta(days=7), "month": timedelta(days=30)}

UPDATABLE_FIELDS = {"name", "description", "category", "target", "is_active"}


class HabitLedger:
    def __init__(
        self,
        storage: KeyValueStore,
        productivity_log: ProductivityLog | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._productivity_log = productivity_log
        self._clock = clock
        self._lock = threading.RLock()
        self._habits_col = Collection(storage, HABITS_KEY, list[Habit])
        self._checkins_col = Collection(storage, CHECKINS_KEY, list[WellnessCheckin])
        self._samples_col = Collection(storage, CORRELATIONS_KEY, list[CorrelationSample])
        self._habits: dict[str, Habit] = {h.id: h for h in self._habits_col.read(default=[])}
        self._checkins: list[WellnessCheckin] = self._checkins_col.read(default=[])
        self._samples: list[CorrelationSample] = self._samples_col.read(default=[])
        logger.info(
            f"HabitLedger ready: habits={len(self._habits)} checkins={len(self._checkins)} "
            f"samples={len(self._samples)}"
        )

    # ---- low-level helpers ----

    def _sync(self) -> None:
        habits = self._habits_col.read_if_changed()
        if habits is not None:
            self._habits = {h.id: h for h in habits}
        checkins = self._checkins_col.read_if_changed()
        if checkins is not None:
            self._checkins = checkins
        samples = self._samples_col.read_if_changed()
        if samples is not None:
            self._samples = samples

    @contextmanager
    def _locked(self) -> Iterator[None]:
        with self._lock:
            self._sync()
            yield

    def _today(self) -> date:
        return self._clock().date()

    def _commit_habits(self, habits: dict[str, Habit]) -> None:
        self._habits_col.write(list(habits.values()))
        self._habits = habits

    def _require_habit(self, habit_id: str) -> Habit:
        habit = self._habits.get(habit_id)
        if habit is None:
            raise NotFoundError("Habit", habit_id)
        return habit

    def _replace_habit(self, habit: Habit, **changes: Any) -> Habit:
        data = habit.model_dump()
        data.update(changes)
        data["updated_at"] = self._clock()
        try:
            updated = Habit.model_validate(data)
        except pydantic.ValidationError as exc:
            raise ValidationError.from_pydantic(exc)
        habits = dict(self._habits)
        habits[updated.id] = updated
        self._commit_habits(habits)
        return updated

    # ---- habits ----

    def add_habit(
        self,
        name: str,
        *,
        category: str = "general",
        target: int = 1,
        description: str | None = None,
    ) -> Habit:
        if not name or not name.strip():
            raise ValidationError("Habit name is required")
        now = self._clock()
        try:
            habit = Habit(
                name=name.strip(),
                category=category,
                target=target,
                description=description,
                created_at=now,
                updated_at=now,
            )
        except pydantic.ValidationError as exc:
            raise ValidationError.from_pydantic(exc)

        with self._locked():
            habits = dict(self._habits)
            habits[habit.id] = habit
            self._commit_habits(habits)
        logger.info(f"Created habit: id={habit.id} name='{habit.name}'")
        return habit.model_copy(deep=True)

    def get_habit(self, habit_id: str) -> Habit:
        with self._locked():
            return self._require_habit(habit_id).model_copy(deep=True)

    def list_habits(self) -> list[Habit]:
        with self._locked():
            habits = list(self._habits.values())
        habits.sort(key=lambda h: h.created_at, reverse=True)
        return [h.model_copy(deep=True) for h in habits]

    def update_habit(self, habit_id: str, **fields: Any) -> Habit:
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Fields cannot be updated directly: {', '.join(sorted(unknown))}")
        with self._locked():
            habit = self._require_habit(habit_id)
            # Lowering the target re-clamps current
            updated = self._replace_habit(habit, **fields)
        logger.info(f"Updated habit {habit_id}: {sorted(fields)}")
        return updated.model_copy(deep=True)

    def delete_habit(self, habit_id: str) -> None:
        with self._locked():
            self._require_habit(habit_id)
            habits = dict(self._habits)
            del habits[habit_id]
            self._commit_habits(habits)
        logger.info(f"Deleted habit {habit_id}")

    def toggle_today(self, habit_id: str) -> Habit:
        """
        Mark or unmark today's completion.

        Marking bumps current (up to target) and, if the habit was not yet
        completed today, the streak. Unmarking lowers current and resets the
        streak when it had been completed today. Past days are never
        recomputed.
        """
        today = self._today().isoformat()
        with self._locked():
            habit = self._require_habit(habit_id)
            was_marked = today in habit.completed_dates
            streak = habit.streak

            if was_marked:
                completed_dates = [d for d in habit.completed_dates if d != today]
                current = max(0, habit.current - 1)
                if habit.completed_today:
                    streak = 0
            else:
                completed_dates = [*habit.completed_dates, today]
                current = min(habit.target, habit.current + 1)
                if not habit.completed_today:
                    streak += 1

            updated = self._replace_habit(
                habit,
                completed_dates=completed_dates,
                current=current,
                streak=streak,
                longest_streak=max(streak, habit.longest_streak),
                completed_today=not was_marked,
            )

        logger.info(f"Habit {habit_id} {'unmarked' if was_marked else 'marked'} for {today}: streak={streak}")
        return updated.model_copy(deep=True)

    def increment(self, habit_id: str) -> Habit:
        with self._locked():
            habit = self._require_habit(habit_id)
            updated = self._replace_habit(habit, current=min(habit.target, habit.current + 1))
        return updated.model_copy(deep=True)

    def decrement(self, habit_id: str) -> Habit:
        with self._locked():
            habit = self._require_habit(habit_id)
            updated = self._replace_habit(habit, current=max(0, habit.current - 1))
        return updated.model_copy(deep=True)

    def reset_habit(self, habit_id: str) -> Habit:
        """Start a new day for the habit: current back to 0, not completed today."""
        with self._locked():
            habit = self._require_habit(habit_id)
            updated = self._replace_habit(habit, current=0, completed_today=False)
        return updated.model_copy(deep=True)

    # ---- reporting ----

    def completion_rate(self, period: Period = "day") -> int:
        """
        Percentage of habits marked completed today.

        For "week" and "month" only habits created within the trailing 7 / 30
        days are counted, and they are still judged on today's flag alone.
        """
        with self._locked():
            habits = list(self._habits.values())

        if period == "day":
            relevant = habits
        elif period in PERIOD_WINDOWS:
            since = self._clock() - PERIOD_WINDOWS[period]
            relevant = [h for h in habits if h.created_at >= since]
        else:
            raise ValidationError(f"Unknown period: {period}")

        if not relevant:
            return 0
        completed = sum(1 for h in relevant if h.completed_today)
        return round_half_up(completed / len(relevant) * 100)

    def streak_stats(self) -> dict[str, int]:
        with self._locked():
            habits = list(self._habits.values())
        if not habits:
            return {"current": 0, "longest": 0, "average": 0}
        streaks = [h.streak for h in habits]
        return {
            "current": max(streaks),
            "longest": max(h.longest_streak for h in habits),
            "average": round_half_up(sum(streaks) / len(streaks)),
        }

    # ---- check-ins ----

    def add_checkin(
        self,
        mood: int,
        energy: int,
        sleep_hours: float,
        *,
        day: date | None = None,
        notes: str | None = None,
        replace: bool = False,
    ) -> WellnessCheckin:
        """
        Record a wellness check-in.

        With ``replace=True`` an existing check-in for the same date is
        overwritten; otherwise check-ins accumulate. If today has no
        correlation sample yet, one is synthesized from today's habit
        completion rate and this check-in.
        """
        try:
            checkin = WellnessCheckin(
                date=day or self._today(),
                mood=mood,
                energy=energy,
                sleep_hours=sleep_hours,
                notes=notes,
                created_at=self._clock(),
            )
        except pydantic.ValidationError as exc:
            raise ValidationError.from_pydantic(exc)

        with self._locked():
            checkins = list(self._checkins)
            if replace:
                checkins = [c for c in checkins if c.date != checkin.date]
            checkins.insert(0, checkin)
            self._checkins_col.write(checkins)
            self._checkins = checkins

            today = self._today()
            if not any(s.date == today for s in self._samples):
                self._add_sample(self._synthesize_sample(today, checkin))

        logger.info(f"Recorded check-in for {checkin.date}: mood={mood} energy={energy} sleep={sleep_hours}")
        return checkin.model_copy()

    def _synthesize_sample(self, today: date, checkin: WellnessCheckin) -> CorrelationSample:
        point = self._productivity_log.get(today) if self._productivity_log else None
        if point is not None:
            productivity = point.productivity_score
        else:
            # Wellness proxy: mood and energy on 1..5 mapped onto 20..100
            productivity = clamp(round_half_up((checkin.mood + checkin.energy) * 10))
        return CorrelationSample(
            date=today,
            habits_score=clamp(self.completion_rate("day")),
            productivity=productivity,
            mood=checkin.mood,
            energy=checkin.energy,
            sleep_hours=checkin.sleep_hours,
        )

    def _add_sample(self, sample: CorrelationSample) -> None:
        samples = [sample, *self._samples]
        self._samples_col.write(samples)
        self._samples = samples
        logger.debug(f"Synthesized correlation sample for {sample.date}")

    def checkin_for_date(self, day: date) -> WellnessCheckin | None:
        with self._locked():
            found = next((c for c in self._checkins if c.date == day), None)
            return found.model_copy() if found else None

    def list_checkins(self) -> list[WellnessCheckin]:
        with self._locked():
            return [c.model_copy() for c in self._checkins]

    def delete_checkin(self, checkin_id: str) -> None:
        with self._locked():
            checkins = [c for c in self._checkins if c.id != checkin_id]
            if len(checkins) == len(self._checkins):
                raise NotFoundError("Check-in", checkin_id)
            self._checkins_col.write(checkins)
            self._checkins = checkins

    def wellness_trends(self, days: int) -> dict[str, list[float]]:
        """Mood, energy and sleep series for check-ins in the trailing window."""
        today = self._today()
        start = today - timedelta(days=days)
        with self._locked():
            recent = sorted(
                (c for c in self._checkins if start <= c.date <= today),
                key=lambda c: (c.date, c.created_at),
            )
        return {
            "mood": [c.mood for c in recent],
            "energy": [c.energy for c in recent],
            "sleep": [c.sleep_hours for c in recent],
        }

    def correlation_samples(self) -> list[CorrelationSample]:
        with self._locked():
            return [s.model_copy() for s in self._samples]
