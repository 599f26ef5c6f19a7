"""
Habit and wellness check-in routes for the LifeHub API.
"""

from fastapi import APIRouter, Depends, Query, status

from lifehub.container import Container, get_container
from lifehub.models import Habit, WellnessCheckin
from lifehub.schemas import CheckinCreate, CompletionRateRead, HabitCreate, HabitUpdate, StreakStatsRead
from lifehub.services.habit_ledger import Period

router = APIRouter()


@router.post("/habits", response_model=Habit, status_code=status.HTTP_201_CREATED)
def create_habit(
    habit_in: HabitCreate,
    container: Container = Depends(get_container),
) -> Habit:
    data = habit_in.model_dump()
    return container.habits.add_habit(data.pop("name"), **data)


@router.get("/habits", response_model=list[Habit])
def list_habits(container: Container = Depends(get_container)) -> list[Habit]:
    return container.habits.list_habits()


@router.get("/habits/completion-rate", response_model=CompletionRateRead)
def completion_rate(
    period: Period = "day",
    container: Container = Depends(get_container),
) -> CompletionRateRead:
    """Share of habits completed today, optionally among recently created ones."""
    return CompletionRateRead(period=period, rate=container.habits.completion_rate(period))


@router.get("/habits/streaks", response_model=StreakStatsRead)
def streak_stats(container: Container = Depends(get_container)) -> StreakStatsRead:
    return StreakStatsRead(**container.habits.streak_stats())


@router.get("/habits/{habit_id}", response_model=Habit)
def get_habit(
    habit_id: str,
    container: Container = Depends(get_container),
) -> Habit:
    return container.habits.get_habit(habit_id)


@router.patch("/habits/{habit_id}", response_model=Habit)
def update_habit(
    habit_id: str,
    habit_in: HabitUpdate,
    container: Container = Depends(get_container),
) -> Habit:
    return container.habits.update_habit(habit_id, **habit_in.model_dump(exclude_unset=True))


@router.delete("/habits/{habit_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_habit(
    habit_id: str,
    container: Container = Depends(get_container),
) -> None:
    container.habits.delete_habit(habit_id)


@router.post("/habits/{habit_id}/toggle", response_model=Habit)
def toggle_habit(
    habit_id: str,
    container: Container = Depends(get_container),
) -> Habit:
    """Mark or unmark the habit for today."""
    return container.habits.toggle_today(habit_id)


@router.post("/habits/{habit_id}/increment", response_model=Habit)
def increment_habit(
    habit_id: str,
    container: Container = Depends(get_container),
) -> Habit:
    return container.habits.increment(habit_id)


@router.post("/habits/{habit_id}/decrement", response_model=Habit)
def decrement_habit(
    habit_id: str,
    container: Container = Depends(get_container),
) -> Habit:
    return container.habits.decrement(habit_id)


@router.post("/habits/{habit_id}/reset", response_model=Habit)
def reset_habit(
    habit_id: str,
    container: Container = Depends(get_container),
) -> Habit:
    return container.habits.reset_habit(habit_id)


@router.post("/checkins", response_model=WellnessCheckin, status_code=status.HTTP_201_CREATED)
def create_checkin(
    checkin_in: CheckinCreate,
    container: Container = Depends(get_container),
) -> WellnessCheckin:
    """
    Record a wellness check-in.

    Set ``replace`` to overwrite an existing check-in for the same date.
    """
    return container.habits.add_checkin(
        checkin_in.mood,
        checkin_in.energy,
        checkin_in.sleep_hours,
        day=checkin_in.day,
        notes=checkin_in.notes,
        replace=checkin_in.replace,
    )


@router.get("/checkins", response_model=list[WellnessCheckin])
def list_checkins(container: Container = Depends(get_container)) -> list[WellnessCheckin]:
    return container.habits.list_checkins()


@router.get("/checkins/trends")
def wellness_trends(
    days: int = Query(default=7, ge=0),
    container: Container = Depends(get_container),
) -> dict[str, list[float]]:
    return container.habits.wellness_trends(days)


@router.delete("/checkins/{checkin_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_checkin(
    checkin_id: str,
    container: Container = Depends(get_container),
) -> None:
    container.habits.delete_checkin(checkin_id)
