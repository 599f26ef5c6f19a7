"""
Time tracking routes for the LifeHub API.

Only one session may run at a time across all tasks.
"""

from fastapi import APIRouter, Depends, status

from lifehub.container import Container, get_container
from lifehub.models import TimeEntry
from lifehub.schemas import TaskTimeRead, TrackingStart

router = APIRouter()


@router.get("/active", response_model=TimeEntry | None)
def active_entry(container: Container = Depends(get_container)) -> TimeEntry | None:
    return container.time_ledger.active_entry()


@router.post("/{task_id}/start", response_model=TimeEntry, status_code=status.HTTP_201_CREATED)
def start_tracking(
    task_id: str,
    body: TrackingStart | None = None,
    container: Container = Depends(get_container),
) -> TimeEntry:
    """Start a session. 409 if any session is already running."""
    return container.time_ledger.start(task_id, notes=body.notes if body else None)


@router.post("/{task_id}/stop", response_model=TimeEntry)
def stop_tracking(
    task_id: str,
    container: Container = Depends(get_container),
) -> TimeEntry:
    return container.time_ledger.stop(task_id)


@router.post("/{task_id}/pause", response_model=TimeEntry)
def pause_tracking(
    task_id: str,
    container: Container = Depends(get_container),
) -> TimeEntry:
    return container.time_ledger.pause(task_id)


@router.post("/{task_id}/resume", response_model=TimeEntry, status_code=status.HTTP_201_CREATED)
def resume_tracking(
    task_id: str,
    container: Container = Depends(get_container),
) -> TimeEntry:
    """Open a fresh entry after a pause."""
    return container.time_ledger.resume(task_id)


@router.get("/{task_id}/entries", response_model=list[TimeEntry])
def task_entries(
    task_id: str,
    container: Container = Depends(get_container),
) -> list[TimeEntry]:
    return container.time_ledger.entries_for_task(task_id)


@router.get("/{task_id}/total", response_model=TaskTimeRead)
def task_total(
    task_id: str,
    container: Container = Depends(get_container),
) -> TaskTimeRead:
    return TaskTimeRead(task_id=task_id, total_minutes=container.time_ledger.total_time(task_id))


@router.delete("/entries/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_entry(
    entry_id: str,
    container: Container = Depends(get_container),
) -> None:
    container.time_ledger.delete_entry(entry_id)
