"""
Task routes for the LifeHub API.
"""

from fastapi import APIRouter, Depends, status

from lifehub.container import Container, get_container
from lifehub.models import Subtask, Task, TaskPriority, TaskStatus
from lifehub.schemas import SubtaskCreate, TaskCreate, TaskUpdate
from lifehub.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.post("/", response_model=Task, status_code=status.HTTP_201_CREATED)
def create_task(
    task_in: TaskCreate,
    container: Container = Depends(get_container),
) -> Task:
    """Create a new task."""
    return container.tasks.add_task(**task_in.model_dump())


@router.get("/", response_model=list[Task])
def list_tasks(
    status: TaskStatus | None = None,
    priority: TaskPriority | None = None,
    tag: str | None = None,
    search: str | None = None,
    container: Container = Depends(get_container),
) -> list[Task]:
    """
    List tasks, newest first.

    Optionally filter by status, priority, tag or a title/description search.
    """
    return container.tasks.list_tasks(status=status, priority=priority, tag=tag, search=search)


@router.get("/order", response_model=list[str])
def completion_order(container: Container = Depends(get_container)) -> list[str]:
    """Task IDs ordered so every prerequisite precedes its dependents."""
    return container.tasks.completion_order()


@router.get("/{task_id}", response_model=Task)
def get_task(
    task_id: str,
    container: Container = Depends(get_container),
) -> Task:
    """Get a task by ID."""
    return container.tasks.get_task(task_id)


@router.patch("/{task_id}", response_model=Task)
def update_task(
    task_id: str,
    task_in: TaskUpdate,
    container: Container = Depends(get_container),
) -> Task:
    """Update task fields. Completion is changed through /toggle."""
    return container.tasks.update_task(task_id, **task_in.model_dump(exclude_unset=True))


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task(
    task_id: str,
    container: Container = Depends(get_container),
) -> None:
    """
    Delete a task.

    Tasks gated by it stay blocked until their dependency is removed.
    """
    container.tasks.delete_task(task_id)


@router.post("/{task_id}/toggle", response_model=Task)
def toggle_task(
    task_id: str,
    container: Container = Depends(get_container),
) -> Task:
    """
    Complete or reopen a task.

    Completing fails with 409 while a blocking prerequisite is open.
    """
    return container.tasks.toggle_completion(task_id)


@router.get("/{task_id}/blocked", response_model=list[Task])
def blocked_tasks(
    task_id: str,
    container: Container = Depends(get_container),
) -> list[Task]:
    """Tasks waiting on this one through a blocking dependency."""
    return container.tasks.get_blocked_tasks(task_id)


@router.get("/{task_id}/downstream", response_model=list[str])
def downstream_tasks(
    task_id: str,
    container: Container = Depends(get_container),
) -> list[str]:
    container.tasks.get_task(task_id)
    return container.tasks.get_downstream_task_ids(task_id)


@router.post("/{task_id}/subtasks", response_model=Subtask, status_code=status.HTTP_201_CREATED)
def add_subtask(
    task_id: str,
    subtask_in: SubtaskCreate,
    container: Container = Depends(get_container),
) -> Subtask:
    return container.tasks.add_subtask(task_id, subtask_in.title)


@router.post("/{task_id}/subtasks/{subtask_id}/toggle", response_model=Subtask)
def toggle_subtask(
    task_id: str,
    subtask_id: str,
    container: Container = Depends(get_container),
) -> Subtask:
    return container.tasks.toggle_subtask(task_id, subtask_id)
