"""
Dependency routes for the LifeHub API.
"""

from fastapi import APIRouter, Depends, status

from lifehub.container import Container, get_container
from lifehub.models import Dependency
from lifehub.schemas import DependencyCreate
from lifehub.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.post("/", response_model=Dependency, status_code=status.HTTP_201_CREATED)
def create_dependency(
    dep_in: DependencyCreate,
    container: Container = Depends(get_container),
) -> Dependency:
    """
    Create a new dependency (edge in the task graph).

    Self-dependencies and blocking edges that would close a cycle
    return 400 Bad Request.
    """
    return container.tasks.add_dependency(dep_in.task_id, dep_in.depends_on_task_id, dep_in.type)


@router.get("/", response_model=list[Dependency])
def list_dependencies(
    task_id: str,
    container: Container = Depends(get_container),
) -> list[Dependency]:
    """Outgoing dependencies of a task."""
    dependencies = container.tasks.get_dependencies(task_id)
    logger.debug(f"Listed {len(dependencies)} dependencies for task={task_id}")
    return dependencies


@router.get("/unmet", response_model=list[Dependency])
def unmet_dependencies(
    task_id: str,
    container: Container = Depends(get_container),
) -> list[Dependency]:
    """Blocking dependencies that still prevent completing the task."""
    return container.tasks.unmet_dependencies(task_id)


@router.delete("/{dependency_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_dependency(
    dependency_id: str,
    container: Container = Depends(get_container),
) -> None:
    container.tasks.remove_dependency(dependency_id)
