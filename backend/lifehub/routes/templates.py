"""
Task template routes for the LifeHub API.
"""

from fastapi import APIRouter, Depends, status

from lifehub.container import Container, get_container
from lifehub.models import Task, TaskTemplate
from lifehub.schemas import TemplateCreate, TemplateInstantiate

router = APIRouter()


@router.post("/", response_model=TaskTemplate, status_code=status.HTTP_201_CREATED)
def create_template(
    template_in: TemplateCreate,
    container: Container = Depends(get_container),
) -> TaskTemplate:
    data = template_in.model_dump()
    return container.tasks.add_template(data.pop("name"), **data)


@router.get("/", response_model=list[TaskTemplate])
def list_templates(
    category: str | None = None,
    container: Container = Depends(get_container),
) -> list[TaskTemplate]:
    return container.tasks.list_templates(category)


@router.get("/popular", response_model=list[TaskTemplate])
def popular_templates(
    limit: int = 5,
    container: Container = Depends(get_container),
) -> list[TaskTemplate]:
    """Most used templates first."""
    return container.tasks.popular_templates(limit)


@router.delete("/{template_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_template(
    template_id: str,
    container: Container = Depends(get_container),
) -> None:
    container.tasks.delete_template(template_id)


@router.post("/{template_id}/instantiate", response_model=Task, status_code=status.HTTP_201_CREATED)
def instantiate_template(
    template_id: str,
    overrides: TemplateInstantiate | None = None,
    container: Container = Depends(get_container),
) -> Task:
    """Create a task from a template, optionally overriding its fields."""
    data = overrides.model_dump(exclude_none=True) if overrides else {}
    return container.tasks.create_task_from_template(template_id, **data)
