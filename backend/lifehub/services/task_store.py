"""
Task store: tasks, subtasks, templates and the dependency graph.

Completion is gated on direct dependencies:
- blocks / requires: prerequisite must be completed
- suggests: advisory, never gates

Every mutation builds the new state, persists it, and only then swaps it in,
so a rejected or failed operation leaves the store unchanged.
"""

import threading
from contextlib import contextmanager
from datetime import date, datetime
from typing import Any, Callable, Iterable, Iterator

import pydantic

from lifehub.exceptions import (
    CycleDetectedError,
    DependencyUnmetError,
    InvalidDependencyError,
    NotFoundError,
    ValidationError,
)
from lifehub.logging_config import get_logger
from lifehub.models import (
    Dependency,
    DependencyType,
    Subtask,
    SubtaskTemplate,
    Task,
    TaskPriority,
    TaskStatus,
    TaskTemplate,
)
from lifehub.services import graph as dependency_graph
from lifehub.services.storage import Collection, KeyValueStore

logger = get_logger(__name__)

TASKS_KEY = "tasks"
TEMPLATES_KEY = "task_templates"

# Fields a caller may change through update_task
UPDATABLE_FIELDS = {
    "title",
    "description",
    "priority",
    "tags",
    "due_date",
    "estimated_duration",
    "status",
}


class TaskStore:
    def __init__(
        self,
        storage: KeyValueStore,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._clock = clock
        self._lock = threading.RLock()
        self._tasks_col = Collection(storage, TASKS_KEY, list[Task])
        self._templates_col = Collection(storage, TEMPLATES_KEY, list[TaskTemplate])
        self._tasks: dict[str, Task] = {t.id: t for t in self._tasks_col.read(default=[])}
        self._templates: dict[str, TaskTemplate] = {
            t.id: t for t in self._templates_col.read(default=[])
        }
        logger.info(f"TaskStore ready: tasks={len(self._tasks)} templates={len(self._templates)}")

    # ---- low-level helpers ----

    def _sync(self) -> None:
        # Another process (e.g. the worker) may have written since our last look
        tasks = self._tasks_col.read_if_changed()
        if tasks is not None:
            self._tasks = {t.id: t for t in tasks}
        templates = self._templates_col.read_if_changed()
        if templates is not None:
            self._templates = {t.id: t for t in templates}

    @contextmanager
    def _locked(self) -> Iterator[None]:
        """Hold the store lock with state refreshed from storage."""
        with self._lock:
            self._sync()
            yield

    def _commit_tasks(self, tasks: dict[str, Task]) -> None:
        self._tasks_col.write(list(tasks.values()))
        self._tasks = tasks

    def _commit_templates(self, templates: dict[str, TaskTemplate]) -> None:
        self._templates_col.write(list(templates.values()))
        self._templates = templates

    def _require_task(self, task_id: str) -> Task:
        task = self._tasks.get(task_id)
        if task is None:
            raise NotFoundError("Task", task_id)
        return task

    def _replace_task(self, task: Task, **changes: Any) -> Task:
        changes.setdefault("updated_at", self._clock())
        updated = task.model_copy(update=changes, deep=True)
        tasks = dict(self._tasks)
        tasks[updated.id] = updated
        self._commit_tasks(tasks)
        return updated

    def _gating_unmet(self, task: Task) -> list[Dependency]:
        unmet = []
        for dep in task.dependencies:
            if not dep.is_gating:
                continue
            prerequisite = self._tasks.get(dep.depends_on_task_id)
            # A deleted prerequisite can never be satisfied
            if prerequisite is None or not prerequisite.completed:
                unmet.append(dep)
        return unmet

    # ---- tasks ----

    def add_task(
        self,
        title: str,
        *,
        description: str | None = None,
        priority: TaskPriority = TaskPriority.MEDIUM,
        tags: Iterable[str] = (),
        due_date: datetime | None = None,
        estimated_duration: int | None = None,
        status: TaskStatus = TaskStatus.PENDING,
        subtasks: Iterable[Subtask] = (),
        template_id: str | None = None,
    ) -> Task:
        task = self._build_task(
            title,
            description=description,
            priority=priority,
            tags=tags,
            due_date=due_date,
            estimated_duration=estimated_duration,
            status=status,
            subtasks=subtasks,
            template_id=template_id,
        )
        with self._locked():
            tasks = dict(self._tasks)
            tasks[task.id] = task
            self._commit_tasks(tasks)

        logger.info(f"Created task: id={task.id} title='{task.title}'")
        return task.model_copy(deep=True)

    def _build_task(
        self,
        title: str,
        *,
        description: str | None,
        priority: TaskPriority,
        tags: Iterable[str],
        due_date: datetime | None,
        estimated_duration: int | None,
        status: TaskStatus,
        subtasks: Iterable[Subtask],
        template_id: str | None,
    ) -> Task:
        if not title or not title.strip():
            raise ValidationError("Task title is required")
        if status == TaskStatus.COMPLETED:
            raise ValidationError("New tasks cannot start completed")

        now = self._clock()
        try:
            return Task(
                title=title.strip(),
                description=description,
                priority=priority,
                status=status,
                tags=list(tags),
                subtasks=list(subtasks),
                due_date=due_date,
                estimated_duration=estimated_duration,
                template_id=template_id,
                created_at=now,
                updated_at=now,
            )
        except pydantic.ValidationError as exc:
            raise ValidationError.from_pydantic(exc)

    def get_task(self, task_id: str) -> Task:
        with self._locked():
            return self._require_task(task_id).model_copy(deep=True)

    def has_task(self, task_id: str) -> bool:
        with self._locked():
            return task_id in self._tasks

    def list_tasks(
        self,
        *,
        status: TaskStatus | None = None,
        priority: TaskPriority | None = None,
        tag: str | None = None,
        search: str | None = None,
    ) -> list[Task]:
        """List tasks newest first, optionally filtered."""
        with self._locked():
            tasks = list(self._tasks.values())

        if status is not None:
            tasks = [t for t in tasks if t.status == status]
        if priority is not None:
            tasks = [t for t in tasks if t.priority == priority]
        if tag is not None:
            tasks = [t for t in tasks if tag in t.tags]
        if search:
            needle = search.lower()
            tasks = [
                t for t in tasks
                if needle in t.title.lower() or needle in (t.description or "").lower()
            ]

        tasks.sort(key=lambda t: t.created_at, reverse=True)
        logger.debug(f"Listed {len(tasks)} tasks")
        return [t.model_copy(deep=True) for t in tasks]

    def update_task(self, task_id: str, **fields: Any) -> Task:
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Fields cannot be updated directly: {', '.join(sorted(unknown))}")
        if "title" in fields and (not fields["title"] or not fields["title"].strip()):
            raise ValidationError("Task title is required")

        with self._locked():
            task = self._require_task(task_id)
            new_status = fields.get("status")
            if new_status is not None:
                new_status = TaskStatus(new_status)
                if (new_status == TaskStatus.COMPLETED) != (task.status == TaskStatus.COMPLETED):
                    raise ValidationError("Use toggle_completion to complete or reopen a task")
                fields["status"] = new_status
            # Re-validate through the model so tags are deduplicated, enums coerced
            data = task.model_dump()
            data.update(fields)
            data["updated_at"] = self._clock()
            try:
                updated = Task.model_validate(data)
            except pydantic.ValidationError as exc:
                raise ValidationError.from_pydantic(exc)
            tasks = dict(self._tasks)
            tasks[task_id] = updated
            self._commit_tasks(tasks)

        logger.info(f"Updated task {task_id}: {sorted(fields)}")
        return updated.model_copy(deep=True)

    def delete_task(self, task_id: str) -> None:
        """
        Delete a task.

        Always succeeds; tasks gated by it keep their edge and stay blocked
        until the dependency is removed.
        """
        with self._locked():
            self._require_task(task_id)
            dependents = self._blocked_by(task_id)
            tasks = dict(self._tasks)
            del tasks[task_id]
            self._commit_tasks(tasks)

        logger.info(f"Deleted task {task_id}")
        if dependents:
            logger.warning(
                f"Task {task_id} was a prerequisite of {len(dependents)} open task(s); "
                f"they stay blocked until the dependency is removed"
            )

    # ---- completion ----

    def can_complete(self, task_id: str) -> bool:
        """True iff every direct gating prerequisite exists and is completed."""
        with self._locked():
            task = self._tasks.get(task_id)
            if task is None:
                return False
            return not self._gating_unmet(task)

    def unmet_dependencies(self, task_id: str) -> list[Dependency]:
        with self._locked():
            task = self._require_task(task_id)
            return [d.model_copy() for d in self._gating_unmet(task)]

    def toggle_completion(self, task_id: str) -> Task:
        """
        Flip the completed flag.

        Raises:
            DependencyUnmetError: marking complete while a gating
                prerequisite is still open. The task is left untouched.
        """
        with self._locked():
            task = self._require_task(task_id)
            now = self._clock()

            if task.completed:
                updated = self._replace_task(
                    task, completed=False, status=TaskStatus.PENDING, completed_at=None, updated_at=now
                )
                logger.info(f"Reopened task {task_id}")
                return updated.model_copy(deep=True)

            unmet = self._gating_unmet(task)
            if unmet:
                unmet_ids = [d.depends_on_task_id for d in unmet]
                logger.warning(f"Completion of {task_id} rejected: unmet prerequisites {unmet_ids}")
                raise DependencyUnmetError(task_id, unmet_ids)

            updated = self._replace_task(
                task, completed=True, status=TaskStatus.COMPLETED, completed_at=now, updated_at=now
            )

        logger.info(f"Completed task {task_id}")
        return updated.model_copy(deep=True)

    def completed_on(self, day: date) -> list[Task]:
        """Tasks whose completion timestamp falls on ``day``."""
        with self._locked():
            return [
                t.model_copy(deep=True)
                for t in self._tasks.values()
                if t.completed and t.completed_at is not None and t.completed_at.date() == day
            ]

    # ---- dependencies ----

    def add_dependency(
        self,
        task_id: str,
        depends_on_task_id: str,
        type: DependencyType = DependencyType.BLOCKS,
    ) -> Dependency:
        """
        Make ``task_id`` depend on ``depends_on_task_id``.

        Gating edges that would close a cycle of gating edges are rejected,
        since such a cycle could never be completed.
        """
        type = DependencyType(type)
        logger.info(f"Creating dependency: {task_id} -> {depends_on_task_id} ({type.value})")

        if task_id == depends_on_task_id:
            logger.warning(f"Self-dependency rejected: {task_id}")
            raise InvalidDependencyError(task_id)

        with self._locked():
            task = self._require_task(task_id)
            self._require_task(depends_on_task_id)

            if type.is_gating:
                graph = dependency_graph.build_dependency_graph(self._tasks.values())
                if dependency_graph.would_create_cycle(graph, depends_on_task_id, task_id):
                    logger.warning(f"Cycle detected: {task_id} -> {depends_on_task_id} would create a cycle")
                    raise CycleDetectedError(task_id, depends_on_task_id)

            dependency = Dependency(
                task_id=task_id,
                depends_on_task_id=depends_on_task_id,
                type=type,
                created_at=self._clock(),
            )
            self._replace_task(task, dependencies=[*task.dependencies, dependency])

        return dependency.model_copy()

    def remove_dependency(self, dependency_id: str) -> None:
        with self._locked():
            for task in self._tasks.values():
                remaining = [d for d in task.dependencies if d.id != dependency_id]
                if len(remaining) != len(task.dependencies):
                    self._replace_task(task, dependencies=remaining)
                    logger.info(f"Removed dependency {dependency_id} from task {task.id}")
                    return
        raise NotFoundError("Dependency", dependency_id)

    def get_dependencies(self, task_id: str) -> list[Dependency]:
        with self._locked():
            return [d.model_copy() for d in self._require_task(task_id).dependencies]

    def _blocked_by(self, task_id: str) -> list[Task]:
        return [
            t for t in self._tasks.values()
            if any(d.is_gating and d.depends_on_task_id == task_id for d in t.dependencies)
        ]

    def get_blocked_tasks(self, task_id: str) -> list[Task]:
        """Tasks with a gating dependency on ``task_id``."""
        with self._locked():
            return [t.model_copy(deep=True) for t in self._blocked_by(task_id)]

    def get_downstream_task_ids(self, task_id: str) -> list[str]:
        """Every task transitively gated by ``task_id``."""
        with self._locked():
            graph = dependency_graph.build_dependency_graph(self._tasks.values())
        return dependency_graph.get_descendants(graph, task_id)

    def completion_order(self) -> list[str]:
        """Existing task IDs ordered so prerequisites come before dependents."""
        with self._locked():
            graph = dependency_graph.build_dependency_graph(self._tasks.values())
            known = set(self._tasks)
        return [task_id for task_id in dependency_graph.completion_order(graph) if task_id in known]

    # ---- subtasks ----

    def add_subtask(self, task_id: str, title: str) -> Subtask:
        if not title or not title.strip():
            raise ValidationError("Subtask title is required")
        with self._locked():
            task = self._require_task(task_id)
            subtask = Subtask(title=title.strip(), created_at=self._clock())
            self._replace_task(task, subtasks=[*task.subtasks, subtask])
        logger.debug(f"Added subtask {subtask.id} to task {task_id}")
        return subtask.model_copy()

    def toggle_subtask(self, task_id: str, subtask_id: str) -> Subtask:
        with self._locked():
            task = self._require_task(task_id)
            if not any(s.id == subtask_id for s in task.subtasks):
                raise NotFoundError("Subtask", subtask_id)
            subtasks = [
                s.model_copy(update={"completed": not s.completed}) if s.id == subtask_id else s
                for s in task.subtasks
            ]
            self._replace_task(task, subtasks=subtasks)
        return next(s for s in subtasks if s.id == subtask_id).model_copy()

    # ---- time accounting hook ----

    def add_actual_duration(self, task_id: str, minutes: int) -> Task:
        """Adjust tracked minutes; called by the time ledger only."""
        with self._locked():
            task = self._require_task(task_id)
            updated = self._replace_task(task, actual_duration=max(0, task.actual_duration + minutes))
        logger.debug(f"Task {task_id} actual_duration={updated.actual_duration}")
        return updated.model_copy(deep=True)

    # ---- templates ----

    def add_template(
        self,
        name: str,
        *,
        description: str = "",
        category: str = "general",
        estimated_duration: int | None = None,
        priority: TaskPriority = TaskPriority.MEDIUM,
        tags: Iterable[str] = (),
        subtasks: Iterable[str | SubtaskTemplate] = (),
    ) -> TaskTemplate:
        if not name or not name.strip():
            raise ValidationError("Template name is required")
        try:
            template = TaskTemplate(
                name=name.strip(),
                description=description,
                category=category,
                estimated_duration=estimated_duration,
                priority=priority,
                tags=list(tags),
                subtasks=[s if isinstance(s, SubtaskTemplate) else SubtaskTemplate(title=s) for s in subtasks],
                created_at=self._clock(),
            )
        except pydantic.ValidationError as exc:
            raise ValidationError.from_pydantic(exc)
        with self._locked():
            templates = dict(self._templates)
            templates[template.id] = template
            self._commit_templates(templates)
        logger.info(f"Created template: id={template.id} name='{template.name}'")
        return template.model_copy(deep=True)

    def get_template(self, template_id: str) -> TaskTemplate:
        with self._locked():
            template = self._templates.get(template_id)
            if template is None:
                raise NotFoundError("Template", template_id)
            return template.model_copy(deep=True)

    def delete_template(self, template_id: str) -> None:
        with self._locked():
            if template_id not in self._templates:
                raise NotFoundError("Template", template_id)
            templates = dict(self._templates)
            del templates[template_id]
            self._commit_templates(templates)
        logger.info(f"Deleted template {template_id}")

    def list_templates(self, category: str | None = None) -> list[TaskTemplate]:
        with self._locked():
            templates = list(self._templates.values())
        if category is not None:
            templates = [t for t in templates if t.category == category]
        return [t.model_copy(deep=True) for t in templates]

    def popular_templates(self, limit: int = 5) -> list[TaskTemplate]:
        templates = self.list_templates()
        templates.sort(key=lambda t: t.usage_count, reverse=True)
        return templates[:limit]

    def create_task_from_template(self, template_id: str, **overrides: Any) -> Task:
        """
        Instantiate a template as a new pending task.

        ``overrides`` may replace title, description, priority, tags,
        estimated_duration and due_date. Bumps the template's usage_count.
        """
        allowed = {"title", "description", "priority", "tags", "estimated_duration", "due_date"}
        unknown = set(overrides) - allowed
        if unknown:
            raise ValidationError(f"Unsupported template overrides: {', '.join(sorted(unknown))}")

        with self._locked():
            template = self._templates.get(template_id)
            if template is None:
                raise NotFoundError("Template", template_id)

            now = self._clock()
            task = self._build_task(
                overrides.get("title") or template.name,
                description=overrides.get("description") or template.description or None,
                priority=overrides.get("priority") or template.priority,
                tags=overrides.get("tags") or template.tags,
                due_date=overrides.get("due_date"),
                estimated_duration=overrides.get("estimated_duration") or template.estimated_duration,
                subtasks=[
                    Subtask(title=s.title, completed=s.completed, created_at=now)
                    for s in template.subtasks
                ],
                status=TaskStatus.PENDING,
                template_id=template.id,
            )
            tasks = dict(self._tasks)
            tasks[task.id] = task
            previous_templates = self._templates
            templates = dict(previous_templates)
            templates[template_id] = template.model_copy(update={"usage_count": template.usage_count + 1})

            # Two keys are written; undo the usage bump if the task write fails
            self._commit_templates(templates)
            try:
                self._commit_tasks(tasks)
            except Exception:
                self._commit_templates(previous_templates)
                raise

        logger.info(f"Created task {task.id} from template {template_id}")
        return task.model_copy(deep=True)
