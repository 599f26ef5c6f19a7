"""
Task store behavior: CRUD, subtasks, templates and persistence of every
mutation through the key-value storage.
"""

import pytest

from lifehub.exceptions import NotFoundError, ValidationError
from lifehub.models import TaskPriority, TaskStatus
from lifehub.services.task_store import TaskStore


@pytest.fixture
def store(storage, clock):
    return TaskStore(storage, clock=clock)


class TestTaskCrud:

    def test_add_task_defaults(self, store, clock):
        task = store.add_task("Write report")

        assert task.title == "Write report"
        assert task.completed is False
        assert task.status == TaskStatus.PENDING
        assert task.priority == TaskPriority.MEDIUM
        assert task.actual_duration == 0
        assert task.created_at == clock.now
        assert store.has_task(task.id)

    def test_blank_title_rejected(self, store):
        with pytest.raises(ValidationError):
            store.add_task("   ")

    def test_cannot_create_completed_task(self, store):
        with pytest.raises(ValidationError):
            store.add_task("Done already", status=TaskStatus.COMPLETED)

    def test_tags_are_deduplicated(self, store):
        task = store.add_task("Tagged", tags=["work", "urgent", "work"])
        assert task.tags == ["work", "urgent"]

    def test_get_unknown_task(self, store):
        with pytest.raises(NotFoundError):
            store.get_task("missing")

    def test_returned_task_is_a_copy(self, store):
        task = store.add_task("Original")
        task.title = "Mutated"
        task.tags.append("leak")

        stored = store.get_task(task.id)
        assert stored.title == "Original"
        assert stored.tags == []

    def test_list_newest_first_with_filters(self, store, clock):
        a = store.add_task("Alpha report", tags=["work"], priority=TaskPriority.HIGH)
        clock.advance(minutes=1)
        b = store.add_task("Beta", description="weekly report", tags=["home"])
        clock.advance(minutes=1)
        c = store.add_task("Gamma", tags=["work"])

        assert [t.id for t in store.list_tasks()] == [c.id, b.id, a.id]
        assert [t.id for t in store.list_tasks(tag="work")] == [c.id, a.id]
        assert [t.id for t in store.list_tasks(priority=TaskPriority.HIGH)] == [a.id]
        assert {t.id for t in store.list_tasks(search="REPORT")} == {a.id, b.id}

    def test_update_task_fields(self, store, clock):
        task = store.add_task("Draft")
        clock.advance(minutes=5)

        updated = store.update_task(task.id, title="Final", priority=TaskPriority.URGENT, tags=["a", "a"])

        assert updated.title == "Final"
        assert updated.priority == TaskPriority.URGENT
        assert updated.tags == ["a"]
        assert updated.updated_at == clock.now

    def test_update_rejects_completion_and_unknown_fields(self, store):
        task = store.add_task("Draft")

        with pytest.raises(ValidationError):
            store.update_task(task.id, status=TaskStatus.COMPLETED)
        with pytest.raises(ValidationError):
            store.update_task(task.id, completed=True)
        with pytest.raises(ValidationError):
            store.update_task(task.id, estimated_duration=-5)

        assert store.get_task(task.id).completed is False

    def test_delete_task(self, store):
        task = store.add_task("Temp")
        store.delete_task(task.id)

        assert not store.has_task(task.id)
        with pytest.raises(NotFoundError):
            store.delete_task(task.id)


class TestCompletion:

    def test_toggle_sets_and_clears_completed_at(self, store, clock):
        task = store.add_task("Ship it")

        done = store.toggle_completion(task.id)
        assert done.completed is True
        assert done.status == TaskStatus.COMPLETED
        assert done.completed_at == clock.now

        reopened = store.toggle_completion(task.id)
        assert reopened.completed is False
        assert reopened.status == TaskStatus.PENDING
        assert reopened.completed_at is None

    def test_completed_on_day(self, store, clock):
        a = store.add_task("Today")
        b = store.add_task("Tomorrow")
        store.toggle_completion(a.id)
        clock.advance(days=1)
        store.toggle_completion(b.id)

        today = clock.now.date()
        assert [t.id for t in store.completed_on(today)] == [b.id]


class TestSubtasks:

    def test_add_and_toggle_subtask(self, store):
        task = store.add_task("Parent")
        subtask = store.add_subtask(task.id, "Child")

        toggled = store.toggle_subtask(task.id, subtask.id)

        assert toggled.completed is True
        assert store.get_task(task.id).subtasks[0].completed is True

    def test_toggle_unknown_subtask(self, store):
        task = store.add_task("Parent")
        with pytest.raises(NotFoundError):
            store.toggle_subtask(task.id, "nope")


class TestTemplates:

    def test_create_task_from_template(self, store):
        template = store.add_template(
            "Weekly review",
            category="planning",
            estimated_duration=30,
            priority=TaskPriority.HIGH,
            tags=["review"],
            subtasks=["Inbox zero", "Plan next week"],
        )

        task = store.create_task_from_template(template.id)

        assert task.title == "Weekly review"
        assert task.priority == TaskPriority.HIGH
        assert task.estimated_duration == 30
        assert task.tags == ["review"]
        assert [s.title for s in task.subtasks] == ["Inbox zero", "Plan next week"]
        assert task.template_id == template.id
        assert store.get_template(template.id).usage_count == 1

    def test_template_overrides(self, store):
        template = store.add_template("Standup")
        task = store.create_task_from_template(template.id, title="Monday standup", tags=["team"])

        assert task.title == "Monday standup"
        assert task.tags == ["team"]

    def test_unknown_override_rejected(self, store):
        template = store.add_template("Standup")
        with pytest.raises(ValidationError):
            store.create_task_from_template(template.id, completed=True)
        assert store.get_template(template.id).usage_count == 0

    def test_popular_templates(self, store):
        rare = store.add_template("Rare")
        common = store.add_template("Common")
        for _ in range(3):
            store.create_task_from_template(common.id)
        store.create_task_from_template(rare.id)

        assert [t.id for t in store.popular_templates(limit=1)] == [common.id]
        assert [t.name for t in store.list_templates(category="general")] == ["Rare", "Common"]

    @pytest.mark.parametrize("failing_key", ["tasks", "task_templates"])
    def test_failed_instantiation_changes_nothing(self, store, storage, monkeypatch, failing_key):
        """
        Scenario: one of the two writes behind instantiation fails
        Expected: no task is created and usage_count stays 0
        """
        template = store.add_template("Standup")
        original_save = storage.save

        def flaky_save(key, data):
            if key == failing_key:
                raise OSError("disk full")
            original_save(key, data)

        monkeypatch.setattr(storage, "save", flaky_save)

        with pytest.raises(OSError):
            store.create_task_from_template(template.id)

        monkeypatch.undo()
        assert store.list_tasks() == []
        assert store.get_template(template.id).usage_count == 0
        reloaded = TaskStore(storage)
        assert reloaded.list_tasks() == []
        assert reloaded.get_template(template.id).usage_count == 0

    def test_delete_template(self, store):
        template = store.add_template("Gone")
        store.delete_template(template.id)
        with pytest.raises(NotFoundError):
            store.get_template(template.id)


class TestPersistence:

    def test_reload_from_storage(self, storage, clock, store):
        task = store.add_task("Persisted", tags=["keep"])
        store.add_subtask(task.id, "Step")
        store.add_template("Kept template")

        reloaded = TaskStore(storage, clock=clock)

        assert reloaded.get_task(task.id).tags == ["keep"]
        assert len(reloaded.get_task(task.id).subtasks) == 1
        assert [t.name for t in reloaded.list_templates()] == ["Kept template"]

    def test_failed_save_leaves_store_unchanged(self, store, storage, monkeypatch):
        task = store.add_task("Stable")

        def broken_save(key, data):
            raise OSError("disk full")

        monkeypatch.setattr(storage, "save", broken_save)

        with pytest.raises(OSError):
            store.toggle_completion(task.id)
        assert store.get_task(task.id).completed is False
