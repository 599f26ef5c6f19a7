"""
Time tracking ledger.

An append-only arena of TimeEntry records with one invariant: at most one
entry system-wide has ``is_active=True``. Pausing closes the running entry
and resuming appends a new one, so a task's tracked total is always the sum
of its closed entries.

Lock order is ledger -> task store; the task store never calls back here.
"""

import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Callable, Iterator

from lifehub.exceptions import (
    NoActiveSessionError,
    NotFoundError,
    SessionAlreadyActiveError,
    ValidationError,
)
from lifehub.logging_config import get_logger
from lifehub.models import TimeEntry
from lifehub.services.numeric import round_half_up
from lifehub.services.storage import Collection, KeyValueStore
from lifehub.services.task_store import TaskStore

logger = get_logger(__name__)

TIME_ENTRIES_KEY = "time_entries"


def elapsed_minutes(start: datetime, end: datetime) -> int:
    """Whole minutes between two instants, rounded half up, never negative."""
    return max(0, round_half_up((end - start).total_seconds() / 60))


class TimeTrackingLedger:
    def __init__(
        self,
        storage: KeyValueStore,
        task_store: TaskStore,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._task_store = task_store
        self._clock = clock
        self._lock = threading.RLock()
        self._col = Collection(storage, TIME_ENTRIES_KEY, list[TimeEntry])
        self._entries: dict[str, TimeEntry] = {e.id: e for e in self._col.read(default=[])}

        active = [e for e in self._entries.values() if e.is_active]
        if len(active) > 1:
            # Only reachable with hand-edited storage
            raise ValidationError(f"Stored ledger has {len(active)} active entries")
        logger.info(f"TimeTrackingLedger ready: entries={len(self._entries)} active={len(active)}")

    def _sync(self) -> None:
        entries = self._col.read_if_changed()
        if entries is not None:
            self._entries = {e.id: e for e in entries}

    @contextmanager
    def _locked(self) -> Iterator[None]:
        """Hold the ledger lock with entries refreshed from storage."""
        with self._lock:
            self._sync()
            yield

    def _commit(self, entries: dict[str, TimeEntry]) -> None:
        self._col.write(list(entries.values()))
        self._entries = entries

    def _active(self) -> TimeEntry | None:
        return next((e for e in self._entries.values() if e.is_active), None)

    # ---- queries ----

    def active_entry(self) -> TimeEntry | None:
        with self._locked():
            active = self._active()
            return active.model_copy() if active else None

    def entries_for_task(self, task_id: str) -> list[TimeEntry]:
        with self._locked():
            return [e.model_copy() for e in self._entries.values() if e.task_id == task_id]

    def total_time(self, task_id: str) -> int:
        """Minutes over closed entries; a running entry counts 0 until closed."""
        with self._locked():
            return sum(
                e.duration or 0
                for e in self._entries.values()
                if e.task_id == task_id and not e.is_active
            )

    # ---- session control ----

    def start(self, task_id: str, notes: str | None = None) -> TimeEntry:
        """
        Open a new active entry for ``task_id``.

        The active check and the insert happen under one lock acquisition.

        Raises:
            SessionAlreadyActiveError: some entry (any task) is running
            NotFoundError: the task does not exist
        """
        with self._locked():
            active = self._active()
            if active is not None:
                logger.warning(f"Start on {task_id} rejected: session active for {active.task_id}")
                raise SessionAlreadyActiveError(active.task_id)
            if not self._task_store.has_task(task_id):
                raise NotFoundError("Task", task_id)

            entry = TimeEntry(task_id=task_id, start_time=self._clock(), notes=notes, is_active=True)
            entries = dict(self._entries)
            entries[entry.id] = entry
            self._commit(entries)

        logger.info(f"Started time tracking: entry={entry.id} task={task_id}")
        return entry.model_copy()

    def stop(self, task_id: str) -> TimeEntry:
        """
        Close the active entry of ``task_id`` and credit its minutes to the task.

        Raises:
            NoActiveSessionError: no running entry for this task
        """
        with self._locked():
            active = self._active()
            if active is None or active.task_id != task_id:
                raise NoActiveSessionError(task_id)

            end_time = self._clock()
            closed = active.model_copy(update={
                "end_time": end_time,
                "duration": elapsed_minutes(active.start_time, end_time),
                "is_active": False,
            })
            entries = dict(self._entries)
            entries[closed.id] = closed
            self._commit(entries)

            if self._task_store.has_task(task_id):
                self._task_store.add_actual_duration(task_id, closed.duration)
            else:
                logger.warning(f"Closed entry {closed.id} for deleted task {task_id}")

        logger.info(f"Stopped time tracking: entry={closed.id} task={task_id} minutes={closed.duration}")
        return closed.model_copy()

    def pause(self, task_id: str) -> TimeEntry:
        """Same accounting as stop; a later resume opens a fresh entry."""
        return self.stop(task_id)

    def resume(self, task_id: str, notes: str | None = None) -> TimeEntry:
        return self.start(task_id, notes=notes)

    def delete_entry(self, entry_id: str) -> None:
        """Remove a closed entry and take its minutes back off the task."""
        with self._locked():
            entry = self._entries.get(entry_id)
            if entry is None:
                raise NotFoundError("Time entry", entry_id)
            if entry.is_active:
                raise ValidationError("Stop the session before deleting its entry")

            entries = dict(self._entries)
            del entries[entry_id]
            self._commit(entries)

            if entry.duration and self._task_store.has_task(entry.task_id):
                self._task_store.add_actual_duration(entry.task_id, -entry.duration)

        logger.info(f"Deleted time entry {entry_id} (task={entry.task_id})")
