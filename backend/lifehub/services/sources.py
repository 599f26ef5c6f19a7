"""
External data sources consumed by the productivity aggregator.

The calendar, the focus timer and wearable devices live outside this
service; the aggregator only sees these small interfaces. The in-memory
implementations back the API and the tests.
"""

import threading
from datetime import date, datetime
from typing import Protocol

from lifehub.exceptions import ExternalFetchFailedError
from lifehub.models import FocusSession, WearableSample


class EventSource(Protocol):
    def count_events_on_date(self, day: date) -> int: ...


class FocusSessionSource(Protocol):
    def closed_sessions_on_date(self, day: date) -> list[FocusSession]: ...


class WearableFeed(Protocol):
    def sample_for_date(self, day: date) -> WearableSample | None:
        """May raise or hang; callers bound it with a timeout."""
        ...


class InMemoryEventSource:
    """Calendar stand-in holding event start times."""

    def __init__(self, starts: list[datetime] | None = None) -> None:
        self._starts = list(starts or [])
        self._lock = threading.Lock()

    def add_event(self, start_time: datetime) -> None:
        with self._lock:
            self._starts.append(start_time)

    def count_events_on_date(self, day: date) -> int:
        with self._lock:
            return sum(1 for start in self._starts if start.date() == day)


class InMemoryFocusLog:
    """Focus timer stand-in holding closed sessions."""

    def __init__(self, sessions: list[FocusSession] | None = None) -> None:
        self._sessions = list(sessions or [])
        self._lock = threading.Lock()

    def record(self, start_time: datetime, duration_seconds: int) -> FocusSession:
        session = FocusSession(start_time=start_time, duration_seconds=duration_seconds)
        with self._lock:
            self._sessions.append(session)
        return session

    def closed_sessions_on_date(self, day: date) -> list[FocusSession]:
        with self._lock:
            return [s for s in self._sessions if s.start_time.date() == day]


class StaticWearableFeed:
    """Wearable stand-in returning preloaded samples keyed by date."""

    def __init__(self, samples: list[WearableSample] | None = None) -> None:
        self._samples = {s.date: s for s in samples or []}
        self._lock = threading.Lock()

    def put(self, sample: WearableSample) -> None:
        with self._lock:
            self._samples[sample.date] = sample

    def sample_for_date(self, day: date) -> WearableSample | None:
        with self._lock:
            return self._samples.get(day)


class UnavailableWearableFeed:
    """Feed that always fails, used when no device is paired."""

    def sample_for_date(self, day: date) -> WearableSample | None:
        raise ExternalFetchFailedError("wearable", "no device paired")
