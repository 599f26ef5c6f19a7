"""
Wiring of stores, sources and engines.

Stores are explicit objects shared by reference; the API and the worker
each hold one Container built at startup.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from fastapi import Request

from lifehub.config import Settings, get_settings
from lifehub.database import create_db_engine
from lifehub.logging_config import get_logger
from lifehub.services.aggregator import ProductivityAggregator
from lifehub.services.correlation import CorrelationEngine
from lifehub.services.habit_ledger import HabitLedger
from lifehub.services.productivity_log import ProductivityLog
from lifehub.services.sources import (
    EventSource,
    FocusSessionSource,
    InMemoryEventSource,
    InMemoryFocusLog,
    UnavailableWearableFeed,
    WearableFeed,
)
from lifehub.services.storage import KeyValueStore, MemoryKeyValueStore, SQLKeyValueStore
from lifehub.services.task_store import TaskStore
from lifehub.services.time_ledger import TimeTrackingLedger

logger = get_logger(__name__)


@dataclass
class Container:
    storage: KeyValueStore
    tasks: TaskStore
    time_ledger: TimeTrackingLedger
    productivity_log: ProductivityLog
    habits: HabitLedger
    events: EventSource
    focus: FocusSessionSource
    wearables: WearableFeed | None
    aggregator: ProductivityAggregator
    correlation: CorrelationEngine


def build_storage(settings: Settings) -> KeyValueStore:
    if settings.storage_backend == "sql":
        return SQLKeyValueStore(create_db_engine(settings.database_url))
    return MemoryKeyValueStore()


def build_container(
    settings: Settings | None = None,
    *,
    storage: KeyValueStore | None = None,
    events: EventSource | None = None,
    focus: FocusSessionSource | None = None,
    wearables: WearableFeed | None = None,
    clock: Callable[[], datetime] = datetime.now,
) -> Container:
    """Build every store on top of one key-value storage."""
    settings = settings or get_settings()
    storage = storage if storage is not None else build_storage(settings)
    events = events if events is not None else InMemoryEventSource()
    focus = focus if focus is not None else InMemoryFocusLog()
    wearables = wearables if wearables is not None else UnavailableWearableFeed()

    tasks = TaskStore(storage, clock=clock)
    time_ledger = TimeTrackingLedger(storage, tasks, clock=clock)
    productivity_log = ProductivityLog(storage, clock=clock)
    habits = HabitLedger(storage, productivity_log=productivity_log, clock=clock)
    aggregator = ProductivityAggregator(
        tasks,
        habits,
        productivity_log,
        event_source=events,
        focus_source=focus,
        wearable_feed=wearables,
        wearable_timeout=settings.wearable_timeout_seconds,
        clock=clock,
    )
    correlation = CorrelationEngine(productivity_log, habits, clock=clock)

    logger.info(f"Container built with storage backend '{settings.storage_backend}'")
    return Container(
        storage=storage,
        tasks=tasks,
        time_ledger=time_ledger,
        productivity_log=productivity_log,
        habits=habits,
        events=events,
        focus=focus,
        wearables=wearables,
        aggregator=aggregator,
        correlation=correlation,
    )


def get_container(request: Request) -> Container:
    """FastAPI dependency returning the app's container."""
    return request.app.state.container
