"""
Key-value persistence for the stores.

Stores only need ``load(key) -> bytes | None`` and ``save(key, data)``.
Two backends:
- MemoryKeyValueStore: process-local dict, used by tests and the default config
- SQLKeyValueStore: one row per key in the ``kv_records`` table
"""

import threading
from typing import Protocol, TypeVar

from pydantic import TypeAdapter
from sqlalchemy.engine import Engine

from lifehub.database import get_session_context, init_db
from lifehub.models import KeyValueRecord
from lifehub.models.kv import utc_now
from lifehub.logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class KeyValueStore(Protocol):
    def load(self, key: str) -> bytes | None: ...

    def save(self, key: str, data: bytes) -> None: ...


class MemoryKeyValueStore:
    """In-process backend. Values are copied bytes, so callers cannot alias them."""

    def __init__(self) -> None:
        self._data: dict[str, bytes] = {}
        self._lock = threading.Lock()

    def load(self, key: str) -> bytes | None:
        with self._lock:
            return self._data.get(key)

    def save(self, key: str, data: bytes) -> None:
        with self._lock:
            self._data[key] = bytes(data)

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._data)


class SQLKeyValueStore:
    """Backend storing each key as a row of ``kv_records``."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        init_db(engine)
        logger.info(f"SQL key-value store ready: {engine.url.render_as_string(hide_password=True)}")

    def load(self, key: str) -> bytes | None:
        with get_session_context(self._engine) as session:
            record = session.get(KeyValueRecord, key)
            return bytes(record.value) if record else None

    def save(self, key: str, data: bytes) -> None:
        with get_session_context(self._engine) as session:
            record = session.get(KeyValueRecord, key)
            if record is None:
                session.add(KeyValueRecord(key=key, value=data))
            else:
                record.value = data
                record.updated_at = utc_now()
                session.add(record)
        logger.debug(f"Saved key={key} ({len(data)} bytes)")


class Collection:
    """
    Typed JSON codec for one key of a KeyValueStore.

    Remembers the bytes it last read or wrote, so stores sharing a storage
    with other processes can pick up foreign writes cheaply.

    Usage:
        tasks = Collection(storage, "tasks", list[Task])
        tasks.write([...])
        items = tasks.read(default=[])
        fresh = tasks.read_if_changed()  # None when nothing changed
    """

    def __init__(self, storage: KeyValueStore, key: str, type_: type[T]) -> None:
        self.storage = storage
        self.key = key
        self._adapter = TypeAdapter(type_)
        self._last_raw: bytes | None = None

    def read(self, default: T) -> T:
        raw = self.storage.load(self.key)
        self._last_raw = raw
        if raw is None:
            return default
        return self._adapter.validate_json(raw)

    def read_if_changed(self) -> T | None:
        """Decoded value if the stored bytes differ from the last read or write."""
        raw = self.storage.load(self.key)
        if raw is None or raw == self._last_raw:
            return None
        value = self._adapter.validate_json(raw)
        self._last_raw = raw
        return value

    def write(self, value: T) -> None:
        raw = self._adapter.dump_json(value)
        self.storage.save(self.key, raw)
        self._last_raw = raw
