"""
Pytest configuration and fixtures for LifeHub tests.
"""

from datetime import datetime, timedelta

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from lifehub.config import Settings
from lifehub.container import build_container
from lifehub.main import app
from lifehub.services.sources import InMemoryEventSource, InMemoryFocusLog, StaticWearableFeed
from lifehub.services.storage import MemoryKeyValueStore


class FakeClock:
    """Controllable clock passed to every store."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 3, 10, 9, 0, 0))


@pytest.fixture
def storage():
    return MemoryKeyValueStore()


@pytest.fixture
def settings():
    return Settings(storage_backend="memory", wearable_timeout_seconds=0.2)


@pytest.fixture
def container(settings, storage, clock):
    """Fully wired in-memory container with empty sources."""
    return build_container(
        settings,
        storage=storage,
        events=InMemoryEventSource(),
        focus=InMemoryFocusLog(),
        wearables=StaticWearableFeed(),
        clock=clock,
    )


@pytest_asyncio.fixture
async def client(container):
    """Async test client bound to the in-memory container."""
    app.state.container = container

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.state.container = None
