"""
Symlog Test Configuration

Shared fixtures and test utilities.
"""

import os
import tempfile
from pathlib import Path
from typing import Generator

import pytest

# Set test environment before any imports
os.environ.setdefault("LOG_LEVEL", "DEBUG")
os.environ.setdefault("SYMLOG_DEBUG", "false")

# Use temp directories for storage during tests
_test_temp_dir = Path(tempfile.gettempdir()) / "symlog_test"
_test_temp_dir.mkdir(parents=True, exist_ok=True)
os.environ.setdefault("SYMLOG_DATA_PATH", str(_test_temp_dir))
os.environ.setdefault("SYMLOG_DB_PATH", str(_test_temp_dir / "symlog_test.db"))

from fakes import NOW, FixedClock  # noqa: E402,F401


@pytest.fixture(autouse=True)
def reset_settings() -> Generator[None, None, None]:
    """Reset settings, metrics and tracers around each test."""
    from symlog.config import reset_settings
    from symlog.observability.metrics import reset_metrics
    from symlog.observability.tracer import reset_tracers

    reset_settings()
    reset_metrics()
    reset_tracers()
    yield
    reset_settings()
    reset_metrics()
    reset_tracers()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def store():
    from symlog.storage.memory_store import InMemoryStore

    return InMemoryStore()


@pytest.fixture
def repository(store, clock):
    from symlog.storage.repository import SymptomRepository

    return SymptomRepository(store, clock=clock)


@pytest.fixture
def todo_queue(store, clock):
    from symlog.todos.queue import TodoQueue

    return TodoQueue(store, clock=clock)


@pytest.fixture
def draft_store(store, clock):
    from symlog.storage.draft_store import DraftSnapshotStore

    return DraftSnapshotStore(store, ttl_hours=24, clock=clock)


@pytest.fixture
def dispatcher(repository, todo_queue, clock):
    from symlog.tools.dispatcher import ToolDispatcher

    return ToolDispatcher(repository, todo_queue, clock=clock)


@pytest.fixture
def linker():
    from symlog.linking.linker import EntityLinker

    return EntityLinker(confidence_threshold=0.7)
