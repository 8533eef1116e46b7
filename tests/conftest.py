"""
Pytest configuration for Feedboard tests.
Points every store at throwaway locations before the app is imported.
"""

import os
import tempfile

# Must be set before any feedboard imports (settings are read at import)
_test_data_dir = tempfile.mkdtemp(prefix="feedboard_test_")
os.environ.setdefault("FEEDBOARD_DATA_DIRECTORY", _test_data_dir)
os.environ.setdefault("FEEDBOARD_LOG_DIR", os.path.join(_test_data_dir, "logs"))
os.environ.setdefault("FEEDBOARD_DATABASE_URL", f"sqlite:///{_test_data_dir}/test.db")

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from feedboard.core.errors.registry import error_registry
from feedboard.main import app
from feedboard.storage import InMemoryStorage, RelationalStorage, get_storage

# Load error registry so FeedboardError returns correct HTTP status codes
error_registry.load()


class StepClock:
    """Deterministic clock: each call advances by *step* (zero = frozen)."""

    def __init__(self, start: datetime | None = None, step: timedelta = timedelta(seconds=1)):
        self.now = start or datetime(2026, 1, 1, tzinfo=timezone.utc)
        self.step = step

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + self.step
        return current


@pytest.fixture
def memory_storage():
    return InMemoryStorage(clock=StepClock())


@pytest.fixture
def relational_storage(tmp_path):
    storage = RelationalStorage.from_url(f"sqlite:///{tmp_path / 'feedboard.db'}")
    storage.initialize()
    yield storage
    storage.close()


@pytest.fixture(params=["memory", "relational"])
def storage(request):
    """Run contract tests against both backends."""
    return request.getfixturevalue(f"{request.param}_storage")


@pytest.fixture
def client(storage):
    """TestClient wired to the parametrized storage backend."""
    app.dependency_overrides[get_storage] = lambda: storage
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(get_storage, None)


@pytest.fixture
def step_clock():
    """Factory for deterministic clocks."""
    return StepClock
