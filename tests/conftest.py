"""Pytest configuration and fixtures for SleepTracker tests."""

import pytest
import tempfile
import logging

from sleeptracker.concurrency.dispatchers import ForegroundLoop, create_io_executor
from sleeptracker.concurrency.scope import LifecycleScope
from sleeptracker.controllers.factory import ControllerFactory
from sleeptracker.storage.session_store import SessionStore


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

JOIN_TIMEOUT = 5.0


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast isolated tests")
    config.addinivalue_line("markers", "integration: tests spanning several components")


class FakeClock:
    """Deterministic epoch-millisecond clock."""

    def __init__(self, start_ms: int = 1_700_000_000_000):
        self.now = start_ms

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> int:
        self.now += ms
        return self.now


@pytest.fixture
def temp_data_dir():
    """Create temporary directory for test data."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield temp_dir


@pytest.fixture
def foreground():
    """Running foreground loop, stopped after the test."""
    loop = ForegroundLoop("test-foreground").start()
    yield loop
    loop.stop()


@pytest.fixture
def io_executor():
    executor = create_io_executor(max_workers=2, name="test-io")
    yield executor
    executor.shutdown(wait=True)


@pytest.fixture
def store(foreground):
    """In-memory store delivering live query results on the foreground loop."""
    session_store = SessionStore(":memory:", dispatcher=foreground.post)
    yield session_store
    session_store.close()


@pytest.fixture
def scope(foreground, io_executor):
    test_scope = LifecycleScope(foreground, io_executor, name="test")
    yield test_scope
    test_scope.cancel()


@pytest.fixture
def factory(store, foreground, io_executor, fake_clock):
    return ControllerFactory(store, foreground, io_executor, clock=fake_clock)


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def join():
    """Wait for every unit of work launched by a controller."""
    def _join(controller, timeout: float = JOIN_TIMEOUT):
        assert controller.scope.join(timeout), f"{controller.scope.name} did not finish in time"
    return _join
