import os
import tempfile

_TMP_DIR = tempfile.mkdtemp(prefix="rightangle-tests-")
os.environ.setdefault("DATABASE_URL", "sqlite:///" + os.path.join(_TMP_DIR, "test.db"))

import pytest

from rightangle.measurement.core import MeasurementSessionController


class FakeClock:
    """Epoch-millisecond clock moved by hand."""

    def __init__(self, now: int = 1_700_000_000_000):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> int:
        self.now += ms
        return self.now


class ListResultsStore:
    def __init__(self):
        self.results = []

    def save(self, result):
        self.results.append(result)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return ListResultsStore()


@pytest.fixture
def controller(clock, store):
    ctrl = MeasurementSessionController(results_store=store, clock=clock, session_id="test-session")
    ctrl.start()
    return ctrl
