"""Pytest configuration and fixtures."""
import sys
from pathlib import Path

import pytest

# Ensure project root is on path when running pytest from repo root or tests/
root = Path(__file__).resolve().parent.parent
if str(root) not in sys.path:
    sys.path.insert(0, str(root))

from reqstats.monitoring import Collector  # noqa: E402


class FakeClock:
    """Manually advanced stand-in for time.monotonic."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def collector(clock):
    """Collector on a fake clock; the reset thread is not started."""
    c = Collector(clock=clock)
    yield c
    c.stop()
