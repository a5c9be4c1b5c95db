"""Shared fixtures for unit tests."""

import logging
from unittest.mock import Mock, patch

import pytest


class FakeClock:
    """Stands in for the ``time`` module inside xolib.waiter."""

    def __init__(self):
        self.now = 0.0

    def monotonic(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class FakeEvent:
    """Cancellation event whose ``wait`` advances the fake clock instead of sleeping."""

    def __init__(self, clock, cancel_on_wait=False):
        self.clock = clock
        self.cancel_on_wait = cancel_on_wait
        self.waits = []
        self._set = False

    def is_set(self):
        return self._set

    def set(self):
        self._set = True

    def wait(self, timeout=None):
        self.waits.append(timeout)
        if self.cancel_on_wait:
            self._set = True
            return True
        self.clock.advance(timeout)
        return self._set


@pytest.fixture
def clock():
    """Patch the waiter's clock with a controllable fake."""
    fake = FakeClock()
    with patch("xolib.waiter.time", fake):
        yield fake


@pytest.fixture
def event(clock):
    return FakeEvent(clock)


@pytest.fixture
def mock_logger():
    """Create a mock logger."""
    return Mock(spec=logging.Logger)
