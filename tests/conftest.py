"""
Shared pytest fixtures and configuration for stateflows tests.
"""

from typing import Any, List

import pytest
from reactivex.testing import TestScheduler

from stateflows import FlowScope


class Recorder:
    """Observer that records everything it receives."""

    def __init__(self) -> None:
        self.values: List[Any] = []
        self.errors: List[Exception] = []
        self.completed = False

    def on_next(self, value: Any) -> None:
        self.values.append(value)

    def on_error(self, error: Exception) -> None:
        self.errors.append(error)

    def on_completed(self) -> None:
        self.completed = True

    @property
    def last(self) -> Any:
        return self.values[-1]


@pytest.fixture
def recorder():
    """Provide a factory for fresh Recorder instances."""
    return Recorder


@pytest.fixture
def scope():
    """Provide a synchronous scope, cancelled after the test."""
    flow_scope = FlowScope(name="test")
    yield flow_scope
    flow_scope.cancel()


@pytest.fixture
def scheduler():
    """Provide a virtual-time scheduler starting at 0.0."""
    return TestScheduler()


@pytest.fixture
def dispatched_scope(scheduler):
    """Provide a scope whose deliveries and timers run on the test scheduler."""
    flow_scope = FlowScope(dispatcher=scheduler, name="dispatched")
    yield flow_scope
    flow_scope.cancel()
