"""
stateflows FlowScope - Lifecycle Owner for Shared State
=======================================================

A ``FlowScope`` owns the subscriptions and timers started on its behalf.
Cancelling the scope disposes all of them at once; anything registered after
cancellation is disposed immediately.

The optional ``dispatcher`` decides where upstream values are delivered to
scoped containers. Without one, delivery is synchronous. With one (for
example a ``reactivex.testing.TestScheduler``), delivery and sharing timers
run on that scheduler.
"""

import logging
from typing import Optional

from reactivex import abc
from reactivex.disposable import CompositeDisposable
from reactivex.scheduler import TimeoutScheduler

logger = logging.getLogger(__name__)


class FlowScope:
    """
    Cancellation-token-bearing owner of shared flow resources.

    Example:
        ```python
        with FlowScope(name="screen") as scope:
            total = combine_states_in(
                a, b, scope=scope, started=SharingStarted.EAGERLY,
                transform=lambda x, y: x + y,
            )
            ...
        # leaving the block cancels every subscription made in the scope
        ```
    """

    def __init__(
        self,
        dispatcher: Optional[abc.SchedulerBase] = None,
        name: Optional[str] = None,
    ) -> None:
        self._dispatcher = dispatcher
        self._name = name or "<scope>"
        self._resources = CompositeDisposable()

    @property
    def name(self) -> str:
        return self._name

    @property
    def dispatcher(self) -> Optional[abc.SchedulerBase]:
        """Scheduler for upstream delivery, or None for synchronous delivery."""
        return self._dispatcher

    @property
    def scheduler(self) -> abc.SchedulerBase:
        """Scheduler for timed work such as sharing stop timeouts."""
        if self._dispatcher is not None:
            return self._dispatcher
        return TimeoutScheduler.singleton()

    @property
    def is_cancelled(self) -> bool:
        return self._resources.is_disposed

    def add(self, resource: abc.DisposableBase) -> abc.DisposableBase:
        """
        Register a resource to be disposed when the scope is cancelled.

        Returns:
            The resource, for chaining.
        """
        self._resources.add(resource)
        return resource

    def remove(self, resource: abc.DisposableBase) -> None:
        """Dispose a resource early and stop tracking it."""
        self._resources.remove(resource)

    def cancel(self) -> None:
        """Dispose every registered resource. Safe to call repeatedly."""
        if self._resources.is_disposed:
            return
        logger.debug("Cancelling %r", self)
        self._resources.dispose()

    def __enter__(self) -> "FlowScope":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.cancel()
        return False

    def __repr__(self) -> str:
        state = "cancelled" if self.is_cancelled else "active"
        return f"FlowScope({self._name!r}, {state})"
