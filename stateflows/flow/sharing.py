"""
stateflows Sharing - Scope-Bound Caching State Containers
=========================================================

This module turns any upstream observable into a ``StateFlow`` with real
storage. The upstream subscription is owned by a ``FlowScope`` and started and
stopped according to a ``SharingStarted`` policy:

- ``SharingStarted.EAGERLY`` - subscribe immediately, stop only with the scope
- ``SharingStarted.LAZILY`` - subscribe on the first downstream subscriber,
  stop only with the scope
- ``SharingStarted.while_subscribed(stop_timeout)`` - subscribe while at
  least one downstream subscriber exists; after the last one leaves, stay
  subscribed for ``stop_timeout`` seconds so quick resubscriptions reuse the
  running upstream

The cached value survives stops and restarts. An upstream error freezes the
cached value and terminates every current and future subscriber.
"""

import logging
import threading
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from typing import Optional, TypeVar, Union

from reactivex import Observable, abc
from reactivex import operators as ops
from reactivex.disposable import Disposable, SingleAssignmentDisposable

from ..exceptions import ScopeCancelledError
from .protocol import StateFlow
from .scope import FlowScope
from .state import MutableStateFlow

T = TypeVar("T")

logger = logging.getLogger(__name__)

# ============================================================================
# SHARING POLICIES
# ============================================================================


class SharingMode(Enum):
    """When a shared flow keeps its upstream subscription alive."""

    EAGER = "eager"
    LAZY = "lazy"
    WHILE_SUBSCRIBED = "while_subscribed"


@dataclass(frozen=True)
class SharingStarted:
    """
    Policy controlling when sharing starts and stops.

    Use the ``EAGERLY`` and ``LAZILY`` constants or ``while_subscribed()``.
    """

    mode: SharingMode
    stop_timeout: float = 0.0

    def __post_init__(self) -> None:
        if self.stop_timeout < 0:
            raise ValueError(f"stop_timeout cannot be negative: {self.stop_timeout}")
        if self.mode is not SharingMode.WHILE_SUBSCRIBED and self.stop_timeout:
            raise ValueError(f"stop_timeout only applies to {SharingMode.WHILE_SUBSCRIBED}")

    @classmethod
    def while_subscribed(
        cls, stop_timeout: Union[float, timedelta] = 0.0
    ) -> "SharingStarted":
        """
        Share while there are subscribers.

        Args:
            stop_timeout: Grace period in seconds (or a ``timedelta``) between
                the last subscriber leaving and the upstream being stopped.
        """
        if isinstance(stop_timeout, timedelta):
            stop_timeout = stop_timeout.total_seconds()
        return cls(SharingMode.WHILE_SUBSCRIBED, float(stop_timeout))

    def __str__(self) -> str:
        if self.mode is SharingMode.WHILE_SUBSCRIBED:
            return f"SharingStarted.while_subscribed({self.stop_timeout})"
        if self.mode is SharingMode.EAGER:
            return "SharingStarted.EAGERLY"
        return "SharingStarted.LAZILY"


SharingStarted.EAGERLY = SharingStarted(SharingMode.EAGER)  # type: ignore[attr-defined]
SharingStarted.LAZILY = SharingStarted(SharingMode.LAZY)  # type: ignore[attr-defined]

# ============================================================================
# SHARED STATE FLOW
# ============================================================================


class SharedStateFlow(StateFlow[T]):
    """
    A caching state flow fed by a scope-owned upstream subscription.

    Reads are O(1). Writes happen only from the upstream subscription.
    """

    def __init__(
        self,
        upstream: Observable[T],
        scope: FlowScope,
        started: SharingStarted,
        initial_value: T,
    ) -> None:
        super().__init__()
        self._upstream = upstream
        self._scope = scope
        self._started = started
        self._state = MutableStateFlow(initial_value, key="shared")
        self._lock = threading.RLock()
        self._active: Optional[SingleAssignmentDisposable] = None
        self._pending_stop: Optional[abc.DisposableBase] = None
        self._closed = False

        scope.add(Disposable(self._close))
        self._count_subscription = self._state.subscription_count.subscribe(
            self._on_subscription_count
        )
        if started.mode is SharingMode.EAGER:
            self._start()

    @property
    def value(self) -> T:
        return self._state.value

    @property
    def is_active(self) -> bool:
        """Whether the upstream subscription is currently running."""
        with self._lock:
            return self._active is not None

    # ------------------------------------------------------------------
    # Downstream
    # ------------------------------------------------------------------

    def _subscribe_core(
        self,
        observer: abc.ObserverBase[T],
        scheduler: Optional[abc.SchedulerBase] = None,
    ) -> abc.DisposableBase:
        return self._state.subscribe(observer, scheduler=scheduler)

    def _on_subscription_count(self, count: int) -> None:
        if count > 0:
            self._cancel_pending_stop()
            if self._started.mode is not SharingMode.EAGER:
                self._start()
            return

        if self._started.mode is not SharingMode.WHILE_SUBSCRIBED:
            return
        timeout = self._started.stop_timeout
        if timeout <= 0:
            self._stop()
            return

        with self._lock:
            if self._closed or self._active is None or self._pending_stop is not None:
                return
            self._pending_stop = self._scope.scheduler.schedule_relative(
                timeout, self._on_stop_timeout
            )

    def _on_stop_timeout(self, scheduler: abc.SchedulerBase, state=None) -> None:
        # Count check and detach in one critical section: a subscriber arriving
        # afterwards finds no active handle and restarts the upstream.
        with self._lock:
            self._pending_stop = None
            if self._state.subscription_count.value != 0:
                return
            handle, self._active = self._active, None
        self._dispose_upstream(handle)

    def _cancel_pending_stop(self) -> None:
        with self._lock:
            pending, self._pending_stop = self._pending_stop, None
        if pending is not None:
            pending.dispose()

    # ------------------------------------------------------------------
    # Upstream
    # ------------------------------------------------------------------

    def _start(self) -> None:
        with self._lock:
            if self._closed or self._active is not None:
                return
            handle = self._active = SingleAssignmentDisposable()

        logger.debug("Starting upstream of %r with %s", self, self._started)
        source = self._upstream
        if self._scope.dispatcher is not None:
            source = source.pipe(ops.observe_on(self._scope.dispatcher))
        handle.disposable = source.subscribe(
            on_next=self._on_upstream_value,
            on_error=self._on_upstream_error,
        )

    def _stop(self) -> None:
        with self._lock:
            handle, self._active = self._active, None
        self._dispose_upstream(handle)

    def _dispose_upstream(self, handle: Optional[abc.DisposableBase]) -> None:
        if handle is not None:
            logger.debug("Stopping upstream of %r", self)
            handle.dispose()

    def _on_upstream_value(self, value: T) -> None:
        with self._lock:
            if self._closed:
                return
            self._state.value = value

    def _on_upstream_error(self, error: Exception) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
        logger.debug("Freezing %r after upstream failure: %s", self, error)
        self._cancel_pending_stop()
        self._stop()
        self._count_subscription.dispose()
        self._state._terminate(error)

    def _close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self._cancel_pending_stop()
        self._stop()
        self._count_subscription.dispose()

    def __repr__(self) -> str:
        return f"SharedStateFlow({self.value!r}, {self._started})"


def state_in(
    upstream: Observable[T],
    scope: FlowScope,
    started: SharingStarted,
    initial_value: T,
) -> StateFlow[T]:
    """
    Cache an upstream observable into a state flow owned by ``scope``.

    Args:
        upstream: Source of values for the cache.
        scope: Owner of the upstream subscription.
        started: Policy deciding when the upstream subscription runs.
        initial_value: Value returned before the upstream first emits.

    Returns:
        A read-only, caching state flow.

    Raises:
        ScopeCancelledError: If ``scope`` is already cancelled.
        TypeError: If ``started`` is not a ``SharingStarted`` policy.
    """
    if not isinstance(started, SharingStarted):
        raise TypeError(f"Expected a SharingStarted policy, got {type(started).__name__}")
    if scope.is_cancelled:
        raise ScopeCancelledError(f"Cannot share in {scope!r}")
    return SharedStateFlow(upstream, scope, started, initial_value)
