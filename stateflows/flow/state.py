"""
stateflows MutableStateFlow - Writable State Container
======================================================

This module provides the source container the combinators observe: a value
holder that conflates equal updates and pushes every distinct change to its
subscribers.

Each subscriber owns a slot remembering the last value it was given, so a
subscriber never sees the same value twice in a row, even when an update
races with its initial replay.

Key Features:
- Thread-safe reads and writes
- Equality-based conflation (``==``)
- ``subscription_count`` flow for subscriber-driven sharing
- Read-only views via ``as_state_flow()``
"""

import threading
from typing import Any, Callable, List, Optional, TypeVar

from reactivex import abc
from reactivex.disposable import Disposable

from .protocol import StateFlow

T = TypeVar("T")


class _Slot:
    """A subscriber and the last value delivered to it."""

    __slots__ = ("observer", "_has_value", "_last")

    def __init__(self, observer: abc.ObserverBase[Any]) -> None:
        self.observer = observer
        self._has_value = False
        self._last: Any = None

    def emit(self, value: Any) -> None:
        if self._has_value and self._last == value:
            return
        self._has_value = True
        self._last = value
        self.observer.on_next(value)


class MutableStateFlow(StateFlow[T]):
    """
    A state container whose value can be set by its owner.

    Setting a value equal to the current one is a no-op. Observers are
    snapshotted under the lock and notified outside of it.

    Example:
        ```python
        counter = MutableStateFlow(0, key="counter")
        seen = []
        counter.subscribe(seen.append)

        counter.value = 1
        counter.value = 1  # conflated
        counter.update(lambda n: n + 1)

        print(seen)  # [0, 1, 2]
        ```
    """

    def __init__(self, initial_value: T, key: Optional[str] = None) -> None:
        super().__init__()
        self._key = key or "<unnamed>"
        self._value = initial_value
        self._slots: List[_Slot] = []
        self._lock = threading.RLock()
        self._subscription_count: Optional["MutableStateFlow[int]"] = None
        self._error: Optional[Exception] = None

    @property
    def key(self) -> str:
        return self._key

    @property
    def value(self) -> T:
        with self._lock:
            return self._value

    @value.setter
    def value(self, value: T) -> None:
        self._assign(value)

    def set(self, value: T) -> "MutableStateFlow[T]":
        self._assign(value)
        return self

    def compare_and_set(self, expect: T, update: T) -> bool:
        """
        Atomically replace the value if it currently equals ``expect``.

        Returns:
            True if the value now equals ``update``.
        """
        with self._lock:
            if self._value != expect:
                return False
            if self._value == update:
                return True
            self._value = update
            slots = tuple(self._slots)
        self._deliver(slots)
        return True

    def update(self, function: Callable[[T], T]) -> T:
        """
        Atomically apply ``function`` to the current value.

        ``function`` may run more than once under contention.

        Returns:
            The new value.
        """
        while True:
            current = self.value
            new_value = function(current)
            if self.compare_and_set(current, new_value):
                return new_value

    @property
    def subscription_count(self) -> StateFlow[int]:
        """The number of active subscribers, as a state flow."""
        with self._lock:
            if self._subscription_count is None:
                self._subscription_count = MutableStateFlow(
                    len(self._slots), key=f"{self._key}.subscription_count"
                )
            return self._subscription_count.as_state_flow()

    def as_state_flow(self) -> StateFlow[T]:
        """Return a read-only view of this flow."""
        return ReadonlyStateFlow(self)

    def _assign(self, value: T) -> None:
        with self._lock:
            if self._value == value:
                return
            self._value = value
            slots = tuple(self._slots)
        self._deliver(slots)

    def _deliver(self, slots) -> None:
        # Read per slot so no slot ends on a value older than the current one.
        for slot in slots:
            slot.emit(self.value)

    def _publish_count(self) -> None:
        with self._lock:
            counter = self._subscription_count
            count = len(self._slots)
        if counter is not None:
            counter.value = count

    def _terminate(self, error: Exception) -> None:
        """Fail all current and future subscribers, keeping the last value."""
        with self._lock:
            if self._error is not None:
                return
            self._error = error
            slots = tuple(self._slots)
            self._slots.clear()
        for slot in slots:
            slot.observer.on_error(error)
        self._publish_count()

    def _subscribe_core(
        self,
        observer: abc.ObserverBase[T],
        scheduler: Optional[abc.SchedulerBase] = None,
    ) -> abc.DisposableBase:
        slot = _Slot(observer)
        with self._lock:
            error = self._error
            if error is None:
                self._slots.append(slot)
        if error is not None:
            observer.on_error(error)
            return Disposable()

        # Count first: a sharing flow may start upstream work that changes the value.
        self._publish_count()
        slot.emit(self.value)

        def dispose() -> None:
            with self._lock:
                try:
                    self._slots.remove(slot)
                except ValueError:
                    return
            self._publish_count()

        return Disposable(dispose)

    def __repr__(self) -> str:
        return f"MutableStateFlow({self._key!r}, {self.value!r})"


class ReadonlyStateFlow(StateFlow[T]):
    """A read-only view that forwards to another state flow."""

    def __init__(self, source: StateFlow[T]) -> None:
        super().__init__()
        self._source = source

    @property
    def value(self) -> T:
        return self._source.value

    def _subscribe_core(
        self,
        observer: abc.ObserverBase[T],
        scheduler: Optional[abc.SchedulerBase] = None,
    ) -> abc.DisposableBase:
        return self._source.subscribe(observer, scheduler=scheduler)

    def __repr__(self) -> str:
        return f"ReadonlyStateFlow({self._source!r})"
