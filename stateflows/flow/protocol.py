"""
stateflows StateFlow Protocol - Read-Only State Container Interface
===================================================================

This module defines the interface every state container implements: a value
that can be read synchronously at any time, plus a subscription that delivers
the current value first and then every distinct change.

State flows are ``reactivex`` observables, so they compose with every RxPY
operator. Two shapes are provided:

- ``StateFlowLike`` - structural protocol for anything with a ``value`` and a
  ``subscribe`` method (a ``reactivex.subject.BehaviorSubject`` qualifies)
- ``StateFlow`` - abstract base class for the containers in this package

Key Features:
- Synchronous, never-blocking ``value`` reads
- Current value replayed to each new subscriber
- Works anywhere a ``reactivex.Observable`` is accepted
"""

from abc import abstractmethod
from typing import Any, Callable, List, Optional, Protocol, TypeVar, runtime_checkable

from reactivex import Observable, abc

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)

# ============================================================================
# STRUCTURAL PROTOCOL
# ============================================================================


@runtime_checkable
class StateFlowLike(Protocol[T_co]):
    """
    Protocol for state containers accepted by the combinators.

    Example:
        ```python
        from reactivex.subject import BehaviorSubject

        def describe(flow: StateFlowLike[int]) -> str:
            return f"current={flow.value}"

        describe(BehaviorSubject(3))  # 'current=3'
        ```
    """

    @property
    def value(self) -> T_co:
        """The current value."""
        ...

    def subscribe(
        self,
        on_next: Optional[Any] = None,
        on_error: Optional[Callable[[Exception], None]] = None,
        on_completed: Optional[Callable[[], None]] = None,
        *,
        scheduler: Optional[abc.SchedulerBase] = None,
    ) -> abc.DisposableBase:
        """Subscribe to value changes, starting with the current value."""
        ...


# ============================================================================
# ABSTRACT BASE
# ============================================================================


class StateFlow(Observable[T]):
    """
    Abstract read-only state container.

    Subclasses provide ``value`` and ``_subscribe_core``. Subscribers receive
    the current value on subscription and every distinct change afterwards.
    """

    @property
    @abstractmethod
    def value(self) -> T:
        """The current value. Never blocks."""

    @property
    def replay_cache(self) -> List[T]:
        """Values replayed to a new subscriber: always just the current one."""
        return [self.value]
