"""
stateflows CombinedStateFlow - Derived State Without Caching
============================================================

This module merges several live state flows into one derived state flow
whose value is ``transform(current values)``.

The read path and the subscription path are kept separate:

- Reading ``value`` asks every source for its value right now and applies the
  transform. Nothing is cached, so a read is never behind the sources, even
  when notifications are still in flight.
- Subscribing builds a fresh ``combine_latest`` pipeline for that subscriber
  alone. It is torn down when the subscriber disposes and is never shared.

Example:
    ```python
    a = MutableStateFlow(1)
    b = MutableStateFlow(10)
    total = combine_state(a, b, transform=lambda x, y: x + y)

    total.value   # 11
    a.value = 2
    total.value   # 12, no notification needed
    ```
"""

from typing import (
    Any,
    Callable,
    Iterable,
    List,
    Optional,
    Sequence,
    Tuple,
    TypeVar,
    overload,
)

import reactivex
from reactivex import Observable, abc
from reactivex import operators as ops

from ..exceptions import TransformFailure
from ..flow.protocol import StateFlow, StateFlowLike

T = TypeVar("T")
T1 = TypeVar("T1")
T2 = TypeVar("T2")
T3 = TypeVar("T3")
T4 = TypeVar("T4")
T5 = TypeVar("T5")
R = TypeVar("R")

Evaluator = Callable[[Sequence[Any]], R]

# ============================================================================
# TRANSFORM EVALUATION
# ============================================================================


def spread_transform(transform: Callable[..., R]) -> Evaluator[R]:
    """Evaluate ``transform(v1, ..., vn)``; failures become TransformFailure."""
    _check_callable(transform)

    def evaluate(values: Sequence[Any]) -> R:
        try:
            return transform(*values)
        except TransformFailure:
            raise
        except Exception as error:
            raise TransformFailure(values, error) from error

    return evaluate


def list_transform(transform: Callable[[List[Any]], R]) -> Evaluator[R]:
    """Evaluate ``transform([v1, ..., vn])``; failures become TransformFailure."""
    _check_callable(transform)

    def evaluate(values: Sequence[Any]) -> R:
        try:
            return transform(list(values))
        except TransformFailure:
            raise
        except Exception as error:
            raise TransformFailure(values, error) from error

    return evaluate


def _check_callable(transform: Any) -> None:
    if not callable(transform):
        raise TypeError(f"transform must be callable, got {type(transform).__name__}")


def current_values(flows: Sequence[StateFlowLike[Any]]) -> Tuple[Any, ...]:
    """Read every flow's value at this instant."""
    return tuple(flow.value for flow in flows)


def combine_latest(flows: Sequence[StateFlowLike[Any]], evaluate: Evaluator[R]) -> Observable[R]:
    """Re-evaluate whenever any flow emits, using the latest value of each."""
    return reactivex.combine_latest(*flows).pipe(ops.map(evaluate))


def check_sources(flows: Iterable[Any], minimum: int) -> Tuple[Any, ...]:
    flows = tuple(flows)
    if len(flows) < minimum:
        raise ValueError(f"At least {minimum} state flows must be combined, got {len(flows)}")
    return flows


# ============================================================================
# COMBINED STATE FLOW
# ============================================================================


class CombinedStateFlow(StateFlow[R]):
    """
    A state flow that keeps its notifications and its value separate.

    Args:
        flow: Notification pipeline, subscribed once per subscriber.
        get_value: Computes the current value on every read.
    """

    def __init__(self, flow: Observable[R], get_value: Callable[[], R]) -> None:
        super().__init__()
        self._flow = flow.pipe(ops.distinct_until_changed())
        self._get_value = get_value

    @property
    def value(self) -> R:
        return self._get_value()

    def _subscribe_core(
        self,
        observer: abc.ObserverBase[R],
        scheduler: Optional[abc.SchedulerBase] = None,
    ) -> abc.DisposableBase:
        return self._flow.subscribe(observer, scheduler=scheduler)

    def __repr__(self) -> str:
        return "CombinedStateFlow()"


# ============================================================================
# COMBINATORS
# ============================================================================


@overload
def combine_state(
    flow1: StateFlowLike[T1],
    flow2: StateFlowLike[T2],
    *,
    transform: Callable[[T1, T2], R],
) -> StateFlow[R]: ...


@overload
def combine_state(
    flow1: StateFlowLike[T1],
    flow2: StateFlowLike[T2],
    flow3: StateFlowLike[T3],
    *,
    transform: Callable[[T1, T2, T3], R],
) -> StateFlow[R]: ...


@overload
def combine_state(
    flow1: StateFlowLike[T1],
    flow2: StateFlowLike[T2],
    flow3: StateFlowLike[T3],
    flow4: StateFlowLike[T4],
    *,
    transform: Callable[[T1, T2, T3, T4], R],
) -> StateFlow[R]: ...


@overload
def combine_state(
    flow1: StateFlowLike[T1],
    flow2: StateFlowLike[T2],
    flow3: StateFlowLike[T3],
    flow4: StateFlowLike[T4],
    flow5: StateFlowLike[T5],
    *,
    transform: Callable[[T1, T2, T3, T4, T5], R],
) -> StateFlow[R]: ...


def combine_state(*flows: StateFlowLike[Any], transform: Callable[..., R]) -> StateFlow[R]:
    """
    Combine the current values of several state flows with ``transform``.

    Each position may hold a different value type; ``transform`` receives one
    positional argument per flow, in order.

    Args:
        *flows: Two or more state flows to combine.
        transform: Pure function of the flows' values.

    Returns:
        A state flow whose value is always ``transform(*current values)``.

    Raises:
        ValueError: If fewer than two flows are given.
        TypeError: If ``transform`` is not callable.
    """
    flows = check_sources(flows, 2)
    evaluate = spread_transform(transform)
    return CombinedStateFlow(
        flow=combine_latest(flows, evaluate),
        get_value=lambda: evaluate(current_values(flows)),
    )


def combine_state_all(
    flows: Iterable[StateFlowLike[T]],
    *,
    transform: Callable[[List[T]], R],
) -> StateFlow[R]:
    """
    Combine any number of state flows holding the same type of value.

    ``transform`` receives a single list with one value per flow, in order.

    Args:
        flows: One or more state flows to combine.
        transform: Pure function of the list of values.

    Returns:
        A state flow whose value is always ``transform([current values])``.

    Raises:
        ValueError: If ``flows`` is empty.
        TypeError: If ``transform`` is not callable.
    """
    flows = check_sources(flows, 1)
    evaluate = list_transform(transform)
    return CombinedStateFlow(
        flow=combine_latest(flows, evaluate),
        get_value=lambda: evaluate(current_values(flows)),
    )
