"""
stateflows Scoped Combinators - Derived State Cached in a Scope
===============================================================

Same merge as ``combine_state``, but materialized into a caching
``SharedStateFlow`` owned by a ``FlowScope``. The initial value is computed
eagerly at call time, so a failing transform fails the call itself.
"""

from typing import Any, Callable, Iterable, List, TypeVar, overload

from ..flow.protocol import StateFlow, StateFlowLike
from ..flow.scope import FlowScope
from ..flow.sharing import SharingStarted, state_in
from .combined import (
    check_sources,
    combine_latest,
    current_values,
    list_transform,
    spread_transform,
)

T = TypeVar("T")
T1 = TypeVar("T1")
T2 = TypeVar("T2")
T3 = TypeVar("T3")
T4 = TypeVar("T4")
T5 = TypeVar("T5")
R = TypeVar("R")


@overload
def combine_states_in(
    flow1: StateFlowLike[T1],
    flow2: StateFlowLike[T2],
    *,
    scope: FlowScope,
    started: SharingStarted,
    transform: Callable[[T1, T2], R],
) -> StateFlow[R]: ...


@overload
def combine_states_in(
    flow1: StateFlowLike[T1],
    flow2: StateFlowLike[T2],
    flow3: StateFlowLike[T3],
    *,
    scope: FlowScope,
    started: SharingStarted,
    transform: Callable[[T1, T2, T3], R],
) -> StateFlow[R]: ...


@overload
def combine_states_in(
    flow1: StateFlowLike[T1],
    flow2: StateFlowLike[T2],
    flow3: StateFlowLike[T3],
    flow4: StateFlowLike[T4],
    *,
    scope: FlowScope,
    started: SharingStarted,
    transform: Callable[[T1, T2, T3, T4], R],
) -> StateFlow[R]: ...


@overload
def combine_states_in(
    flow1: StateFlowLike[T1],
    flow2: StateFlowLike[T2],
    flow3: StateFlowLike[T3],
    flow4: StateFlowLike[T4],
    flow5: StateFlowLike[T5],
    *,
    scope: FlowScope,
    started: SharingStarted,
    transform: Callable[[T1, T2, T3, T4, T5], R],
) -> StateFlow[R]: ...


def combine_states_in(
    *flows: StateFlowLike[Any],
    scope: FlowScope,
    started: SharingStarted,
    transform: Callable[..., R],
) -> StateFlow[R]:
    """
    Combine several state flows into a cached state flow owned by ``scope``.

    Args:
        *flows: Two or more state flows to combine.
        scope: Owner of the merge subscription.
        started: When the merge subscription runs.
        transform: Pure function of the flows' values.

    Returns:
        A state flow starting at ``transform(*current values)``.

    Raises:
        TransformFailure: If the initial evaluation fails.
        ScopeCancelledError: If ``scope`` is already cancelled.
    """
    flows = check_sources(flows, 2)
    evaluate = spread_transform(transform)
    return state_in(
        combine_latest(flows, evaluate),
        scope=scope,
        started=started,
        initial_value=evaluate(current_values(flows)),
    )


def combine_states_all_in(
    flows: Iterable[StateFlowLike[T]],
    *,
    scope: FlowScope,
    started: SharingStarted,
    transform: Callable[[List[T]], R],
) -> StateFlow[R]:
    """
    Combine same-typed state flows into a cached state flow owned by ``scope``.

    ``transform`` receives a list with one value per flow, in order.
    """
    flows = check_sources(flows, 1)
    evaluate = list_transform(transform)
    return state_in(
        combine_latest(flows, evaluate),
        scope=scope,
        started=started,
        initial_value=evaluate(current_values(flows)),
    )
