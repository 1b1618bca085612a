"""
stateflows - Derived State for Reactive UIs
===========================================

Combine independently changing state flows into one derived state flow, either
recomputed on every read or cached in a lifecycle scope, plus immutable
collection wrappers that make good state values.
"""

from .combine import (
    CombinedStateFlow,
    combine_state,
    combine_state_all,
    combine_states_all_in,
    combine_states_in,
)
from .exceptions import ScopeCancelledError, StateFlowError, TransformFailure
from .flow import (
    FlowScope,
    MutableStateFlow,
    ReadonlyStateFlow,
    SharedStateFlow,
    SharingMode,
    SharingStarted,
    StateFlow,
    StateFlowLike,
    state_in,
)
from .immutable import (
    ImmutableList,
    ImmutableSet,
    empty_immutable_list,
    empty_immutable_set,
    immutable_list_of,
    immutable_set_of,
    to_immutable_list,
    to_immutable_set,
)

__version__ = "0.1.0"

__all__ = [
    # State containers
    "StateFlow",
    "StateFlowLike",
    "MutableStateFlow",
    "ReadonlyStateFlow",
    "SharedStateFlow",
    # Lifecycle and sharing
    "FlowScope",
    "SharingMode",
    "SharingStarted",
    "state_in",
    # Combinators
    "CombinedStateFlow",
    "combine_state",
    "combine_state_all",
    "combine_states_in",
    "combine_states_all_in",
    # Immutable collections
    "ImmutableList",
    "ImmutableSet",
    "to_immutable_list",
    "empty_immutable_list",
    "immutable_list_of",
    "to_immutable_set",
    "empty_immutable_set",
    "immutable_set_of",
    # Exceptions
    "StateFlowError",
    "TransformFailure",
    "ScopeCancelledError",
]
