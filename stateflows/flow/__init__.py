"""
stateflows.flow - State Containers over reactivex
=================================================

The minimal state-flow runtime the combinators are written against:
read-only and mutable state containers, a lifecycle scope, and the
share-and-cache operator with its start/stop policies.
"""

from .protocol import StateFlow, StateFlowLike
from .scope import FlowScope
from .sharing import SharedStateFlow, SharingMode, SharingStarted, state_in
from .state import MutableStateFlow, ReadonlyStateFlow

__all__ = [
    "StateFlow",
    "StateFlowLike",
    "MutableStateFlow",
    "ReadonlyStateFlow",
    "FlowScope",
    "SharingMode",
    "SharingStarted",
    "SharedStateFlow",
    "state_in",
]
