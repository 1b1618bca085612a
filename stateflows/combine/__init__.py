"""
stateflows.combine - Derived State Combinators
==============================================

Unscoped combinators recompute on every read; scoped combinators cache into a
state flow owned by a ``FlowScope``.
"""

from .combined import CombinedStateFlow, combine_state, combine_state_all
from .scoped import combine_states_all_in, combine_states_in

__all__ = [
    "CombinedStateFlow",
    "combine_state",
    "combine_state_all",
    "combine_states_in",
    "combine_states_all_in",
]
