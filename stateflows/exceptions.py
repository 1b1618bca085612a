"""
stateflows Exceptions
=====================

Error types raised by state flows and the derived-state combinators.

Only transform evaluation can fail at runtime. A failing transform never
corrupts a container: unscoped reads are stateless, and scoped containers
freeze at their last successful value.
"""

from typing import Any, Sequence, Tuple

# ============================================================================
# EXCEPTIONS
# ============================================================================


class StateFlowError(Exception):
    """Base class for all stateflows errors."""

    pass


class TransformFailure(StateFlowError):
    """
    Raised when a caller-supplied transform fails during evaluation.

    The original exception is chained as ``__cause__``.

    Attributes:
        values: The source values the transform was evaluated with.
    """

    def __init__(self, values: Sequence[Any], error: BaseException) -> None:
        self.values: Tuple[Any, ...] = tuple(values)
        super().__init__(
            f"Transform failed for values {self.values!r}: "
            f"{type(error).__name__}: {error}"
        )


class ScopeCancelledError(StateFlowError):
    """Raised when sharing is requested in an already cancelled scope."""

    pass
