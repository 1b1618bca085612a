"""
stateflows Immutable Collections - Stable Values for State Flows
================================================================

Read-only list and set wrappers with value-based equality and hashing.

State flows conflate updates with ``==``, so values stored in them should
compare by content and never change after being stored. These wrappers copy
their input on construction, so mutating the original collection later has
no effect on the wrapper.

Example:
    ```python
    tags = MutableStateFlow(empty_immutable_set())
    tags.value = immutable_set_of("a", "b")
    tags.value = to_immutable_set(["b", "a"])  # equal, conflated
    ```
"""

from collections.abc import Iterable, Iterator, Sequence, Set
from typing import Any, Generic, TypeVar, overload

E = TypeVar("E")


class ImmutableList(Sequence, Generic[E]):
    """
    A read-only list.

    Only equal to another ``ImmutableList`` with the same elements in the
    same order.
    """

    __slots__ = ("_items",)

    def __init__(self, elements: Iterable[E] = ()) -> None:
        self._items = tuple(elements)

    @overload
    def __getitem__(self, index: int) -> E: ...

    @overload
    def __getitem__(self, index: slice) -> "ImmutableList[E]": ...

    def __getitem__(self, index):
        if isinstance(index, slice):
            return ImmutableList(self._items[index])
        return self._items[index]

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[E]:
        return iter(self._items)

    def __contains__(self, item: Any) -> bool:
        return item in self._items

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if not isinstance(other, ImmutableList):
            return False
        return self._items == other._items

    def __hash__(self) -> int:
        return hash(self._items)

    def __repr__(self) -> str:
        return repr(list(self._items))

    def __reduce__(self):
        return (ImmutableList, (self._items,))


class ImmutableSet(Set, Generic[E]):
    """
    A read-only set.

    Only equal to another ``ImmutableSet`` with the same elements.
    """

    __slots__ = ("_items",)

    def __init__(self, elements: Iterable[E] = ()) -> None:
        self._items = frozenset(elements)

    @classmethod
    def _from_iterable(cls, iterable: Iterable[E]) -> "ImmutableSet[E]":
        return cls(iterable)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[E]:
        return iter(self._items)

    def __contains__(self, item: Any) -> bool:
        return item in self._items

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if not isinstance(other, ImmutableSet):
            return False
        return self._items == other._items

    def __hash__(self) -> int:
        return hash(self._items)

    def __repr__(self) -> str:
        if not self._items:
            return "set()"
        return "{" + ", ".join(repr(item) for item in self._items) + "}"

    def __reduce__(self):
        return (ImmutableSet, (self._items,))


# ============================================================================
# FACTORIES
# ============================================================================


def to_immutable_list(elements: Iterable[E]) -> ImmutableList[E]:
    return ImmutableList(elements)


def empty_immutable_list() -> ImmutableList[Any]:
    return ImmutableList()


def immutable_list_of(*elements: E) -> ImmutableList[E]:
    return ImmutableList(elements)


def to_immutable_set(elements: Iterable[E]) -> ImmutableSet[E]:
    return ImmutableSet(elements)


def empty_immutable_set() -> ImmutableSet[Any]:
    return ImmutableSet()


def immutable_set_of(*elements: E) -> ImmutableSet[E]:
    return ImmutableSet(elements)
