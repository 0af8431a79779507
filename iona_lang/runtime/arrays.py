"""
Growable arrays (reference semantics of every generated `<Element>Array`).

Array[T] models the C layout `{T* data, size_t len, size_t capacity}` with an
explicit slot store, so growth is observable and follows the runtime rule
new capacity = max(capacity * 2, required) instead of Python's list growth.

Elements without value semantics need hooks: `copy` is used wherever the C
code calls `<elem>_clone` (get, slice, append, copy) and `destroy` wherever it
calls the element's drop symbol (set overwrites, free).
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Generic, Iterable, Iterator, List, Optional, TypeVar

from iona_lang.internals import errors as er
from iona_lang.runtime.strings import String, clamp_range

T = TypeVar("T")

ARRAY_CONTAINER = "Array"
INITIAL_CAPACITY = 8


@dataclass(frozen=True)
class ElementHooks(Generic[T]):
    """Per-element-type behaviour for non-trivial elements."""
    copy: Optional[Callable[[T], T]] = None
    destroy: Optional[Callable[[T], None]] = None
    compare: Optional[Callable[[T, T], int]] = None


TRIVIAL = ElementHooks()
STRING_HOOKS: ElementHooks[String] = ElementHooks(
    copy=String.copy, destroy=String.free, compare=String.compare,
)


def _default_compare(a, b) -> int:
    return (a > b) - (a < b)


class Array(Generic[T]):
    """Exclusively owned growable array."""

    __slots__ = ("_slots", "_len", "hooks")

    def __init__(self, capacity: int = INITIAL_CAPACITY, hooks: ElementHooks[T] = TRIVIAL) -> None:
        self._slots: List[Optional[T]] = _allocate(max(capacity, 0))
        self._len = 0
        self.hooks = hooks

    @classmethod
    def new(cls, hooks: ElementHooks[T] = TRIVIAL) -> Array[T]:
        return cls(INITIAL_CAPACITY, hooks)

    @classmethod
    def with_capacity(cls, capacity: int, hooks: ElementHooks[T] = TRIVIAL) -> Array[T]:
        return cls(capacity, hooks)

    @classmethod
    def from_iterable(cls, items: Iterable[T], hooks: ElementHooks[T] = TRIVIAL) -> Array[T]:
        """Construct from contents; the array takes ownership of the items."""
        items = list(items)
        arr = cls(len(items), hooks)
        arr._slots[:len(items)] = items
        arr._len = len(items)
        return arr

    @property
    def len(self) -> int:
        return self._len

    @property
    def capacity(self) -> int:
        return len(self._slots)

    def __len__(self) -> int:
        return self._len

    def __iter__(self) -> Iterator[T]:
        for i in range(self._len):
            yield self._slots[i]

    def _copy_elem(self, elem: T) -> T:
        return self.hooks.copy(elem) if self.hooks.copy else elem

    def free(self) -> None:
        if self.hooks.destroy:
            for i in range(self._len):
                self.hooks.destroy(self._slots[i])
        self._slots = []
        self._len = 0

    def reserve(self, additional: int) -> None:
        required = self._len + additional
        if required <= self.capacity:
            return
        new_capacity = max(self.capacity * 2, required)
        new_slots = _allocate(new_capacity)
        new_slots[:self._len] = self._slots[:self._len]
        self._slots = new_slots

    def push(self, elem: T) -> None:
        self.reserve(1)
        self._slots[self._len] = elem
        self._len += 1

    def pop(self) -> T:
        """Move the last element out."""
        if self._len == 0:
            raise er.buffer_index_error("CE4003", buffer=ARRAY_CONTAINER)
        self._len -= 1
        elem = self._slots[self._len]
        self._slots[self._len] = None
        return elem

    def get(self, index: int) -> T:
        """Copy of the element at `index`."""
        self._check_index(index)
        return self._copy_elem(self._slots[index])

    def set(self, index: int, elem: T) -> None:
        """Replace the element at `index`, destroying the old one."""
        self._check_index(index)
        if self.hooks.destroy:
            self.hooks.destroy(self._slots[index])
        self._slots[index] = elem

    def slice(self, start: int, end: int) -> Array[T]:
        """Copy of elements [start, end), with bounds clamped instead of rejected."""
        start, end = clamp_range(start, end, self._len)
        result = Array(end - start, self.hooks)
        for i in range(start, end):
            result._slots[result._len] = self._copy_elem(self._slots[i])
            result._len += 1
        return result

    def append(self, other: Array[T]) -> None:
        """Append copies of every element of `other`."""
        # Snapshot first: `other` may be this very array
        incoming = [self._copy_elem(other._slots[i]) for i in range(other._len)]
        self.reserve(len(incoming))
        self._slots[self._len:self._len + len(incoming)] = incoming
        self._len += len(incoming)

    def compare(self, other: Array[T]) -> int:
        cmp = self.hooks.compare or _default_compare
        for i in range(min(self._len, other._len)):
            c = cmp(self._slots[i], other._slots[i])
            if c != 0:
                return -1 if c < 0 else 1
        return (self._len > other._len) - (self._len < other._len)

    def copy(self) -> Array[T]:
        return self.slice(0, self._len)

    def to_list(self) -> List[T]:
        return [self._slots[i] for i in range(self._len)]

    def _check_index(self, index: int) -> None:
        if not 0 <= index < self._len:
            raise er.buffer_index_error("CE4002", index=index, buffer=ARRAY_CONTAINER, length=self._len)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Array):
            return NotImplemented
        return self.compare(other) == 0

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Array({self.to_list()!r}, capacity={self.capacity})"


def _allocate(capacity: int) -> List[Optional[T]]:
    try:
        return [None] * capacity
    except MemoryError:
        er.raise_fatal("CE4001", capacity=capacity, buffer=ARRAY_CONTAINER)
