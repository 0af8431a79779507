"""
Growable byte strings (reference implementation of `runtime/c/strings.h`).

A String owns a fixed-size backing store of `capacity` bytes. `len` bytes are
in use and one more byte always holds the NUL terminator, so a live String
has `capacity >= len + 1`. Growth follows the runtime's amortized doubling
rule: new capacity = max(capacity * 2, len + additional + 1).
"""

from __future__ import annotations
from typing import Optional

from iona_lang.internals import errors as er

STRING_CONTAINER = "String"


class String:
    """Exclusively owned, growable byte string."""

    __slots__ = ("_data", "_len")

    def __init__(self, capacity: int = 1) -> None:
        # Room for the terminator is always kept
        capacity = max(capacity, 1)
        self._data = _allocate(capacity)
        self._len = 0

    @classmethod
    def with_capacity(cls, capacity: int) -> String:
        return cls(capacity)

    @classmethod
    def from_bytes(cls, data: bytes) -> String:
        s = cls(len(data) + 1)
        s._data[:len(data)] = data
        s._len = len(data)
        return s

    @classmethod
    def from_str(cls, text: str) -> String:
        return cls.from_bytes(text.encode("utf-8"))

    @property
    def len(self) -> int:
        return self._len

    @property
    def capacity(self) -> int:
        return len(self._data)

    def __len__(self) -> int:
        return self._len

    def free(self) -> None:
        self._data = bytearray()
        self._len = 0

    def _ensure_capacity(self, additional: int) -> None:
        required = self._len + additional + 1
        if required <= self.capacity:
            return
        new_capacity = max(self.capacity * 2, required)
        new_data = _allocate(new_capacity)
        new_data[:self._len] = self._data[:self._len]
        self._data = new_data

    def append(self, other: String) -> None:
        # Copy first: `other` may be this very string
        chunk = bytes(other._data[:other._len])
        self._ensure_capacity(len(chunk))
        self._data[self._len:self._len + len(chunk)] = chunk
        self._len += len(chunk)
        self._data[self._len] = 0

    def slice(self, start: int, end: int) -> String:
        """Copy of bytes [start, end), with bounds clamped instead of rejected."""
        start, end = clamp_range(start, end, self._len)
        return String.from_bytes(bytes(self._data[start:end]))

    def char_at(self, index: int) -> int:
        if not 0 <= index < self._len:
            raise er.buffer_index_error("CE4002", index=index, buffer=STRING_CONTAINER, length=self._len)
        return self._data[index]

    def set_char(self, index: int, value: int) -> None:
        if not 0 <= index < self._len:
            raise er.buffer_index_error("CE4002", index=index, buffer=STRING_CONTAINER, length=self._len)
        if not 0 <= value <= 0xFF:
            raise ValueError(f"byte value {value} out of range 0..255")
        self._data[index] = value

    def compare(self, other: String) -> int:
        """memcmp over the common prefix, then shorter-is-less. Returns -1, 0 or 1."""
        a = bytes(self._data[:self._len])
        b = bytes(other._data[:other._len])
        return (a > b) - (a < b)

    def copy(self) -> String:
        return String.from_bytes(self.to_bytes())

    def to_bytes(self) -> bytes:
        return bytes(self._data[:self._len])

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, String):
            return NotImplemented
        return self.compare(other) == 0

    def __lt__(self, other: String) -> bool:
        return self.compare(other) < 0

    __hash__ = None  # type: ignore[assignment]

    def __str__(self) -> str:
        return self.to_bytes().decode("utf-8", errors="replace")

    def __repr__(self) -> str:
        return f"String({self.to_bytes()!r}, capacity={self.capacity})"


def clamp_range(start: int, end: int, length: int) -> tuple[int, int]:
    """Shared slice bounds policy: end into [0, length], start into [0, end]."""
    end = min(max(end, 0), length)
    start = min(max(start, 0), end)
    return start, end


def _allocate(capacity: int, buffer: Optional[str] = None) -> bytearray:
    try:
        return bytearray(capacity)
    except MemoryError:
        er.raise_fatal("CE4001", capacity=capacity, buffer=buffer or STRING_CONTAINER)
