"""An ordered multimap: entries sorted by key, equal keys kept in insertion order."""

from __future__ import annotations

from bisect import bisect_left, bisect_right
from typing import Any, Iterator


class MultiMap:
    """A map from ordered keys to values that allows repeated keys.

    Iteration yields ``(key, value)`` pairs in ascending key order; entries
    with equal keys appear in the order they were inserted.
    """

    def __init__(self) -> None:
        self._keys: list[Any] = []
        self._values: list[Any] = []

    def insert(self, key: Any, value: Any) -> None:
        """Add an entry after any existing entries with the same key."""
        index = bisect_right(self._keys, key)
        self._keys.insert(index, key)
        self._values.insert(index, value)

    def _range(self, key: Any) -> tuple[int, int]:
        return bisect_left(self._keys, key), bisect_right(self._keys, key)

    def find(self, key: Any) -> Any:
        """The value of the first entry with ``key``; raises KeyError if none."""
        lo, hi = self._range(key)
        if lo == hi:
            raise KeyError(key)
        return self._values[lo]

    def values(self, key: Any) -> list[Any]:
        """The values of every entry with ``key``, in insertion order."""
        lo, hi = self._range(key)
        return self._values[lo:hi]

    def count(self, key: Any) -> int:
        """The number of entries with ``key``."""
        lo, hi = self._range(key)
        return hi - lo

    def remove(self, key: Any) -> bool:
        """Remove the first entry with ``key``; return whether one was removed."""
        lo, hi = self._range(key)
        if lo == hi:
            return False
        del self._keys[lo]
        del self._values[lo]
        return True

    def remove_item(self, key: Any, value: Any) -> bool:
        """Remove the first entry with ``key`` holding ``value``; return whether found."""
        lo, hi = self._range(key)
        for index in range(lo, hi):
            stored = self._values[index]
            if stored is value or stored == value:
                del self._keys[index]
                del self._values[index]
                return True
        return False

    def _check_not_empty(self) -> None:
        if not self._keys:
            raise IndexError("MultiMap is empty")

    def front(self) -> Any:
        """The value of the entry with the smallest key."""
        self._check_not_empty()
        return self._values[0]

    def back(self) -> Any:
        """The value of the entry with the largest key."""
        self._check_not_empty()
        return self._values[-1]

    def pop_front(self) -> tuple[Any, Any]:
        """Remove and return the first ``(key, value)`` entry."""
        self._check_not_empty()
        return self._keys.pop(0), self._values.pop(0)

    def pop_back(self) -> tuple[Any, Any]:
        """Remove and return the last ``(key, value)`` entry."""
        self._check_not_empty()
        return self._keys.pop(), self._values.pop()

    def clear(self) -> None:
        """Remove every entry."""
        self._keys.clear()
        self._values.clear()

    def __contains__(self, key: object) -> bool:
        lo, hi = self._range(key)
        return lo != hi

    def __len__(self) -> int:
        return len(self._keys)

    def __iter__(self) -> Iterator[tuple[Any, Any]]:
        return iter(list(zip(self._keys, self._values)))

    def __repr__(self) -> str:
        return f"MultiMap({list(self)!r})"