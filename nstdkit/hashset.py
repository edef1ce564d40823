"""A hash set that remembers the order in which its keys were inserted."""

from __future__ import annotations

from collections import OrderedDict
from typing import Any, Hashable, Iterable, Iterator


class HashSet:
    """A set of hashable keys kept in insertion order.

    Adding a key that is already present leaves it where it is. Two sets
    are equal only if they hold the same keys in the same order.
    """

    __hash__ = None  # type: ignore[assignment]

    def __init__(self, items: Iterable[Hashable] = ()) -> None:
        self._keys: OrderedDict[Hashable, None] = OrderedDict()
        self.extend(items)

    def append(self, key: Hashable) -> None:
        """Add ``key`` at the end unless it is already present."""
        if key not in self._keys:
            self._keys[key] = None

    def prepend(self, key: Hashable) -> None:
        """Add ``key`` at the front unless it is already present."""
        if key not in self._keys:
            self._keys[key] = None
            self._keys.move_to_end(key, last=False)

    def extend(self, other: Iterable[Hashable]) -> None:
        """Append every key of ``other`` in its order."""
        for key in list(other):
            self.append(key)

    def discard(self, key: Hashable) -> None:
        """Remove ``key`` if present."""
        self._keys.pop(key, None)

    def difference_update(self, other: Iterable[Hashable]) -> None:
        """Remove every key that ``other`` holds."""
        for key in list(other):
            self.discard(key)

    def front(self) -> Any:
        """The first key; raises IndexError when empty."""
        if not self._keys:
            raise IndexError("front of an empty HashSet")
        return next(iter(self._keys))

    def back(self) -> Any:
        """The last key; raises IndexError when empty."""
        if not self._keys:
            raise IndexError("back of an empty HashSet")
        return next(reversed(self._keys))

    def pop_front(self) -> Any:
        """Remove and return the first key; raises IndexError when empty."""
        if not self._keys:
            raise IndexError("pop from an empty HashSet")
        return self._keys.popitem(last=False)[0]

    def pop_back(self) -> Any:
        """Remove and return the last key; raises IndexError when empty."""
        if not self._keys:
            raise IndexError("pop from an empty HashSet")
        return self._keys.popitem(last=True)[0]

    def clear(self) -> None:
        """Remove every key."""
        self._keys.clear()

    def swap(self, other: "HashSet") -> None:
        """Exchange contents with ``other``."""
        self._keys, other._keys = other._keys, self._keys

    def __contains__(self, key: object) -> bool:
        return key in self._keys

    def __len__(self) -> int:
        return len(self._keys)

    def __iter__(self) -> Iterator[Any]:
        return iter(self._keys)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HashSet):
            return NotImplemented
        return len(self) == len(other) and list(self._keys) == list(other._keys)

    def __repr__(self) -> str:
        return f"HashSet({list(self._keys)!r})"