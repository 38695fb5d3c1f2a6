"""A dictionary whose changes can be rolled back to an earlier point."""

from __future__ import annotations

from collections.abc import Hashable, Iterable, Iterator
from types import MappingProxyType
from typing import Any, Generic, Mapping, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

_MISSING: Any = object()


def sorted_items(items: Iterable[Any]) -> list[Any]:
    """Collect ``items`` into a sorted list."""
    return sorted(items)


class UnwindMap(Generic[K, V]):
    """Mapping that records every insertion so it can be undone later.

    ``unwind_point`` marks the current state, ``unwind`` restores it and
    ``make_permanent`` forgets the recorded history.
    """

    def __init__(self) -> None:
        self._data: dict[K, V] = {}
        self._changes: list[tuple[K, Any]] = []

    @property
    def mapping(self) -> Mapping[K, V]:
        """A read-only view of the current contents."""
        return MappingProxyType(self._data)

    def get(self, key: K) -> V | None:
        """Return the value bound to ``key``, or None when unbound."""
        return self._data.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __getitem__(self, key: K) -> V:
        return self._data[key]

    def __len__(self) -> int:
        return len(self._data)

    def __iter__(self) -> Iterator[K]:
        return iter(self._data)

    def insert(self, key: K, value: V) -> None:
        """Bind ``key`` to ``value``, remembering any previous binding."""
        old = self._data.get(key, _MISSING)
        self._data[key] = value
        self._changes.append((key, old))

    def unwind_point(self) -> int:
        """Return a marker for the current state."""
        return len(self._changes)

    def unwind(self, point: int) -> None:
        """Undo every insertion made after ``point`` was taken."""
        if not 0 <= point <= len(self._changes):
            raise ValueError(f"unwind point {point} is not reachable")
        while len(self._changes) > point:
            key, old = self._changes.pop()
            if old is _MISSING:
                self._data.pop(key, None)
            else:
                self._data[key] = old

    def make_permanent(self, point: int) -> None:
        """Forget the change history; only allowed from the initial point."""
        if point != 0:
            raise ValueError("only the initial unwind point can be made permanent")
        self._changes.clear()