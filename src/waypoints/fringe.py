"""Insert-only priority fringe for Dijkstra with lazy decrease-key."""

import bisect
from typing import NamedTuple, Optional

from src.waypoints.errors import EmptyFringe


class FringeEntry(NamedTuple):
    """A tentative path cost to reach node_id through predecessor."""

    node_id: int
    distance: float
    predecessor: Optional[int]


class OrderedFringe:
    """
    Entries kept sorted ascending by tentative distance.

    Relaxation never updates an entry in place: a better distance is pushed as
    a new entry and the stale one is discarded by the consumer when popped.
    Entries with equal distance pop in insertion order.
    """

    def __init__(self) -> None:
        self._entries: list[FringeEntry] = []
        self._keys: list[float] = []

    def insert(self, entry: FringeEntry) -> None:
        # bisect_right lands after equal keys, which keeps ties first-in first-out
        index = bisect.bisect_right(self._keys, entry.distance)
        self._keys.insert(index, entry.distance)
        self._entries.insert(index, entry)

    def pop_min(self) -> FringeEntry:
        if not self._entries:
            raise EmptyFringe("pop_min() on an empty fringe")
        self._keys.pop(0)
        return self._entries.pop(0)

    def size(self) -> int:
        return len(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)
