"""Node and edge store for the spatial waypoint graph."""

import logging
from dataclasses import dataclass, field
from typing import Iterator, Optional

from src.waypoints.errors import UnknownNode
from src.waypoints.provider import SpatialProvider, Vector3, distance

logger = logging.getLogger(__name__)


@dataclass
class Node:
    """A waypoint. Its position lives in the Spatial Provider."""

    id: int
    adjacency: set[int] = field(default_factory=set)
    rendered: bool = False  # Set by the render collaborator only


class WaypointGraph:
    """
    Undirected waypoint graph with Euclidean edge weights.

    Nodes are kept in an arena: a slot list plus an id -> slot index. Removing
    a node vacates its slot instead of compacting the list, and ids come from a
    counter that never goes backwards, so an id held by an adjacency set or a
    name binding can never silently start pointing at another waypoint.

    Args:
        provider: Spatial Provider that owns node positions

    Example:
        graph = WaypointGraph(AnchorSpatialProvider())
        a = graph.add_node((0.0, 0.0, 0.0))
        b = graph.add_node((3.0, 0.0, 0.0))
        graph.add_edge(a, b)
        graph.edge_weight(a, b)  # 3.0
    """

    def __init__(self, provider: SpatialProvider) -> None:
        self.provider = provider
        self._slots: list[Optional[Node]] = []
        self._slot_of: dict[int, int] = {}
        self._next_id = 0

    def __len__(self) -> int:
        return len(self._slot_of)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._slot_of

    def node(self, node_id: int) -> Node:
        """Return the live node for node_id, raising UnknownNode if absent."""
        slot = self._slot_of.get(node_id)
        if slot is None:
            raise UnknownNode(node_id)
        node = self._slots[slot]
        if node is None:
            raise RuntimeError(f"Slot {slot} for node {node_id} is vacant")
        return node

    def nodes(self) -> list[int]:
        """Live node ids in ascending order."""
        return sorted(self._slot_of)

    def edges(self) -> Iterator[tuple[int, int]]:
        """Yield each edge once as (a, b) with a < b."""
        for node_id in self.nodes():
            for neighbor in sorted(self.node(node_id).adjacency):
                if node_id < neighbor:
                    yield node_id, neighbor

    def add_node(self, position: Vector3) -> int:
        node_id = self._next_id
        self.provider.add_anchor(node_id, position)
        self._next_id += 1
        self._slot_of[node_id] = len(self._slots)
        self._slots.append(Node(id=node_id))
        logger.debug(f"Added node {node_id} at {position}")
        return node_id

    def remove_node(self, node_id: int) -> None:
        node = self.node(node_id)
        for neighbor in node.adjacency:
            self.node(neighbor).adjacency.discard(node_id)
        self._slots[self._slot_of.pop(node_id)] = None
        self.provider.remove_anchor(node_id)
        logger.debug(f"Removed node {node_id} and {len(node.adjacency)} edges")

    def add_edge(self, a: int, b: int) -> None:
        node_a, node_b = self.node(a), self.node(b)
        if a == b:
            logger.debug(f"Ignoring self-loop on node {a}")
            return
        if b in node_a.adjacency:
            return
        node_a.adjacency.add(b)
        node_b.adjacency.add(a)
        logger.debug(f"Added edge {a}-{b}")

    def remove_edge(self, a: int, b: int) -> None:
        node_a, node_b = self.node(a), self.node(b)
        if b not in node_a.adjacency:
            return
        node_a.adjacency.discard(b)
        node_b.adjacency.discard(a)
        logger.debug(f"Removed edge {a}-{b}")

    def position(self, node_id: int) -> Vector3:
        """Current position of a node, read live from the provider."""
        self.node(node_id)
        return self.provider.current_position(node_id)

    def neighbors(self, node_id: int) -> list[int]:
        return sorted(self.node(node_id).adjacency)

    def edge_weight(self, a: int, b: int) -> float:
        """Euclidean distance between the current positions of a and b."""
        return distance(self.position(a), self.position(b))

    def nearest_node(self, point: Vector3, max_distance: Optional[float]) -> Optional[int]:
        """
        Find the live node closest to point.

        Args:
            point: Query position
            max_distance: Largest accepted distance, or None for unbounded

        Returns:
            The closest node id (lowest id on ties), or None if the graph is
            empty or the closest node is farther than max_distance
        """
        best_id: Optional[int] = None
        best_distance = 0.0
        for node_id in self.nodes():
            d = distance(point, self.position(node_id))
            if best_id is None or d < best_distance:
                best_id, best_distance = node_id, d

        if best_id is None:
            return None
        if max_distance is not None and best_distance > max_distance:
            logger.debug(f"Nearest node {best_id} is {best_distance:.3f} away (limit {max_distance})")
            return None
        return best_id

    def mark_rendered(self, node_id: int, rendered: bool = True) -> None:
        self.node(node_id).rendered = rendered

    def clear(self) -> None:
        """Drop every node and edge. The id counter keeps running."""
        self._slots.clear()
        self._slot_of.clear()
        self.provider.clear()
        logger.debug("Cleared waypoint graph")
