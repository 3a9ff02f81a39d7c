"""Compound graph edits that keep the graph and name directory consistent."""

import logging
from typing import Optional

from src.waypoints.errors import NoNodeNearby
from src.waypoints.graph import WaypointGraph
from src.waypoints.names import NameDirectory
from src.waypoints.provider import Vector3

logger = logging.getLogger(__name__)

# A tap closer than this (meters) to a waypoint counts as a tap on that waypoint
PROXIMITY_THRESHOLD = 0.5


class GraphEditor:
    """
    Applies user edits to a WaypointGraph and its NameDirectory.

    Every operation resolves and validates its inputs before touching any
    state, so a rejected gesture leaves both structures as they were.
    """

    def __init__(
        self,
        graph: WaypointGraph,
        names: NameDirectory,
        proximity_threshold: float = PROXIMITY_THRESHOLD,
    ) -> None:
        self.graph = graph
        self.names = names
        self.proximity_threshold = proximity_threshold

    def _resolve(self, point: Vector3, max_distance: Optional[float]) -> int:
        limit = self.proximity_threshold if max_distance is None else max_distance
        node_id = self.graph.nearest_node(point, limit)
        if node_id is None:
            raise NoNodeNearby(point, limit)
        return node_id

    def place_node(self, position: Vector3) -> int:
        node_id = self.graph.add_node(position)
        logger.info(f"Placed waypoint {node_id}")
        return node_id

    def connect_nearest(
        self,
        point_a: Vector3,
        point_b: Vector3,
        max_distance: Optional[float] = None,
    ) -> tuple[int, int]:
        """
        Connect the waypoints under two taps.

        Args:
            point_a: First tap position
            point_b: Second tap position
            max_distance: Override for the proximity threshold

        Returns:
            The (a, b) node ids that were connected

        Raises:
            NoNodeNearby: If either tap is too far from every waypoint
        """
        a = self._resolve(point_a, max_distance)
        b = self._resolve(point_b, max_distance)
        self.graph.add_edge(a, b)
        return a, b

    def disconnect_nearest(
        self,
        point_a: Vector3,
        point_b: Vector3,
        max_distance: Optional[float] = None,
    ) -> tuple[int, int]:
        """Remove the edge between the waypoints under two taps."""
        a = self._resolve(point_a, max_distance)
        b = self._resolve(point_b, max_distance)
        self.graph.remove_edge(a, b)
        return a, b

    def delete_nearest(self, point: Vector3, max_distance: Optional[float] = None) -> int:
        """Delete the waypoint under a tap, along with its edges and names."""
        node_id = self._resolve(point, max_distance)
        self.names.unbind_all(node_id)
        self.graph.remove_node(node_id)
        logger.info(f"Deleted waypoint {node_id}")
        return node_id

    def name_node(self, name: str, node_id: int) -> None:
        self.names.bind(name, node_id)

    def reset_all(self) -> None:
        self.names.clear()
        self.graph.clear()
        logger.info("Waypoint graph reset")
