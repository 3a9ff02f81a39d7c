"""Geometry for drawing a waypoint graph and a route."""

import logging
from typing import Optional

from src.waypoints.graph import WaypointGraph
from src.waypoints.pathfinder import Route
from src.waypoints.provider import Vector3

logger = logging.getLogger(__name__)

Segment = tuple[Vector3, Vector3]


def compute_node_positions(graph: WaypointGraph) -> dict[int, Vector3]:
    """Snapshot the current position of every live node."""
    return {node_id: graph.position(node_id) for node_id in graph.nodes()}


def compute_edge_lines(graph: WaypointGraph, positions: dict[int, Vector3]) -> list[Segment]:
    """
    Line segments for every edge.

    Args:
        graph: Waypoint graph
        positions: Dict mapping node id to position

    Returns:
        List of (start_pos, end_pos) tuples, one per edge
    """
    return [
        (positions[a], positions[b])
        for a, b in graph.edges()
        if a in positions and b in positions
    ]


def compute_route_lines(route: Route, positions: dict[int, Vector3]) -> list[Segment]:
    """Line segments along a route. Unreachable routes have none."""
    if not route.reachable:
        return []
    return [
        (positions[a], positions[b])
        for a, b in route.segments()
        if a in positions and b in positions
    ]


def compute_reference_link(
    reference: Optional[Vector3],
    route: Optional[Route],
    positions: dict[int, Vector3],
) -> Optional[Segment]:
    """
    Segment from the route's first waypoint to the reference position.

    The reference point is dropped to the waypoint's height so the link runs
    along the floor instead of up to the camera.
    """
    if reference is None or route is None or not route.reachable:
        return None
    start = positions.get(route.start)
    if start is None:
        return None
    return (start, (reference[0], reference[1], start[2]))
