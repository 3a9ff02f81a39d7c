"""Import a recorded GraphNav map into a waypoint graph."""

import logging
import os
from collections import deque
from dataclasses import dataclass
from typing import Any, Optional

import numpy as np
from bosdyn.api.graph_nav import map_pb2
from bosdyn.client.math_helpers import SE3Pose

from src.waypoints.editor import GraphEditor
from src.waypoints.provider import Vector3

logger = logging.getLogger(__name__)


@dataclass
class MapData:
    """Container for a loaded GraphNav graph."""

    graph: map_pb2.Graph
    waypoints: dict[str, Any]  # waypoint_id -> Waypoint
    anchors: dict[str, Any]  # waypoint_id -> Anchor


def load_map(path: str) -> MapData:
    """
    Load a GraphNav map from disk.

    Only the 'graph' file is read; waypoint and edge snapshots carry sensor
    data that the waypoint graph has no use for.

    Args:
        path: Path to map directory containing 'graph'

    Raises:
        FileNotFoundError: If the graph file doesn't exist
        ValueError: If the graph file cannot be parsed
    """
    graph_path = os.path.join(path, "graph")
    if not os.path.exists(graph_path):
        raise FileNotFoundError(f"Graph file not found: {graph_path}")

    with open(graph_path, "rb") as graph_file:
        graph = map_pb2.Graph()
        try:
            graph.ParseFromString(graph_file.read())
        except Exception as e:
            raise ValueError(f"Failed to parse graph file: {e}") from e

    waypoints = {waypoint.id: waypoint for waypoint in graph.waypoints}
    anchors = {anchor.id: anchor for anchor in graph.anchoring.anchors}

    logger.info(
        f"Loaded GraphNav map: {len(waypoints)} waypoints, {len(graph.edges)} edges, "
        f"{len(anchors)} anchors"
    )
    return MapData(graph=graph, waypoints=waypoints, anchors=anchors)


def id_to_short_code(waypoint_id: str) -> Optional[str]:
    """
    Two-letter short code of a waypoint ID.

    Made of the first character of the first two hyphen-separated tokens.

    Example:
        >>> id_to_short_code("aula-vast-xyz-123")
        "av"
        >>> id_to_short_code("short")
        None
    """
    tokens = waypoint_id.split('-')
    if len(tokens) > 2:
        return f'{tokens[0][0]}{tokens[1][0]}'
    return None


def se3_pose_to_position(se3_pose: SE3Pose) -> Vector3:
    mat = se3_pose.to_matrix()
    return (float(mat[0, 3]), float(mat[1, 3]), float(mat[2, 3]))


def compute_waypoint_positions(map_data: MapData, use_anchoring: bool = True) -> dict[str, Vector3]:
    """
    World positions for the waypoints of a GraphNav map.

    Args:
        map_data: Loaded map data
        use_anchoring: If True and anchors exist, use seed frame positions.
            Otherwise chain edge transforms outward from the first waypoint.

    Returns:
        Dict mapping waypoint_id to (x, y, z)
    """
    if use_anchoring and map_data.anchors:
        return {
            waypoint.id: se3_pose_to_position(
                SE3Pose.from_proto(map_data.anchors[waypoint.id].seed_tform_waypoint)
            )
            for waypoint in map_data.graph.waypoints
            if waypoint.id in map_data.anchors
        }
    return _compute_positions_via_bfs(map_data)


def _compute_positions_via_bfs(map_data: MapData) -> dict[str, Vector3]:
    """
    Place the first waypoint at the origin and walk the edges.

    GraphNav edges store from_tform_to; walking an edge backwards uses the
    inverse transform. Waypoints unreachable from the first one get no
    position.
    """
    if not map_data.graph.waypoints:
        return {}

    # waypoint_id -> [(neighbor_id, current_tform_neighbor proto, inverted)]
    links: dict[str, list[tuple[str, Any, bool]]] = {}
    for edge in map_data.graph.edges:
        from_id, to_id = edge.id.from_waypoint, edge.id.to_waypoint
        links.setdefault(from_id, []).append((to_id, edge.from_tform_to, False))
        links.setdefault(to_id, []).append((from_id, edge.from_tform_to, True))

    positions: dict[str, Vector3] = {}
    queue: deque[tuple[str, np.ndarray]] = deque()
    queue.append((map_data.graph.waypoints[0].id, np.eye(4)))

    while queue:
        waypoint_id, world_tform_waypoint = queue.popleft()
        if waypoint_id in positions:
            continue
        positions[waypoint_id] = (
            float(world_tform_waypoint[0, 3]),
            float(world_tform_waypoint[1, 3]),
            float(world_tform_waypoint[2, 3]),
        )

        for neighbor_id, from_tform_to, inverted in links.get(waypoint_id, []):
            if neighbor_id in positions:
                continue
            step = SE3Pose.from_proto(from_tform_to).to_matrix()
            if inverted:
                step = np.linalg.inv(step)
            queue.append((neighbor_id, np.dot(world_tform_waypoint, step)))

    return positions


def _unique_labels(map_data: MapData, positioned: set[str]) -> dict[str, str]:
    """
    Collect annotation names and short codes that identify exactly one waypoint.

    Returns:
        Dict mapping label -> waypoint_id
    """
    seen: dict[str, Optional[str]] = {}

    def offer(label: str, waypoint_id: str) -> None:
        label = label.strip().lower()
        if not label:
            return
        if label in seen and seen[label] != waypoint_id:
            seen[label] = None  # ambiguous
        else:
            seen[label] = waypoint_id

    for waypoint in map_data.graph.waypoints:
        if waypoint.id not in positioned:
            continue
        offer(waypoint.annotations.name or "", waypoint.id)
        short_code = id_to_short_code(waypoint.id)
        if short_code:
            offer(short_code, waypoint.id)

    labels = {}
    for label, waypoint_id in seen.items():
        if waypoint_id is None:
            logger.warning(f"GraphNav label '{label}' is used by several waypoints, skipping")
            continue
        labels[label] = waypoint_id
    return labels


def import_graphnav_map(
    map_data: MapData,
    editor: GraphEditor,
    use_anchoring: bool = True,
) -> dict[str, int]:
    """
    Replace the editor's graph with the waypoints of a GraphNav map.

    Every positioned waypoint becomes a node, every GraphNav edge between two
    positioned waypoints becomes an undirected edge, and unambiguous
    annotation names and short codes become names.

    Returns:
        Dict mapping GraphNav waypoint_id to the new node id
    """
    positions = compute_waypoint_positions(map_data, use_anchoring=use_anchoring)

    editor.reset_all()
    node_ids: dict[str, int] = {}
    for waypoint in map_data.graph.waypoints:
        if waypoint.id in positions:
            node_ids[waypoint.id] = editor.place_node(positions[waypoint.id])

    skipped = 0
    for edge in map_data.graph.edges:
        from_id, to_id = edge.id.from_waypoint, edge.id.to_waypoint
        if from_id not in node_ids or to_id not in node_ids:
            skipped += 1
            continue
        editor.graph.add_edge(node_ids[from_id], node_ids[to_id])
    if skipped:
        logger.warning(f"Skipped {skipped} GraphNav edges with unpositioned endpoints")

    for label, waypoint_id in _unique_labels(map_data, set(node_ids)).items():
        editor.name_node(label, node_ids[waypoint_id])

    logger.info(f"Imported {len(node_ids)} GraphNav waypoints, {len(editor.names)} names")
    return node_ids
