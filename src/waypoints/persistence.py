"""
Save and load a waypoint session as three files.

A saved session directory holds:
- map.snapshot: the Spatial Provider's world snapshot (opaque bytes)
- neighbors.json: adjacency as a list of index lists
- names.json: name -> index mapping

Indices refer to the node order handed to the provider's snapshot(). On load
the provider returns positions in that same order and the graph is rebuilt
from it with fresh node ids.
"""

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from src.waypoints.editor import GraphEditor
from src.waypoints.graph import WaypointGraph
from src.waypoints.names import NameDirectory, normalize_name
from src.waypoints.provider import Vector3, to_vector3

logger = logging.getLogger(__name__)

MAP_FILENAME = "map.snapshot"
NEIGHBORS_FILENAME = "neighbors.json"
NAMES_FILENAME = "names.json"


@dataclass
class GraphLayout:
    """Index-based view of a graph, the shape persisted on disk."""

    order: list[int]  # node ids by index
    neighbors: list[list[int]]
    names: dict[str, int]


@dataclass
class SavedSession:
    """Raw contents of a saved session directory."""

    snapshot: bytes
    neighbors: list[list[int]]
    names: dict[str, int]


def export_layout(graph: WaypointGraph, names: NameDirectory) -> GraphLayout:
    """Number live nodes 0..n-1 in id order and express edges and names by index."""
    order = graph.nodes()
    index_of = {node_id: index for index, node_id in enumerate(order)}
    neighbors = [[index_of[n] for n in graph.neighbors(node_id)] for node_id in order]
    name_indices = {name: index_of[node_id] for name, node_id in names.items()}
    return GraphLayout(order=order, neighbors=neighbors, names=name_indices)


def rebuild_graph(
    editor: GraphEditor,
    positions: list[Vector3],
    neighbors: list[list[int]],
    names: dict[str, int],
) -> list[int]:
    """
    Replace the editor's graph with one rebuilt from index-based data.

    Everything is validated before the current graph is cleared.

    Returns:
        New node ids, where element i is the node for index i

    Raises:
        ValueError: If the adjacency or names do not match the positions
    """
    try:
        positions = [to_vector3(position) for position in positions]
    except TypeError as e:
        raise ValueError(f"Invalid anchor position: {e}") from e
    count = len(positions)
    if len(neighbors) != count:
        raise ValueError(
            f"Adjacency has {len(neighbors)} entries but the snapshot has {count} anchors"
        )
    for index, row in enumerate(neighbors):
        for neighbor in row:
            if not isinstance(neighbor, int) or not 0 <= neighbor < count:
                raise ValueError(f"Neighbor index {neighbor!r} of node {index} out of range")
    for name, index in names.items():
        if not isinstance(name, str) or not normalize_name(name):
            raise ValueError(f"Invalid waypoint name {name!r}")
        if not isinstance(index, int) or not 0 <= index < count:
            raise ValueError(f"Name {name!r} points at invalid index {index!r}")

    editor.reset_all()
    ids = [editor.graph.add_node(position) for position in positions]
    for index, row in enumerate(neighbors):
        for neighbor in row:
            editor.graph.add_edge(ids[index], ids[neighbor])
    for name, index in names.items():
        editor.names.bind(name, ids[index])

    logger.info(f"Rebuilt graph: {count} waypoints, {len(names)} names")
    return ids


def apply_saved_session(editor: GraphEditor, saved: SavedSession) -> list[int]:
    """
    Rebuild the graph in the snapshot's anchor order.

    The provider adopts the snapshot's floor height and reference position
    only once the graph has been rebuilt; a rejected save changes nothing.
    """
    provider = editor.graph.provider
    world = provider.parse_snapshot(saved.snapshot)
    ids = rebuild_graph(editor, world.positions, saved.neighbors, saved.names)
    provider.apply_snapshot(world)
    return ids


def _atomic_write(path: Path, data: bytes) -> None:
    """Write data to path by replacing it with a fully written temp file."""
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
    try:
        with os.fdopen(fd, "wb") as tmp_file:
            tmp_file.write(data)
        os.replace(tmp_path, path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise


class SessionStore:
    """
    Directory holding one saved waypoint session.

    Args:
        directory: Where the three session files live (created on save)
    """

    def __init__(self, directory: Union[str, Path]) -> None:
        self.directory = Path(directory)

    @property
    def map_path(self) -> Path:
        return self.directory / MAP_FILENAME

    @property
    def neighbors_path(self) -> Path:
        return self.directory / NEIGHBORS_FILENAME

    @property
    def names_path(self) -> Path:
        return self.directory / NAMES_FILENAME

    def has_saved_map(self) -> bool:
        return self.map_path.exists()

    def write(self, layout: GraphLayout, snapshot: bytes) -> None:
        """
        Write the world snapshot, adjacency and names.

        Each file is replaced atomically; a failure never leaves a partially
        written file behind. Touches only the filesystem.
        """
        self.directory.mkdir(parents=True, exist_ok=True)
        _atomic_write(self.map_path, snapshot)
        _atomic_write(self.neighbors_path, json.dumps(layout.neighbors).encode("utf-8"))
        _atomic_write(self.names_path, json.dumps(layout.names, indent=2).encode("utf-8"))
        logger.info(f"Saved {len(layout.order)} waypoints to {self.directory}")
        logger.debug(f"Saved anchors (index -> node id): {dict(enumerate(layout.order))}")
        logger.debug(f"Saved names: {layout.names}")
        logger.debug(f"Saved neighbors: {layout.neighbors}")

    def read(self) -> SavedSession:
        """
        Read and parse the three saved files. Touches only the filesystem.

        Raises:
            FileNotFoundError: If any of the three files is missing
            ValueError: If a file cannot be parsed
        """
        for path in (self.map_path, self.neighbors_path, self.names_path):
            if not path.exists():
                raise FileNotFoundError(f"Saved session file not found: {path}")

        snapshot = self.map_path.read_bytes()
        try:
            neighbors = json.loads(self.neighbors_path.read_text(encoding="utf-8"))
            names = json.loads(self.names_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ValueError(f"Failed to parse saved session: {e}") from e
        if not isinstance(neighbors, list) or not all(isinstance(row, list) for row in neighbors):
            raise ValueError(f"{NEIGHBORS_FILENAME} must hold a list of index lists")
        if not isinstance(names, dict):
            raise ValueError(f"{NAMES_FILENAME} must hold a name -> index mapping")
        return SavedSession(snapshot=snapshot, neighbors=neighbors, names=names)

    def load(self, editor: GraphEditor) -> list[int]:
        """
        Rebuild the editor's graph from the saved files.

        Returns:
            New node ids in saved index order
        """
        return apply_saved_session(editor, self.read())
