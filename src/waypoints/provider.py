"""
Spatial Provider boundary for the waypoint graph.

The graph never owns positions. It registers an anchor with the provider when a
node is placed and asks the provider for the anchor's current position every
time it needs a distance, so refinements made by the tracker show up in the
next path query.

AnchorSpatialProvider is the in-memory implementation used by the Telegram bot,
the map viewer and the tests. A real AR/robot tracker only has to satisfy the
SpatialProvider protocol.
"""

import json
import logging
import math
from dataclasses import dataclass
from typing import Iterable, Optional, Protocol

import numpy as np

from src.waypoints.errors import UnknownNode

logger = logging.getLogger(__name__)

Vector3 = tuple[float, float, float]

SNAPSHOT_VERSION = 1


def to_vector3(values: Iterable[float]) -> Vector3:
    """
    Coerce three numbers into a Vector3 tuple.

    Raises:
        ValueError: If there are not exactly three finite numbers
    """
    coords = tuple(float(v) for v in values)
    if len(coords) != 3:
        raise ValueError(f"Expected 3 coordinates, got {len(coords)}")
    if not all(math.isfinite(c) for c in coords):
        raise ValueError(f"Coordinates must be finite: {coords}")
    return coords  # type: ignore[return-value]


def distance(a: Vector3, b: Vector3) -> float:
    """Euclidean distance between two points."""
    return float(np.linalg.norm(np.subtract(a, b)))


@dataclass
class WorldSnapshot:
    """Parsed contents of a world snapshot, not yet adopted by a provider."""

    positions: list[Vector3]  # by anchor index
    floor_height: float
    reference: Optional[Vector3]


class SpatialProvider(Protocol):
    """Live positions and tap resolution supplied by the tracking system."""

    def current_position(self, node_id: int) -> Vector3: ...

    def hit_test(self, screen_point: tuple[float, float]) -> Optional[Vector3]: ...

    def add_anchor(self, node_id: int, position: Vector3) -> None: ...

    def remove_anchor(self, node_id: int) -> None: ...

    def clear(self) -> None: ...

    def reference_position(self) -> Optional[Vector3]: ...

    def snapshot(self, order: list[int]) -> bytes: ...

    def restore(self, blob: bytes) -> list[Vector3]: ...

    def parse_snapshot(self, blob: bytes) -> WorldSnapshot: ...

    def apply_snapshot(self, world: WorldSnapshot) -> None: ...


class AnchorSpatialProvider:
    """
    In-memory anchor store standing in for a world-tracking session.

    Anchors are keyed by node id. The world snapshot names anchors by their
    index in the order handed to snapshot(), which is the stable external
    order restore() gives back on load.

    Args:
        floor_height: Height of the horizontal plane used by hit_test()
        reference: Initial reference (camera) position, if any
    """

    def __init__(self, floor_height: float = 0.0, reference: Optional[Vector3] = None) -> None:
        self.floor_height = floor_height
        self._anchors: dict[int, Vector3] = {}
        self._reference = reference

    def current_position(self, node_id: int) -> Vector3:
        try:
            return self._anchors[node_id]
        except KeyError:
            raise UnknownNode(node_id) from None

    def hit_test(self, screen_point: tuple[float, float]) -> Optional[Vector3]:
        """Project a floor-plan tap onto the plane z = floor_height."""
        if len(screen_point) != 2:
            return None
        u, v = float(screen_point[0]), float(screen_point[1])
        if not (math.isfinite(u) and math.isfinite(v)):
            return None
        return (u, v, self.floor_height)

    def add_anchor(self, node_id: int, position: Vector3) -> None:
        self._anchors[node_id] = to_vector3(position)

    def move_anchor(self, node_id: int, position: Vector3) -> None:
        """Update an anchor the way a tracker refines its estimate."""
        if node_id not in self._anchors:
            raise UnknownNode(node_id)
        self._anchors[node_id] = to_vector3(position)
        logger.debug(f"Anchor {node_id} refined to {self._anchors[node_id]}")

    def remove_anchor(self, node_id: int) -> None:
        self._anchors.pop(node_id, None)

    def clear(self) -> None:
        self._anchors.clear()

    def reference_position(self) -> Optional[Vector3]:
        return self._reference

    def set_reference_position(self, position: Optional[Vector3]) -> None:
        self._reference = to_vector3(position) if position is not None else None

    def snapshot(self, order: list[int]) -> bytes:
        """Serialize the anchors of `order` as an opaque JSON world snapshot."""
        payload = {
            "version": SNAPSHOT_VERSION,
            "floor_height": self.floor_height,
            "reference": list(self._reference) if self._reference is not None else None,
            "anchors": [
                {"name": str(index), "position": list(self.current_position(node_id))}
                for index, node_id in enumerate(order)
            ],
        }
        return json.dumps(payload).encode("utf-8")

    def parse_snapshot(self, blob: bytes) -> WorldSnapshot:
        """
        Parse a world snapshot without touching the provider's state.

        Raises:
            ValueError: If any part of the snapshot is malformed
        """
        try:
            payload = json.loads(blob.decode("utf-8"))
            anchors = sorted(payload["anchors"], key=lambda a: int(a["name"]))
            positions = [to_vector3(a["position"]) for a in anchors]
            floor_height = float(payload.get("floor_height", self.floor_height))
            if not math.isfinite(floor_height):
                raise ValueError(f"floor_height must be finite: {floor_height}")
            reference = payload.get("reference")
            reference = to_vector3(reference) if reference is not None else None
        except (UnicodeDecodeError, AttributeError, KeyError, TypeError, ValueError) as e:
            raise ValueError(f"Failed to parse world snapshot: {e}") from e
        return WorldSnapshot(positions=positions, floor_height=floor_height, reference=reference)

    def apply_snapshot(self, world: WorldSnapshot) -> None:
        """Adopt the floor height and reference position of a parsed snapshot."""
        self.floor_height = world.floor_height
        self._reference = world.reference

    def restore(self, blob: bytes) -> list[Vector3]:
        """
        Parse and adopt a world snapshot, returning anchor positions in index order.

        Anchors are not registered here; the graph re-registers them as it
        rebuilds its nodes.

        Raises:
            ValueError: If the snapshot cannot be parsed
        """
        world = self.parse_snapshot(blob)
        self.apply_snapshot(world)
        return world.positions
