"""Exceptions raised by the waypoint graph core."""

from typing import Optional


class WaypointError(Exception):
    """Base class for all waypoint graph errors."""


class UnknownNode(WaypointError, LookupError):
    """An operation referenced a node id that does not exist."""

    def __init__(self, node_id: int) -> None:
        super().__init__(f"Unknown waypoint node: {node_id}")
        self.node_id = node_id


class NoNodeNearby(WaypointError):
    """A tap landed too far from every existing node."""

    def __init__(self, point: tuple[float, float, float], max_distance: Optional[float]) -> None:
        super().__init__(
            f"No waypoint within {max_distance} of "
            f"({point[0]:.2f}, {point[1]:.2f}, {point[2]:.2f})"
        )
        self.point = point
        self.max_distance = max_distance


class EmptyFringe(WaypointError, IndexError):
    """pop_min() was called on an empty fringe."""


class UnresolvedDestination(WaypointError):
    """Navigation text matched neither a name nor a live node id."""

    def __init__(self, text: str) -> None:
        super().__init__(f"Unknown destination: {text!r}")
        self.text = text
