"""Waypoint graph editing and shortest-path navigation."""

from src.waypoints.editor import GraphEditor, PROXIMITY_THRESHOLD
from src.waypoints.errors import (
    EmptyFringe,
    NoNodeNearby,
    UnknownNode,
    UnresolvedDestination,
    WaypointError,
)
from src.waypoints.fringe import FringeEntry, OrderedFringe
from src.waypoints.graph import Node, WaypointGraph
from src.waypoints.names import NameDirectory
from src.waypoints.pathfinder import PathFinder, Route, SENTINEL_DISTANCE, ShortestPathTree
from src.waypoints.persistence import SessionStore
from src.waypoints.provider import AnchorSpatialProvider, SpatialProvider, Vector3
from src.waypoints.session import WaypointSession

__all__ = [
    "AnchorSpatialProvider",
    "EmptyFringe",
    "FringeEntry",
    "GraphEditor",
    "NameDirectory",
    "NoNodeNearby",
    "Node",
    "OrderedFringe",
    "PathFinder",
    "PROXIMITY_THRESHOLD",
    "Route",
    "SENTINEL_DISTANCE",
    "SessionStore",
    "ShortestPathTree",
    "SpatialProvider",
    "UnknownNode",
    "UnresolvedDestination",
    "Vector3",
    "WaypointError",
    "WaypointGraph",
    "WaypointSession",
]
