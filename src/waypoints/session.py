"""Command surface for editing and navigating a waypoint graph."""

import asyncio
import logging
import os
from typing import Awaitable, Callable, Optional

from src.waypoints.editor import GraphEditor
from src.waypoints.errors import NoNodeNearby, UnresolvedDestination
from src.waypoints.graph import WaypointGraph
from src.waypoints.names import NameDirectory
from src.waypoints.pathfinder import PathFinder, Route
from src.waypoints.persistence import SessionStore, apply_saved_session, export_layout
from src.waypoints.provider import AnchorSpatialProvider, Vector3

logger = logging.getLogger(__name__)

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
DEFAULT_DATA_DIR = os.path.join(PROJECT_ROOT, "maps", "session")

StatusCallback = Callable[[str], Awaitable[None]]


def _fmt(point: Vector3) -> str:
    return f"({point[0]:.2f}, {point[1]:.2f}, {point[2]:.2f})"


class WaypointSession:
    """
    One user's waypoint map: graph, names, editor, path finder and store.

    Every command reports what happened through an async status callback and
    returns a success value. User mistakes (a tap next to nothing, an unknown
    destination) are reported and swallowed here; anything else propagates.

    Example:
        session = WaypointSession()
        await session.place_node((0.0, 0.0, 0.0), status_callback)
        await session.name_node("kitchen", status_callback)
        route = await session.navigate("kitchen", status_callback)
    """

    def __init__(
        self,
        provider: Optional[AnchorSpatialProvider] = None,
        data_dir: Optional[str] = None,
    ) -> None:
        """
        Args:
            provider: Spatial Provider for node positions (in-memory by default)
            data_dir: Directory used by save() and load()
                (default: $WAYPOINT_DATA_DIR or maps/session)
        """
        self.provider = provider if provider is not None else AnchorSpatialProvider()
        self.graph = WaypointGraph(self.provider)
        self.names = NameDirectory(self.graph)
        self.editor = GraphEditor(self.graph, self.names)
        self.pathfinder = PathFinder(self.graph)
        self.store = SessionStore(data_dir or os.getenv("WAYPOINT_DATA_DIR", DEFAULT_DATA_DIR))

        self.last_route: Optional[Route] = None
        self._last_placed: Optional[int] = None

    def get_status(self) -> dict:
        """
        Summarize the session.

        Returns:
            Dictionary with waypoints, edges, names, last_placed,
            reference and has_saved_map
        """
        return {
            "waypoints": len(self.graph),
            "edges": sum(1 for _ in self.graph.edges()),
            "names": len(self.names),
            "last_placed": self._last_placed if self._last_placed in self.graph else None,
            "reference": self.provider.reference_position(),
            "has_saved_map": self.store.has_saved_map(),
        }

    async def place_node(self, point: Vector3, status_callback: StatusCallback) -> Optional[int]:
        node_id = self.editor.place_node(point)
        self._last_placed = node_id
        await status_callback(f"Placed waypoint {node_id} at {_fmt(point)}")
        return node_id

    async def add_edge(self, point_a: Vector3, point_b: Vector3, status_callback: StatusCallback) -> bool:
        try:
            a, b = self.editor.connect_nearest(point_a, point_b)
        except NoNodeNearby as e:
            logger.info(f"Edge gesture ignored: {e}")
            await status_callback(f"No waypoint there: {e}")
            return False
        if a == b:
            await status_callback(f"Both taps hit waypoint {a}; pick two different waypoints")
            return False
        await status_callback(f"Connected waypoints {a} and {b}")
        return True

    async def remove_edge(self, point_a: Vector3, point_b: Vector3, status_callback: StatusCallback) -> bool:
        try:
            a, b = self.editor.disconnect_nearest(point_a, point_b)
        except NoNodeNearby as e:
            logger.info(f"Unlink gesture ignored: {e}")
            await status_callback(f"No waypoint there: {e}")
            return False
        await status_callback(f"Disconnected waypoints {a} and {b}")
        return True

    async def remove_node(self, point: Vector3, status_callback: StatusCallback) -> bool:
        try:
            node_id = self.editor.delete_nearest(point)
        except NoNodeNearby as e:
            logger.info(f"Remove gesture ignored: {e}")
            await status_callback(f"No waypoint there: {e}")
            return False
        if self.last_route is not None and node_id in self.last_route.nodes:
            self.last_route = None
        await status_callback(f"Removed waypoint {node_id}")
        return True

    async def name_node(
        self,
        name: str,
        status_callback: StatusCallback,
        node_id: Optional[int] = None,
    ) -> bool:
        """
        Name a waypoint.

        Args:
            name: Name to bind (case-insensitive)
            status_callback: Async function to report status updates
            node_id: Waypoint to name. Defaults to the most recently placed
                waypoint that still exists.
        """
        target = node_id if node_id is not None else self._last_placed
        if target is None or target not in self.graph:
            await status_callback("No waypoint to name. Place one first or give its number.")
            return False
        try:
            self.editor.name_node(name, target)
        except ValueError as e:
            await status_callback(str(e))
            return False
        await status_callback(f"Waypoint {target} is now called '{name.strip().lower()}'")
        return True

    def resolve_destination(self, text: str) -> int:
        """
        Turn navigation text into a node id.

        The text is looked up as a name first, then read as a literal node id.

        Raises:
            UnresolvedDestination: If neither lookup finds a live node
        """
        node_id = self.names.resolve(text)
        if node_id is not None:
            return node_id
        try:
            literal = int(text.strip())
        except ValueError:
            raise UnresolvedDestination(text) from None
        if literal not in self.graph:
            raise UnresolvedDestination(text)
        return literal

    async def navigate(self, destination_text: str, status_callback: StatusCallback) -> Optional[Route]:
        """
        Route from the waypoint nearest the reference position to a destination.

        Returns:
            The route if the destination is reachable, None otherwise
        """
        if len(self.graph) == 0:
            await status_callback("The map has no waypoints yet.")
            return None
        try:
            goal = self.resolve_destination(destination_text)
        except UnresolvedDestination as e:
            logger.info(str(e))
            await status_callback(f"{e}. Enter a waypoint name or number.")
            return None

        reference = self.provider.reference_position()
        if reference is None:
            await status_callback("Current position unknown. Set it with /here first.")
            return None
        start = self.graph.nearest_node(reference, None)
        assert start is not None  # graph is non-empty

        route = self.pathfinder.route(start, goal)
        if not route.reachable:
            self.last_route = None
            await status_callback(
                f"Waypoint {goal} is not connected to waypoint {start} (nearest to you)."
            )
            return None

        self.last_route = route
        await status_callback(
            f"Route: {' -> '.join(str(n) for n in route.nodes)} ({route.cost:.2f} m)"
        )
        return route

    async def save(self, status_callback: StatusCallback) -> bool:
        if len(self.graph) == 0:
            await status_callback("Nothing to save: place a waypoint first.")
            return False
        layout = export_layout(self.graph, self.names)
        snapshot = self.provider.snapshot(layout.order)
        try:
            await asyncio.to_thread(self.store.write, layout, snapshot)
        except OSError as e:
            logger.exception("Failed to save session")
            await status_callback(f"Save failed: {e}")
            return False
        await status_callback(f"Saved {len(layout.order)} waypoints")
        return True

    async def load(self, status_callback: StatusCallback) -> bool:
        if not self.store.has_saved_map():
            await status_callback("No saved map found.")
            return False
        try:
            saved = await asyncio.to_thread(self.store.read)
            apply_saved_session(self.editor, saved)
        except (OSError, ValueError) as e:
            logger.exception("Failed to load session")
            await status_callback(f"Load failed: {e}")
            return False
        self.last_route = None
        self._last_placed = None
        await status_callback(f"Loaded {len(self.graph)} waypoints and {len(self.names)} names")
        return True

    async def reset(self, status_callback: StatusCallback) -> None:
        self.editor.reset_all()
        self.last_route = None
        self._last_placed = None
        await status_callback("Map cleared")
