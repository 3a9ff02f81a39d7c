"""Case-insensitive name directory for waypoints."""

import logging
from typing import Optional

from src.waypoints.errors import UnknownNode
from src.waypoints.graph import WaypointGraph

logger = logging.getLogger(__name__)


def normalize_name(name: str) -> str:
    return name.strip().lower()


class NameDirectory:
    """
    Maps human-readable names to node ids.

    Each name points at exactly one node; a node may carry any number of
    names. Every bound id must be live in the graph.
    """

    def __init__(self, graph: WaypointGraph) -> None:
        self.graph = graph
        self._ids: dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._ids)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and normalize_name(name) in self._ids

    def bind(self, name: str, node_id: int) -> None:
        """
        Bind name to node_id, replacing any earlier binding of the name.

        Raises:
            ValueError: If name is blank
            UnknownNode: If node_id is not a live node
        """
        key = normalize_name(name)
        if not key:
            raise ValueError("Waypoint name must not be blank")
        if node_id not in self.graph:
            raise UnknownNode(node_id)

        previous = self._ids.get(key)
        self._ids[key] = node_id
        if previous is not None and previous != node_id:
            logger.info(f"Name '{key}' moved from node {previous} to node {node_id}")
        else:
            logger.debug(f"Bound name '{key}' to node {node_id}")

    def resolve(self, name: str) -> Optional[int]:
        return self._ids.get(normalize_name(name))

    def unbind_all(self, node_id: int) -> list[str]:
        """Remove every name bound to node_id and return them."""
        removed = [name for name, bound in self._ids.items() if bound == node_id]
        for name in removed:
            del self._ids[name]
        if removed:
            logger.debug(f"Unbound {removed} from node {node_id}")
        return removed

    def names_for(self, node_id: int) -> list[str]:
        return sorted(name for name, bound in self._ids.items() if bound == node_id)

    def items(self) -> list[tuple[str, int]]:
        return sorted(self._ids.items())

    def clear(self) -> None:
        self._ids.clear()
