"""Single-source shortest paths over the live-position waypoint graph."""

import logging
from dataclasses import dataclass, field
from typing import Optional

from src.waypoints.errors import UnknownNode
from src.waypoints.fringe import FringeEntry, OrderedFringe
from src.waypoints.graph import WaypointGraph

logger = logging.getLogger(__name__)

# Stand-in for "unreached". Indoor waypoint distances stay far below this.
SENTINEL_DISTANCE = 99999999.9


@dataclass
class ShortestPathTree:
    """Distances and predecessors from one start node to every live node."""

    start: int
    dist: dict[int, float] = field(default_factory=dict)
    prev: dict[int, Optional[int]] = field(default_factory=dict)

    def reached(self, node_id: int) -> bool:
        return self.dist.get(node_id, SENTINEL_DISTANCE) != SENTINEL_DISTANCE


@dataclass
class Route:
    """
    Ordered node ids from start to goal, inclusive.

    When the goal cannot be reached the route is just [goal] and cost is
    SENTINEL_DISTANCE. Check `reachable` before following it.
    """

    start: int
    nodes: list[int]
    cost: float

    @property
    def goal(self) -> int:
        return self.nodes[-1]

    @property
    def reachable(self) -> bool:
        return self.cost != SENTINEL_DISTANCE and self.nodes[0] == self.start

    def segments(self) -> list[tuple[int, int]]:
        """Consecutive (from, to) node pairs along the route."""
        return list(zip(self.nodes, self.nodes[1:]))


class PathFinder:
    """Dijkstra over WaypointGraph using an insert-only OrderedFringe."""

    def __init__(self, graph: WaypointGraph) -> None:
        self.graph = graph

    def shortest_paths(self, start: int) -> ShortestPathTree:
        """
        Run Dijkstra from start until every reachable node is settled.

        Edge weights are recomputed from the provider's current positions as
        each node is expanded, so a query reflects the latest anchor estimates.

        Raises:
            UnknownNode: If start is not a live node
        """
        if start not in self.graph:
            raise UnknownNode(start)

        tree = ShortestPathTree(start=start)
        visited: set[int] = set()
        for node_id in self.graph.nodes():
            tree.dist[node_id] = SENTINEL_DISTANCE
            tree.prev[node_id] = None

        fringe = OrderedFringe()
        fringe.insert(FringeEntry(start, 0.0, None))

        while fringe:
            current = fringe.pop_min()
            if current.node_id in visited:
                continue  # stale entry

            visited.add(current.node_id)
            tree.dist[current.node_id] = current.distance
            tree.prev[current.node_id] = current.predecessor

            for neighbor in self.graph.neighbors(current.node_id):
                if neighbor in visited:
                    continue
                weight = self.graph.edge_weight(current.node_id, neighbor)
                fringe.insert(FringeEntry(neighbor, current.distance + weight, current.node_id))

        logger.debug(f"Settled {len(visited)} of {len(self.graph)} nodes from {start}")
        return tree

    def route(self, start: int, goal: int) -> Route:
        """
        Shortest route from start to goal.

        Returns:
            Route whose nodes run start..goal. If goal is unreachable the
            nodes are [goal] and cost is SENTINEL_DISTANCE.

        Raises:
            UnknownNode: If start or goal is not a live node
        """
        if goal not in self.graph:
            raise UnknownNode(goal)
        tree = self.shortest_paths(start)

        nodes: list[int] = []
        current: Optional[int] = goal
        while current is not None:
            nodes.append(current)
            current = tree.prev[current]
        nodes.reverse()

        route = Route(start=start, nodes=nodes, cost=tree.dist[goal])
        if route.reachable:
            logger.info(f"Route {start} -> {goal}: {nodes} ({route.cost:.2f} m)")
        else:
            logger.info(f"Node {goal} is not reachable from {start}")
        return route
