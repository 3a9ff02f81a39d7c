"""
Tests for shortest-path search.

Educational notes:
- A brute-force search over all simple paths is the reference answer
- The line_graph fixture (conftest.py) is 0 - 1 - 2 at x = 0, 3 and 8
"""

import itertools
import math

import pytest

from src.waypoints.errors import UnknownNode
from src.waypoints.pathfinder import PathFinder, Route, SENTINEL_DISTANCE


def brute_force_cost(graph, start, goal):
    """Cheapest simple path cost by trying every ordering of intermediates."""
    others = [n for n in graph.nodes() if n not in (start, goal)]
    best = math.inf
    for length in range(len(others) + 1):
        for middle in itertools.permutations(others, length):
            path = [start, *middle, goal]
            if all(b in graph.neighbors(a) for a, b in zip(path, path[1:])):
                cost = sum(graph.edge_weight(a, b) for a, b in zip(path, path[1:]))
                best = min(best, cost)
    return best


class TestShortestPaths:
    """Tests for the full shortest-path tree."""

    def test_start_has_zero_distance(self, line_graph):
        """The start node is settled at distance 0 with no predecessor."""
        tree = PathFinder(line_graph.graph).shortest_paths(0)
        assert tree.dist[0] == 0.0
        assert tree.prev[0] is None

    def test_distances_along_line(self, line_graph):
        """Distances accumulate edge weights."""
        tree = PathFinder(line_graph.graph).shortest_paths(0)
        assert tree.dist[1] == pytest.approx(3.0)
        assert tree.dist[2] == pytest.approx(8.0)
        assert tree.prev[2] == 1

    def test_unreached_nodes_keep_sentinel(self, line_graph):
        """Disconnected nodes stay at the sentinel distance."""
        island = line_graph.place_node((50.0, 0.0, 0.0))
        tree = PathFinder(line_graph.graph).shortest_paths(0)

        assert tree.dist[island] == SENTINEL_DISTANCE
        assert tree.prev[island] is None
        assert not tree.reached(island)

    def test_unknown_start_raises(self, graph):
        with pytest.raises(UnknownNode):
            PathFinder(graph).shortest_paths(3)

    def test_matches_brute_force(self, editor):
        """Dijkstra agrees with exhaustive search on a small mesh."""
        graph = editor.graph
        for position in [(0, 0, 0), (2, 1, 0), (4, 0, 0), (1, 3, 0), (3, 3, 1)]:
            editor.place_node(tuple(float(c) for c in position))
        for a, b in [(0, 1), (1, 2), (0, 3), (3, 4), (4, 2), (1, 4), (0, 2)]:
            graph.add_edge(a, b)

        finder = PathFinder(graph)
        for start in graph.nodes():
            tree = finder.shortest_paths(start)
            for goal in graph.nodes():
                assert tree.dist[goal] == pytest.approx(brute_force_cost(graph, start, goal))


class TestRoute:
    """Tests for start-to-goal routes."""

    def test_route_along_line(self, line_graph):
        """The route from 0 to 2 visits 1 and costs 8."""
        route = PathFinder(line_graph.graph).route(0, 2)

        assert route.nodes == [0, 1, 2]
        assert route.cost == pytest.approx(8.0)
        assert route.reachable
        assert route.goal == 2
        assert route.segments() == [(0, 1), (1, 2)]

    def test_route_around_corner(self, editor):
        """Placing (0,0,0), (3,0,0), (3,4,0) and chaining them routes 0 -> 1 -> 2."""
        for position in [(0.0, 0.0, 0.0), (3.0, 0.0, 0.0), (3.0, 4.0, 0.0)]:
            editor.place_node(position)
        editor.graph.add_edge(0, 1)
        editor.graph.add_edge(1, 2)

        route = PathFinder(editor.graph).route(0, 2)

        assert route.nodes == [0, 1, 2]
        assert route.cost == pytest.approx(7.0)

    def test_route_to_self(self, line_graph):
        """A route from a node to itself is just that node."""
        route = PathFinder(line_graph.graph).route(1, 1)
        assert route.nodes == [1]
        assert route.cost == 0.0
        assert route.reachable

    def test_unreachable_goal_is_single_node(self, line_graph):
        """An unreachable goal gives [goal] at the sentinel cost."""
        island = line_graph.place_node((50.0, 0.0, 0.0))
        route = PathFinder(line_graph.graph).route(0, island)

        assert route.nodes == [island]
        assert route.cost == SENTINEL_DISTANCE
        assert not route.reachable

    def test_unknown_goal_raises(self, line_graph):
        with pytest.raises(UnknownNode):
            PathFinder(line_graph.graph).route(0, 99)

    def test_shortcut_is_preferred(self, line_graph, provider):
        """A direct edge cheaper than the detour wins."""
        provider.move_anchor(1, (3.0, 4.0, 0.0))
        line_graph.graph.add_edge(0, 2)
        route = PathFinder(line_graph.graph).route(0, 2)
        assert route.nodes == [0, 2]
        assert route.cost == pytest.approx(8.0)

    def test_route_reflects_moved_anchor(self, line_graph, provider):
        """Moving an anchor changes the next query's cost."""
        finder = PathFinder(line_graph.graph)
        assert finder.route(0, 2).cost == pytest.approx(8.0)

        provider.move_anchor(2, (13.0, 0.0, 0.0))
        assert finder.route(0, 2).cost == pytest.approx(13.0)

    def test_route_after_removal(self, line_graph):
        """Removing the middle node cuts the route."""
        line_graph.graph.remove_node(1)
        route = PathFinder(line_graph.graph).route(0, 2)
        assert not route.reachable


class TestRouteModel:

    def test_route_not_reachable_if_start_differs(self):
        """A one-node route for another start is not reachable."""
        route = Route(start=0, nodes=[4], cost=SENTINEL_DISTANCE)
        assert not route.reachable
        assert route.segments() == []
