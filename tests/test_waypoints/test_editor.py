"""Tests for tap-driven graph edits."""

import pytest

from src.waypoints.editor import PROXIMITY_THRESHOLD
from src.waypoints.errors import NoNodeNearby, UnknownNode


class TestPlaceNode:

    def test_place_returns_new_id(self, editor):
        assert editor.place_node((0.0, 0.0, 0.0)) == 0
        assert editor.place_node((1.0, 0.0, 0.0)) == 1


class TestConnectNearest:
    """Tests for connecting the waypoints under two taps."""

    def test_connects_waypoints_near_taps(self, editor):
        """Taps within the threshold pick the waypoints they land near."""
        a = editor.place_node((0.0, 0.0, 0.0))
        b = editor.place_node((5.0, 0.0, 0.0))

        assert editor.connect_nearest((0.2, 0.1, 0.0), (4.9, 0.0, 0.0)) == (a, b)
        assert editor.graph.neighbors(a) == [b]

    def test_tap_far_from_everything_rejected(self, editor):
        """A tap beyond the threshold raises and changes nothing."""
        editor.place_node((0.0, 0.0, 0.0))
        editor.place_node((5.0, 0.0, 0.0))

        with pytest.raises(NoNodeNearby):
            editor.connect_nearest((0.0, 0.0, 0.0), (2.5, 0.0, 0.0))
        assert list(editor.graph.edges()) == []

    def test_default_threshold(self, editor):
        """The default threshold is half a meter."""
        assert editor.proximity_threshold == PROXIMITY_THRESHOLD == 0.5

    def test_max_distance_override(self, editor):
        """A larger max_distance accepts farther taps."""
        a = editor.place_node((0.0, 0.0, 0.0))
        b = editor.place_node((5.0, 0.0, 0.0))
        assert editor.connect_nearest((1.5, 0.0, 0.0), (4.0, 0.0, 0.0), max_distance=2.0) == (a, b)

    def test_same_waypoint_twice_adds_no_edge(self, editor):
        """Two taps on one waypoint resolve to it but add no self-loop."""
        a = editor.place_node((0.0, 0.0, 0.0))
        assert editor.connect_nearest((0.1, 0.0, 0.0), (0.0, 0.1, 0.0)) == (a, a)
        assert editor.graph.neighbors(a) == []


class TestDisconnectNearest:

    def test_removes_edge(self, line_graph):
        """Taps on two connected waypoints remove their edge."""
        assert line_graph.disconnect_nearest((0.0, 0.0, 0.0), (3.0, 0.0, 0.0)) == (0, 1)
        assert line_graph.graph.neighbors(0) == []
        assert line_graph.graph.neighbors(1) == [2]


class TestDeleteNearest:
    """Tests for removing the waypoint under a tap."""

    def test_deletes_node_edges_and_names(self, line_graph):
        """The node, its edges and its names all go."""
        line_graph.name_node("middle", 1)

        assert line_graph.delete_nearest((3.1, 0.0, 0.0)) == 1

        assert 1 not in line_graph.graph
        assert line_graph.graph.neighbors(0) == []
        assert line_graph.names.resolve("middle") is None

    def test_other_names_survive(self, line_graph):
        """Names of other waypoints are untouched."""
        line_graph.name_node("start", 0)
        line_graph.name_node("middle", 1)
        line_graph.delete_nearest((3.0, 0.0, 0.0))
        assert line_graph.names.resolve("start") == 0

    def test_miss_changes_nothing(self, line_graph):
        """A tap away from every waypoint raises and deletes nothing."""
        with pytest.raises(NoNodeNearby):
            line_graph.delete_nearest((20.0, 0.0, 0.0))
        assert len(line_graph.graph) == 3


class TestNameNode:

    def test_name_unknown_node_raises(self, editor):
        with pytest.raises(UnknownNode):
            editor.name_node("kitchen", 3)


class TestResetAll:

    def test_reset_clears_graph_and_names(self, line_graph):
        """reset_all empties both structures; ids keep counting."""
        line_graph.name_node("start", 0)
        line_graph.reset_all()

        assert len(line_graph.graph) == 0
        assert len(line_graph.names) == 0
        assert line_graph.place_node((0.0, 0.0, 0.0)) == 3
