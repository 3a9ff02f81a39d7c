"""Tests for the in-memory Spatial Provider."""

import json
import math

import pytest

from src.waypoints.errors import UnknownNode
from src.waypoints.provider import AnchorSpatialProvider, distance, to_vector3


class TestToVector3:

    def test_accepts_three_numbers(self):
        assert to_vector3([1, "2.5", 3]) == (1.0, 2.5, 3.0)

    def test_rejects_wrong_length(self):
        with pytest.raises(ValueError):
            to_vector3([1.0, 2.0])

    def test_rejects_non_finite(self):
        with pytest.raises(ValueError):
            to_vector3([1.0, math.nan, 0.0])


class TestDistance:

    def test_euclidean(self):
        assert distance((0.0, 0.0, 0.0), (1.0, 2.0, 2.0)) == pytest.approx(3.0)


class TestAnchorSpatialProvider:
    """Tests for anchors, hit testing and world snapshots."""

    def test_hit_test_projects_to_floor(self):
        """A 2D tap lands on the floor plane."""
        provider = AnchorSpatialProvider(floor_height=-1.2)
        assert provider.hit_test((2.0, 3.0)) == (2.0, 3.0, -1.2)

    def test_hit_test_miss(self):
        """Non-finite taps hit nothing."""
        assert AnchorSpatialProvider().hit_test((math.inf, 0.0)) is None

    def test_move_unknown_anchor_raises(self):
        with pytest.raises(UnknownNode):
            AnchorSpatialProvider().move_anchor(3, (0.0, 0.0, 0.0))

    def test_reference_position(self):
        provider = AnchorSpatialProvider()
        assert provider.reference_position() is None
        provider.set_reference_position((1.0, 2.0, 0.0))
        assert provider.reference_position() == (1.0, 2.0, 0.0)

    def test_snapshot_names_anchors_by_index(self):
        """Anchors are written in the given order and named 0..n-1."""
        provider = AnchorSpatialProvider()
        provider.add_anchor(7, (1.0, 0.0, 0.0))
        provider.add_anchor(2, (2.0, 0.0, 0.0))

        payload = json.loads(provider.snapshot([7, 2]))

        assert [a["name"] for a in payload["anchors"]] == ["0", "1"]
        assert payload["anchors"][0]["position"] == [1.0, 0.0, 0.0]

    def test_restore_returns_positions_in_index_order(self):
        """restore sorts anchors by their numeric name."""
        blob = json.dumps({
            "version": 1,
            "floor_height": 0.5,
            "reference": [1.0, 1.0, 1.0],
            "anchors": [
                {"name": "10", "position": [10.0, 0.0, 0.0]},
                {"name": "2", "position": [2.0, 0.0, 0.0]},
            ],
        }).encode("utf-8")
        provider = AnchorSpatialProvider()

        assert provider.restore(blob) == [(2.0, 0.0, 0.0), (10.0, 0.0, 0.0)]
        assert provider.floor_height == 0.5
        assert provider.reference_position() == (1.0, 1.0, 1.0)

    def test_restore_malformed_raises_value_error(self):
        with pytest.raises(ValueError):
            AnchorSpatialProvider().restore(b'{"anchors": [{"name": "x"}]}')

    @pytest.mark.parametrize("reference", [5, [1.0, 2.0], "abc"])
    def test_malformed_reference_raises_value_error(self, reference):
        """A reference that is not three numbers is a parse error."""
        blob = json.dumps({"anchors": [], "reference": reference}).encode("utf-8")
        with pytest.raises(ValueError):
            AnchorSpatialProvider().restore(blob)

    def test_non_finite_floor_height_raises_value_error(self):
        blob = json.dumps({"anchors": [], "floor_height": "nan"}).encode("utf-8")
        with pytest.raises(ValueError):
            AnchorSpatialProvider().restore(blob)

    def test_parse_snapshot_leaves_provider_alone(self):
        """Parsing reports floor and reference without adopting them."""
        provider = AnchorSpatialProvider(floor_height=-1.0, reference=(9.0, 9.0, 9.0))
        blob = json.dumps({
            "floor_height": 0.5,
            "reference": [1.0, 2.0, 3.0],
            "anchors": [{"name": "0", "position": [4.0, 0.0, 0.0]}],
        }).encode("utf-8")

        world = provider.parse_snapshot(blob)

        assert world.positions == [(4.0, 0.0, 0.0)]
        assert world.floor_height == 0.5
        assert world.reference == (1.0, 2.0, 3.0)
        assert provider.floor_height == -1.0
        assert provider.reference_position() == (9.0, 9.0, 9.0)

        provider.apply_snapshot(world)
        assert provider.floor_height == 0.5
        assert provider.reference_position() == (1.0, 2.0, 3.0)
