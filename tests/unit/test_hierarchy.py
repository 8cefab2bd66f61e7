"""Tests for connector hierarchy inference."""

import random

import pytest

from discourse_trees.config import HierarchyThresholds
from discourse_trees.core.connectors.hierarchy import (
    connection_point_for,
    infer_connector_hierarchy,
    is_aligned,
    repair_cycles,
    track_bucket,
)
from discourse_trees.models.markers import (
    ConnectionPoint,
    ConnectorEnd,
    ConnectorPair,
    HierarchyInfo,
)


def _pair(
    identifier: str,
    start: int,
    track: int = 0,
    ends: list[int] | None = None,
) -> ConnectorPair:
    end_offsets = ends if ends is not None else [start + 50]
    return ConnectorPair(
        identifier=identifier,
        start=ConnectorEnd(start_offset=start, end_offset=start + 5, track=track),
        ends=[ConnectorEnd(start_offset=o, end_offset=o + 3) for o in end_offsets],
    )


def _by_id(pairs: list[ConnectorPair]) -> dict[str, HierarchyInfo]:
    result = {}
    for pair in pairs:
        assert pair.hierarchy is not None
        result[pair.identifier] = pair.hierarchy
    return result


@pytest.mark.parametrize(("track", "expected"), [(0, 0), (4, 0), (5, 5), (9, 5), (12, 10)])
def test_track_bucket(track: int, expected: int) -> None:
    assert track_bucket(track, 5) == expected


def test_same_bucket_connectors_form_a_junction() -> None:
    pairs = [_pair("a", 0, ends=[300, 900]), _pair("b", 100), _pair("c", 750)]
    info = _by_id(infer_connector_hierarchy(pairs))

    assert info["a"].is_junction is True
    assert info["a"].parent_id is None
    assert info["a"].level == 0
    assert info["a"].child_ids == ["b", "c"]
    assert info["b"].parent_id == "a"
    assert info["b"].connection_point is ConnectionPoint.TOP
    assert info["c"].connection_point is ConnectionPoint.BOTTOM
    assert info["b"].level == info["c"].level == 1


def test_cross_track_chain_relevels_from_root() -> None:
    pairs = [_pair("a", 0, track=0), _pair("b", 300, track=10), _pair("c", 600, track=20)]
    info = _by_id(infer_connector_hierarchy(pairs))

    assert (info["a"].parent_id, info["b"].parent_id, info["c"].parent_id) == ("b", "c", None)
    assert (info["c"].level, info["b"].level, info["a"].level) == (0, 1, 2)
    assert info["a"].connection_point is ConnectionPoint.MIDDLE


def test_second_cross_track_child_makes_a_junction() -> None:
    pairs = [
        _pair("x", 100, track=0),
        _pair("y", 300, track=20),
        _pair("p", 0, track=10, ends=[50, 400]),
    ]
    info = _by_id(infer_connector_hierarchy(pairs))

    assert info["p"].parent_id is None
    assert info["p"].is_junction is True
    assert info["p"].child_ids == ["x", "y"]
    assert info["x"].connection_point is ConnectionPoint.TOP
    assert info["y"].connection_point is ConnectionPoint.BOTTOM


def test_distant_tracks_are_not_related() -> None:
    pairs = [_pair("a", 0, track=0), _pair("b", 10, track=40)]
    info = _by_id(infer_connector_hierarchy(pairs))
    assert info["a"].parent_id is None
    assert info["b"].parent_id is None


def test_custom_thresholds_limit_attachment() -> None:
    pairs = [_pair("a", 0), _pair("b", 100)]
    thresholds = HierarchyThresholds(same_track_distance=50)
    # Same bucket still groups them regardless of distance.
    info = _by_id(infer_connector_hierarchy(pairs, thresholds=thresholds))
    assert info["b"].parent_id == "a"

    far = [_pair("a", 0, track=0), _pair("b", 100, track=5)]
    narrow = HierarchyThresholds(cross_track_distance=50)
    info = _by_id(infer_connector_hierarchy(far, thresholds=narrow))
    assert info["a"].parent_id is None
    assert info["b"].parent_id is None


def test_unresolved_pairs_get_root_hierarchy() -> None:
    dangling_start = ConnectorPair(
        identifier="s", start=ConnectorEnd(start_offset=10, end_offset=15), ends=[]
    )
    dangling_end = ConnectorPair(
        identifier="e", ends=[ConnectorEnd(start_offset=20, end_offset=23)]
    )
    pairs = [_pair("a", 0), dangling_start, dangling_end, _pair("b", 30)]
    info = _by_id(infer_connector_hierarchy(pairs))

    assert info["s"] == HierarchyInfo()
    assert info["e"] == HierarchyInfo()
    assert info["a"].child_ids == ["b"]


def test_infer_returns_same_list() -> None:
    pairs = [_pair("a", 0)]
    assert infer_connector_hierarchy(pairs) is pairs


def test_empty_input() -> None:
    assert infer_connector_hierarchy([]) == []


class TestConnectionPoint:
    def test_single_end_is_middle(self) -> None:
        parent = _pair("p", 0, ends=[100])
        assert connection_point_for(parent, _pair("c", 0)) is ConnectionPoint.MIDDLE

    def test_two_ends_split_into_thirds(self) -> None:
        parent = _pair("p", 0, ends=[0, 300])
        assert connection_point_for(parent, _pair("c", 50)) is ConnectionPoint.TOP
        assert connection_point_for(parent, _pair("c", 150)) is ConnectionPoint.MIDDLE
        assert connection_point_for(parent, _pair("c", 250)) is ConnectionPoint.BOTTOM

    def test_more_ends_use_nearest_end(self) -> None:
        parent = _pair("p", 0, ends=[200, 0, 100])
        assert connection_point_for(parent, _pair("c", 10)) is ConnectionPoint.TOP
        assert connection_point_for(parent, _pair("c", 90)) is ConnectionPoint.MIDDLE
        assert connection_point_for(parent, _pair("c", 190)) is ConnectionPoint.BOTTOM

    def test_tie_goes_to_earlier_end(self) -> None:
        parent = _pair("p", 0, ends=[0, 100, 200])
        assert connection_point_for(parent, _pair("c", 50)) is ConnectionPoint.TOP


class TestIsAligned:
    def test_same_bucket_distance_is_exclusive(self) -> None:
        thresholds = HierarchyThresholds()
        assert is_aligned(_pair("a", 0), _pair("b", 999), thresholds)
        assert not is_aligned(_pair("a", 0), _pair("b", 1000), thresholds)

    def test_cross_bucket_uses_smaller_distance(self) -> None:
        thresholds = HierarchyThresholds()
        assert is_aligned(_pair("a", 0, track=0), _pair("b", 499, track=15), thresholds)
        assert not is_aligned(_pair("a", 0, track=0), _pair("b", 500, track=15), thresholds)
        assert not is_aligned(_pair("a", 0, track=0), _pair("b", 10, track=20), thresholds)


def test_repair_cycles_severs_one_link() -> None:
    a = _pair("a", 0)
    b = _pair("b", 10)
    a.hierarchy = HierarchyInfo(level=1, parent_id="b", child_ids=["b"])
    b.hierarchy = HierarchyInfo(level=1, parent_id="a", child_ids=["a"], is_junction=True)

    assert repair_cycles([a, b], {"a": a, "b": b}) == 1
    assert a.hierarchy.parent_id == "b"
    assert b.hierarchy.parent_id is None
    assert a.hierarchy.child_ids == []
    assert a.hierarchy.is_junction is False


def test_repair_cycles_leaves_forest_alone() -> None:
    pairs = [_pair("a", 0, track=0), _pair("b", 300, track=10)]
    infer_connector_hierarchy(pairs)
    assert repair_cycles(pairs, {p.identifier: p for p in pairs}) == 0


def test_random_inputs_produce_consistent_forest() -> None:
    rng = random.Random(11)
    for _ in range(25):
        pairs = [
            _pair(f"c{i}", rng.randrange(2000), track=rng.randrange(30))
            for i in range(rng.randrange(1, 15))
        ]
        info = _by_id(infer_connector_hierarchy(pairs))

        for identifier, entry in info.items():
            depth = 0
            seen = {identifier}
            parent = entry.parent_id
            while parent is not None:
                assert parent not in seen
                seen.add(parent)
                depth += 1
                parent = info[parent].parent_id
            assert entry.level == depth

            for child_id in entry.child_ids:
                assert info[child_id].parent_id == identifier
            if entry.parent_id is not None:
                assert identifier in info[entry.parent_id].child_ids


def test_repair_clears_junction_left_with_one_cross_track_child() -> None:
    p = _pair("p", 0, track=10)
    x = _pair("x", 100, track=0)
    y = _pair("y", 200, track=20)
    p.hierarchy = HierarchyInfo(level=1, parent_id="y", child_ids=["x", "y"], is_junction=True)
    x.hierarchy = HierarchyInfo(level=1, parent_id="p")
    y.hierarchy = HierarchyInfo(level=1, parent_id="p", child_ids=["p"])

    assert repair_cycles([p, x, y], {"p": p, "x": x, "y": y}) == 1
    assert y.hierarchy.parent_id is None
    assert p.hierarchy.child_ids == ["x"]
    assert p.hierarchy.is_junction is False


def test_repair_keeps_junction_of_same_bucket_group() -> None:
    p = _pair("p", 0, track=0)
    x = _pair("x", 100, track=1)
    y = _pair("y", 200, track=20)
    p.hierarchy = HierarchyInfo(level=1, parent_id="y", child_ids=["x", "y"], is_junction=True)
    x.hierarchy = HierarchyInfo(level=1, parent_id="p")
    y.hierarchy = HierarchyInfo(level=1, parent_id="p", child_ids=["p"])

    assert repair_cycles([p, x, y], {"p": p, "x": x, "y": y}) == 1
    assert p.hierarchy.child_ids == ["x"]
    assert p.hierarchy.is_junction is True


def test_pair_without_hierarchy_gets_one_during_repair() -> None:
    a = _pair("a", 0)
    assert repair_cycles([a], {"a": a}) == 0
    assert a.hierarchy == HierarchyInfo()
