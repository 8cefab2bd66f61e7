"""Tests for grouping marker records into scopes and trees."""

from discourse_trees.core.tree.grouping import group_by_scope, group_by_tree
from discourse_trees.models.markers import MarkerRecord


def _record(
    node_id: str,
    parent_id: str,
    start: int,
    scope: tuple[int, int] | None = None,
) -> MarkerRecord:
    return MarkerRecord(
        id=node_id,
        parent_id=parent_id,
        label="",
        start_offset=start,
        end_offset=start + 8,
        scope_start=scope[0] if scope else None,
        scope_end=scope[1] if scope else None,
    )


def test_group_by_scope_uses_exact_bounds() -> None:
    records = [
        _record("a", "root", 0, (0, 50)),
        _record("b", "a", 10, (0, 50)),
        _record("c", "root", 60, (60, 90)),
        _record("d", "root", 70, (60, 91)),
    ]
    collections = group_by_scope(records)
    by_scope = {(c.scope_start, c.scope_end): [r.id for r in c.records] for c in collections}
    assert by_scope == {(0, 50): ["a", "b"], (60, 90): ["c"], (60, 91): ["d"]}


def test_group_by_scope_collects_unscoped_records_in_fallback() -> None:
    records = [
        _record("a", "root", 0, (0, 50)),
        _record("x", "root", 100),
        _record("y", "x", 30),
        MarkerRecord(
            id="z", parent_id="x", label="", start_offset=200, end_offset=210, scope_start=5
        ),
    ]
    collections = group_by_scope(records)
    assert len(collections) == 2

    fallback = next(c for c in collections if c.scope_start != 0)
    assert [r.id for r in fallback.records] == ["x", "y", "z"]
    assert fallback.scope_start == 30
    assert fallback.scope_end == 210


def test_group_by_scope_keeps_every_record_once() -> None:
    records = [_record(str(i), "root", i * 10, (0, 10) if i % 2 else None) for i in range(9)]
    collections = group_by_scope(records)
    grouped = [r for c in collections for r in c.records]
    assert sorted(grouped, key=lambda r: r.start_offset) == records


def test_group_by_scope_empty_input() -> None:
    assert group_by_scope([]) == []


def test_group_by_tree_follows_parent_references() -> None:
    records = [
        _record("a", "root", 0, (0, 20)),
        _record("c", "root", 40, (40, 60)),
        _record("b", "a", 70, (70, 90)),
        _record("d", "c", 100, (100, 120)),
        _record("e", "missing", 130),
    ]
    collections = group_by_tree(records)
    components = [sorted(r.id for r in c.records) for c in collections]
    assert components == [["a", "b"], ["c", "d"], ["e"]]
    assert (collections[0].scope_start, collections[0].scope_end) == (0, 20)
    assert collections[2].scope_start is None


def test_group_by_tree_joins_siblings_through_parent() -> None:
    records = [
        _record("b", "a", 10),
        _record("c", "a", 20),
        _record("a", "root", 0),
    ]
    collections = group_by_tree(records)
    assert len(collections) == 1
    assert sorted(r.id for r in collections[0].records) == ["a", "b", "c"]
