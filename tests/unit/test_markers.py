"""Tests for the tree marker parser."""

import pytest

from discourse_trees.core.parsing.markers import find_tree_markers, parse_tree_marker
from discourse_trees.models.markers import MarkerRecord


def test_parse_returns_record_with_offsets() -> None:
    record = parse_tree_marker("{a|root|Label}", 5, 19)
    assert record == MarkerRecord(
        id="a", parent_id="root", label="Label", start_offset=5, end_offset=19
    )


def test_parse_trims_all_fields() -> None:
    record = parse_tree_marker("{ a | b |  some label  }", 0, 24)
    assert record is not None
    assert record.id == "a"
    assert record.parent_id == "b"
    assert record.label == "some label"


def test_parse_label_may_contain_pipes() -> None:
    record = parse_tree_marker("{a|b|x|y}", 0, 9)
    assert record is not None
    assert record.label == "x|y"


def test_parse_missing_label_is_empty_string() -> None:
    record = parse_tree_marker("{a|b}", 0, 5)
    assert record is not None
    assert record.label == ""


def test_parse_carries_scope_bounds() -> None:
    record = parse_tree_marker("{a|b}", 3, 8, 0, 40)
    assert record is not None
    assert (record.scope_start, record.scope_end) == (0, 40)


@pytest.mark.parametrize(
    "text",
    ["{a}", "{a|b", "{|b}", "{a|}", "{ |b}", "a|b", "{a|b}{c|d}", "{a{|b}"],
)
def test_parse_rejects_malformed_markers(text: str) -> None:
    assert parse_tree_marker(text, 0, len(text)) is None


def test_find_tree_markers_reports_offsets() -> None:
    text = "x {a|root} y {b|a|label} z"
    found = list(find_tree_markers(text))
    assert found == [("{a|root}", 2, 10), ("{b|a|label}", 13, 24)]
    for marker_text, start, end in found:
        assert text[start:end] == marker_text


def test_find_tree_markers_skips_bare_braces() -> None:
    assert list(find_tree_markers("{a} and {b}")) == []
