"""Run the marker pipeline over a whole document."""

from typing import Literal

from loguru import logger

from discourse_trees.config import HierarchyThresholds
from discourse_trees.core.connectors.collect import collect_connector_pairs, is_resolved
from discourse_trees.core.connectors.hierarchy import infer_connector_hierarchy
from discourse_trees.core.parsing.connector import find_connector_markers
from discourse_trees.core.parsing.markers import find_tree_markers, parse_tree_marker
from discourse_trees.core.text.scope import (
    ParagraphScopeResolver,
    find_excluded_ranges,
    range_within_excluded,
)
from discourse_trees.core.tree.forest import build_forest, sort_trees_by_position
from discourse_trees.core.tree.grouping import group_by_scope, group_by_tree
from discourse_trees.models.markers import ConnectorPair, MarkerRecord, TreeData
from discourse_trees.protocols import ScopeResolverProtocol

GroupingMode = Literal["scope", "tree"]


def extract_tree_records(
    text: str,
    *,
    scope_resolver: ScopeResolverProtocol | None = None,
) -> list[MarkerRecord]:
    """Parse every tree marker outside code and math, tagged with its scope."""
    resolver = scope_resolver or ParagraphScopeResolver()
    excluded = find_excluded_ranges(text)

    records: list[MarkerRecord] = []
    for marker_text, start, end in find_tree_markers(text):
        if range_within_excluded(start, end, excluded):
            logger.debug("Skipping marker in excluded context at {}", start)
            continue
        bounds = resolver.get_scope_boundaries(start, text)
        scope_start, scope_end = bounds if bounds is not None else (None, None)
        record = parse_tree_marker(marker_text, start, end, scope_start, scope_end)
        if record is not None:
            records.append(record)
    return records


def build_document_forest(
    text: str,
    *,
    group_by: GroupingMode = "scope",
    scope_resolver: ScopeResolverProtocol | None = None,
) -> list[TreeData]:
    """Build every tree declared in text, ordered by document position.

    Args:
        text: Document text.
        group_by: "scope" builds one forest per paragraph; "tree" groups
            markers by their parent references regardless of paragraphs.
        scope_resolver: Scope collaborator, paragraphs by default.
    """
    records = extract_tree_records(text, scope_resolver=scope_resolver)
    if not records:
        return []

    if group_by == "scope":
        collections = group_by_scope(records)
    elif group_by == "tree":
        collections = group_by_tree(records)
    else:
        msg = f"Unknown grouping mode: {group_by!r}"
        raise ValueError(msg)

    trees: list[TreeData] = []
    for collection in collections:
        trees.extend(build_forest(collection))

    logger.debug("Document has {} markers in {} trees", len(records), len(trees))
    return sort_trees_by_position(trees)


def extract_connector_pairs(text: str) -> list[ConnectorPair]:
    """Parse connector markers outside code and math and pair them by identifier."""
    excluded = find_excluded_ranges(text)
    markers = [
        marker
        for marker in find_connector_markers(text)
        if not range_within_excluded(marker.start_offset, marker.end_offset, excluded)
    ]
    return collect_connector_pairs(markers)


def analyze_connectors(
    text: str,
    *,
    thresholds: HierarchyThresholds | None = None,
    include_unresolved: bool = False,
) -> list[ConnectorPair]:
    """Extract connector pairs from text and infer their hierarchy.

    Args:
        text: Document text.
        thresholds: Inference constants, defaults from config.
        include_unresolved: Keep pairs missing a start or an end.
    """
    pairs = extract_connector_pairs(text)
    if not include_unresolved:
        pairs = [pair for pair in pairs if is_resolved(pair)]
    return infer_connector_hierarchy(pairs, thresholds=thresholds)
