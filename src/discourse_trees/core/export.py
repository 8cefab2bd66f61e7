"""JSON-ready views of forests and connectors."""

from typing import Any

from discourse_trees.core.connectors.collect import effective_color, start_end_plugs
from discourse_trees.core.tree.forest import count_nodes
from discourse_trees.models.markers import ConnectorEnd, ConnectorPair, TreeData, TreeNode


def node_to_dict(node: TreeNode, *, _path: frozenset[int] = frozenset()) -> dict[str, Any]:
    """Serialize a node and its descendants."""
    children = [] if id(node) in _path else node.children
    return {
        "id": node.id,
        "parent_id": node.parent_id,
        "label": node.label,
        "position": node.position,
        "is_standalone": node.is_standalone,
        "children": [node_to_dict(c, _path=_path | {id(node)}) for c in children],
    }


def tree_to_dict(tree: TreeData) -> dict[str, Any]:
    """Serialize a tree with its scope and node count."""
    return {
        "position": tree.position,
        "scope_start": tree.scope_start,
        "scope_end": tree.scope_end,
        "is_standalone_tree": tree.is_standalone_tree,
        "node_count": count_nodes(tree),
        "root": node_to_dict(tree.root),
    }


def _end_to_dict(end: ConnectorEnd) -> dict[str, Any]:
    return {
        "start_offset": end.start_offset,
        "end_offset": end.end_offset,
        "track": end.track,
        "color": end.color,
        "label": end.label_text,
    }


def connector_to_dict(
    pair: ConnectorPair,
    *,
    color_aliases: dict[str, str] | None = None,
) -> dict[str, Any]:
    """Serialize a connector pair with its options and hierarchy."""
    result: dict[str, Any] = {
        "identifier": pair.identifier,
        "start": _end_to_dict(pair.start) if pair.start else None,
        "ends": [_end_to_dict(end) for end in pair.ends],
    }

    if pair.start is not None and pair.start.marker is not None:
        options = pair.start.marker.options
        start_plug, end_plug = start_end_plugs(options)
        result["options"] = {
            "type": options.arrow_type,
            "opacity": options.opacity,
            "color": effective_color(options.color, color_aliases or {}),
            "start_plug": start_plug,
            "end_plug": end_plug,
            "connection_points": options.connection_points,
        }

    info = pair.hierarchy
    if info is not None:
        result["hierarchy"] = {
            "level": info.level,
            "parent_id": info.parent_id,
            "child_ids": list(info.child_ids),
            "connection_point": info.connection_point.value if info.connection_point else None,
            "is_junction": info.is_junction,
        }
    return result
