"""Build ordered forests from one scope's tree markers.

Inconsistent input never raises: unknown parents, self-parents and cycles all
turn the offending node into an extra root, so every record ends up in
exactly one tree.
"""

from collections.abc import Iterator

from loguru import logger

from discourse_trees.config import ROOT_PARENT_ID
from discourse_trees.models.markers import ScopeCollection, TreeData, TreeNode


def _is_ancestor(candidate: TreeNode, node: TreeNode, parent_of: dict[int, TreeNode]) -> bool:
    """Check whether candidate is node itself or one of its attached ancestors."""
    seen: set[int] = set()
    current: TreeNode | None = node
    while current is not None and id(current) not in seen:
        if current is candidate:
            return True
        seen.add(id(current))
        current = parent_of.get(id(current))
    return False


def _sort_children(root: TreeNode) -> None:
    """Sort every children list below root by position, depth first.

    Uses an explicit stack and a visited set per path, so a cycle that slipped
    through attachment stops the descent instead of looping.
    """
    # Stack entries: (node, ids on the path to node)
    stack: list[tuple[TreeNode, frozenset[int]]] = [(root, frozenset())]
    while stack:
        node, path = stack.pop()
        if id(node) in path:
            logger.warning("Circular reference detected at node {!r}", node.id)
            continue
        node.children.sort(key=lambda child: child.position)
        child_path = path | {id(node)}
        stack.extend((child, child_path) for child in reversed(node.children))


def build_forest(collection: ScopeCollection) -> list[TreeData]:
    """Build the trees declared by one scope's records.

    Args:
        collection: Records of a single scope.

    Returns:
        One TreeData per root. Connected trees come first, standalone nodes
        last, each group ordered by document position.
    """
    records = sorted(collection.records, key=lambda r: r.start_offset)

    nodes = [
        TreeNode(
            id=record.id,
            parent_id=None if record.parent_id == ROOT_PARENT_ID else record.parent_id or None,
            label=record.label,
            position=record.start_offset,
        )
        for record in records
    ]
    # A later duplicate id replaces the earlier node in the index; both nodes are kept.
    nodes_by_id = {node.id: node for node in nodes}

    roots: list[TreeNode] = []
    parent_of: dict[int, TreeNode] = {}
    has_children: set[int] = set()

    for record, node in zip(records, nodes, strict=True):
        if record.parent_id == ROOT_PARENT_ID or not record.parent_id:
            roots.append(node)
            continue

        parent = nodes_by_id.get(record.parent_id)
        if parent is None:
            logger.debug(
                "Parent {!r} not found for {!r}, treating as root", record.parent_id, record.id
            )
            roots.append(node)
            continue

        if parent is node or record.id == record.parent_id:
            logger.warning("Node {!r} cannot be its own parent, treating as root", record.id)
            roots.append(node)
            continue

        if _is_ancestor(node, parent, parent_of):
            logger.warning(
                "Circular reference between {!r} and {!r}, treating {!r} as root",
                record.id,
                record.parent_id,
                record.id,
            )
            roots.append(node)
            continue

        parent.children.append(node)
        parent_of[id(node)] = parent
        has_children.add(id(parent))

    for node in nodes:
        node.is_standalone = id(node) not in parent_of and id(node) not in has_children

    roots.sort(key=lambda root: (root.is_standalone, root.position))

    trees: list[TreeData] = []
    for root in roots:
        _sort_children(root)
        trees.append(
            TreeData(
                root=root,
                position=root.position,
                scope_start=collection.scope_start,
                scope_end=collection.scope_end,
                is_standalone_tree=root.is_standalone,
            )
        )

    logger.debug("Built {} trees from {} records", len(trees), len(records))
    return trees


def sort_trees_by_position(trees: list[TreeData]) -> list[TreeData]:
    """Return trees ordered by document position, children sorted as well."""
    ordered = sorted(trees, key=lambda tree: tree.position)
    for tree in ordered:
        _sort_children(tree.root)
    return ordered


def iter_nodes(root: TreeNode) -> Iterator[TreeNode]:
    """Yield root and its descendants in pre-order, each node at most once."""
    seen: set[int] = set()
    stack = [root]
    while stack:
        node = stack.pop()
        if id(node) in seen:
            continue
        seen.add(id(node))
        yield node
        stack.extend(reversed(node.children))


def count_nodes(tree: TreeData) -> int:
    """Count the nodes of a tree."""
    return sum(1 for _ in iter_nodes(tree.root))
