"""Render built forests as markdown."""

import io

from discourse_trees.models.markers import TreeData, TreeNode


def _render_node(
    out: io.StringIO,
    node: TreeNode,
    *,
    depth: int,
    max_depth: int | None,
    include_ids: bool,
    path: frozenset[int],
) -> None:
    indent = "    " * depth
    text = node.label or node.id
    if include_ids and node.label:
        text = f"{node.label} ({node.id})"
    out.write(f"{indent}- {text}\n")

    if not node.children or id(node) in path:
        return

    # Truncation indicator when children are cut off by max_depth
    if max_depth is not None and depth >= max_depth:
        child_indent = "    " * (depth + 1)
        count = len(node.children)
        noun = "child" if count == 1 else "children"
        out.write(f"{child_indent}- ... ({count} more {noun}, id={node.id})\n")
        return

    for child in node.children:
        _render_node(
            out,
            child,
            depth=depth + 1,
            max_depth=max_depth,
            include_ids=include_ids,
            path=path | {id(node)},
        )


def render_forest_as_markdown(
    trees: list[TreeData],
    *,
    max_depth: int | None = None,
    include_ids: bool = True,
) -> str:
    """Render trees as indented markdown bullet lists, one block per tree.

    Args:
        trees: Trees to render, in the order given.
        max_depth: Max levels below each root to include (None = unlimited).
        include_ids: Append node ids to labelled nodes.

    Returns:
        Markdown string with bullet-list hierarchy.
    """
    out = io.StringIO()
    for index, tree in enumerate(trees):
        if index:
            out.write("\n")
        _render_node(
            out,
            tree.root,
            depth=0,
            max_depth=max_depth,
            include_ids=include_ids,
            path=frozenset(),
        )
    return out.getvalue()
