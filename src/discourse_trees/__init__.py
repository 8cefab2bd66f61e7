"""Inline tree markers and connector hierarchies for plain text."""

from discourse_trees.core.connectors.hierarchy import infer_connector_hierarchy
from discourse_trees.core.ids.allocator import IdCache, next_id
from discourse_trees.core.tree.forest import build_forest
from discourse_trees.core.tree.grouping import group_by_scope
from discourse_trees.protocols import IdentifierSourceProtocol, ScopeResolverProtocol

__all__ = [
    "IdCache",
    "IdentifierSourceProtocol",
    "ScopeResolverProtocol",
    "build_forest",
    "group_by_scope",
    "infer_connector_hierarchy",
    "next_id",
]
