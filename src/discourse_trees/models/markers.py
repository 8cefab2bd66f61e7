"""Domain models for tree markers and connector markers."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


@dataclass(frozen=True)
class MarkerRecord:
    """A parsed `{id|parent_id|label}` tree marker."""

    id: str
    parent_id: str
    label: str
    start_offset: int
    end_offset: int
    scope_start: int | None = None
    scope_end: int | None = None


@dataclass
class TreeNode:
    """A node in a built forest.

    Owned by exactly one parent's `children` list, or by a TreeData as its root.
    """

    id: str
    parent_id: str | None
    label: str
    position: int
    children: list[TreeNode] = field(default_factory=list)
    is_standalone: bool = True


@dataclass
class TreeData:
    """One tree of a forest, rooted at `root`."""

    root: TreeNode
    position: int
    scope_start: int | None = None
    scope_end: int | None = None
    is_standalone_tree: bool = False


@dataclass(frozen=True)
class ScopeCollection:
    """Tree markers sharing one textual scope (paragraph)."""

    records: tuple[MarkerRecord, ...]
    scope_start: int | None = None
    scope_end: int | None = None


class ConnectionPoint(Enum):
    """Where a child connector joins its parent."""

    TOP = "top"
    MIDDLE = "middle"
    BOTTOM = "bottom"


@dataclass(frozen=True)
class ConnectorOptions:
    """Options parsed from the pipe-separated part of a connector marker."""

    arrow_type: str = "diagonal"
    plugs: tuple[str, ...] = ()
    track: int = 0
    opacity: float = 1.0
    color: str | None = None
    connection_points: int | None = None


@dataclass(frozen=True)
class ConnectorMarker:
    """A single `{identifier:label|options...}` connector marker."""

    identifier: str
    label: str | None
    is_start: bool
    options: ConnectorOptions
    start_offset: int = 0
    end_offset: int = 0


@dataclass(frozen=True)
class ConnectorEnd:
    """One endpoint (start or end) of a connector pair."""

    start_offset: int
    end_offset: int
    track: int = 0
    color: str | None = None
    label_text: str | None = None
    marker: ConnectorMarker | None = None


@dataclass
class HierarchyInfo:
    """Inferred position of a connector in the connector hierarchy."""

    level: int = 0
    parent_id: str | None = None
    child_ids: list[str] = field(default_factory=list)
    connection_point: ConnectionPoint | None = None
    is_junction: bool = False


@dataclass
class ConnectorPair:
    """All markers sharing one connector identifier."""

    identifier: str
    start: ConnectorEnd | None = None
    ends: list[ConnectorEnd] = field(default_factory=list)
    hierarchy: HierarchyInfo | None = None
