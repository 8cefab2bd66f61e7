"""Protocols for the collaborators the marker pipeline depends on."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class ScopeResolverProtocol(Protocol):
    """Protocol for locating the textual scope around an offset."""

    def get_scope_boundaries(self, position: int, text: str) -> tuple[int, int] | None:
        """Return (start, end) of the scope containing position, or None if unknown."""
        ...


@runtime_checkable
class IdentifierSourceProtocol(Protocol):
    """Protocol for listing identifiers already used in a document."""

    def get_all_identifiers_in_use(self, text: str) -> set[str]:
        """Return every node identifier present in the text."""
        ...
