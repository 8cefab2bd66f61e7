"""Shared test fixtures."""

from pathlib import Path

import pytest

TREE_DOC = """\
Claims {1|root|Main claim} and support {1a|1|Evidence} plus {1b|1|Counterpoint}.

Aside {s|root|lonely}.

Orphan {x|missing|dangling}.
"""

CONNECTOR_DOC = """\
{a|margin|red} first line
{b|2} second line
{a} end of a
{b} end of b
"""


@pytest.fixture
def tree_doc() -> str:
    """Return a document with one connected tree, one standalone node and one orphan."""
    return TREE_DOC


@pytest.fixture
def tree_doc_path(tmp_path: Path) -> Path:
    """Write TREE_DOC to disk and return its path."""
    path = tmp_path / "tree.md"
    path.write_text(TREE_DOC, encoding="utf-8")
    return path


@pytest.fixture
def connector_doc() -> str:
    """Return a document with two overlapping connectors."""
    return CONNECTOR_DOC


@pytest.fixture
def connector_doc_path(tmp_path: Path) -> Path:
    """Write CONNECTOR_DOC to disk and return its path."""
    path = tmp_path / "connectors.md"
    path.write_text(CONNECTOR_DOC, encoding="utf-8")
    return path
