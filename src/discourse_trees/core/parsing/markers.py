"""Parse `{id|parent_id|label}` tree markers out of text."""

import re
from collections.abc import Iterator

from loguru import logger

from discourse_trees.models.markers import MarkerRecord

# id and parent_id exclude braces and pipes; the optional label may contain pipes.
TREE_MARKER_RE = re.compile(r"\{([^{}|]+)\|([^{}|]+)(?:\|([^{}]*))?\}")


def parse_tree_marker(
    marker_text: str,
    start_offset: int,
    end_offset: int,
    scope_start: int | None = None,
    scope_end: int | None = None,
) -> MarkerRecord | None:
    """Parse one tree marker.

    Args:
        marker_text: The candidate substring, braces included.
        start_offset: Offset of the marker in the source text.
        end_offset: Offset just past the marker.
        scope_start: Start of the enclosing scope, if known.
        scope_end: End of the enclosing scope, if known.

    Returns:
        The parsed record, or None when the text is not a tree marker.
    """
    match = TREE_MARKER_RE.fullmatch(marker_text)
    if match is None:
        logger.debug("Not a tree marker: {!r}", marker_text)
        return None

    node_id, parent_id, label = match.groups()
    node_id = node_id.strip()
    if not node_id:
        logger.debug("Tree marker without id: {!r}", marker_text)
        return None

    return MarkerRecord(
        id=node_id,
        parent_id=parent_id.strip(),
        label=label.strip() if label else "",
        start_offset=start_offset,
        end_offset=end_offset,
        scope_start=scope_start,
        scope_end=scope_end,
    )


def find_tree_markers(text: str) -> Iterator[tuple[str, int, int]]:
    """Yield (marker_text, start, end) for every tree marker candidate in text."""
    for match in TREE_MARKER_RE.finditer(text):
        yield match.group(0), match.start(), match.end()
