"""Parse `{identifier:label|option|...}` connector markers.

A marker carrying at least one pipe-separated option is the start of a
connector; a bare `{identifier}` or `{identifier:label}` is one of its ends.

Options are classified in a fixed order: arrow type keyword, plug keyword,
`arrows:N` connection-point token, integer track, opacity in (0, 1), and
finally color. Only the first unclassified token is kept as the color, so
the color stays stable while further options are still being typed.
"""

import re
from typing import Literal

from loguru import logger

from discourse_trees.models.markers import ConnectorMarker, ConnectorOptions

DIAGONAL = "diagonal"
MARGIN = "margin"
BRACKET = "bracket"
ARROW_TYPES: tuple[str, ...] = (DIAGONAL, MARGIN, BRACKET)

ARROW = "arrow"
NOARROW = "no-arrow"
PLUG_TYPES: tuple[str, ...] = (ARROW, NOARROW)

ARROWS_PREFIX = "arrows:"
MIN_CONNECTION_POINTS = 1
MAX_CONNECTION_POINTS = 4

CONNECTOR_MARKER_RE = re.compile(r"\{([^{}]+)\}")
_CONNECTION_POINT_RE = re.compile(r"arrows:(\d+)")
_INTEGER_RE = re.compile(r"[+-]?\d+")

OptionKind = Literal["type", "plug", "connection_points", "track", "opacity", "color"]


def classify_option(token: str) -> tuple[OptionKind, str | int | float]:
    """Classify a single option token.

    Returns:
        (kind, value) where value is already converted for numeric kinds.
    """
    if token in ARROW_TYPES:
        return "type", token
    if token in PLUG_TYPES:
        return "plug", token

    match = _CONNECTION_POINT_RE.fullmatch(token)
    if match:
        points = int(match.group(1))
        if MIN_CONNECTION_POINTS <= points <= MAX_CONNECTION_POINTS:
            return "connection_points", points

    if _INTEGER_RE.fullmatch(token):
        return "track", int(token)

    try:
        number = float(token)
    except ValueError:
        pass
    else:
        if 0 < number < 1:
            return "opacity", number

    return "color", token


def parse_connector_options(tokens: list[str]) -> ConnectorOptions:
    """Fold option tokens into a ConnectorOptions value."""
    arrow_type = DIAGONAL
    plugs: list[str] = []
    track = 0
    opacity = 1.0
    color: str | None = None
    connection_points: int | None = None

    for raw in tokens:
        token = raw.strip()
        if not token:
            continue
        kind, value = classify_option(token)
        if kind == "type":
            arrow_type = str(value)
        elif kind == "plug":
            plugs.append(str(value))
        elif kind == "connection_points":
            connection_points = int(value)
        elif kind == "track":
            track = max(0, int(value))
        elif kind == "opacity":
            opacity = float(value)
        elif color is None:
            color = str(value)

    return ConnectorOptions(
        arrow_type=arrow_type,
        plugs=tuple(plugs),
        track=track,
        opacity=opacity,
        color=color,
        connection_points=connection_points,
    )


def parse_connector_source(
    source: str,
    start_offset: int = 0,
    end_offset: int = 0,
) -> ConnectorMarker | None:
    """Parse the text between the braces of a connector marker.

    Returns:
        The parsed marker, or None when the identifier is empty.
    """
    head, *option_tokens = source.split("|")
    identifier, sep, label = head.partition(":")
    identifier = identifier.strip()
    if not identifier:
        logger.debug("Connector marker without identifier: {!r}", source)
        return None

    return ConnectorMarker(
        identifier=identifier,
        label=(label.strip() or None) if sep else None,
        is_start=bool(option_tokens),
        options=parse_connector_options(option_tokens),
        start_offset=start_offset,
        end_offset=end_offset,
    )


def find_connector_markers(text: str) -> list[ConnectorMarker]:
    """Parse every connector marker in text, in document order."""
    markers: list[ConnectorMarker] = []
    for match in CONNECTOR_MARKER_RE.finditer(text):
        marker = parse_connector_source(match.group(1), match.start(), match.end())
        if marker is not None:
            markers.append(marker)
    return markers
