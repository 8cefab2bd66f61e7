"""Associate connector markers into start/end pairs."""

from pathlib import Path

from loguru import logger

from discourse_trees.config import DEFAULT_CONNECTOR_COLOR
from discourse_trees.core.parsing.connector import ARROW, NOARROW
from discourse_trees.models.markers import (
    ConnectorEnd,
    ConnectorMarker,
    ConnectorOptions,
    ConnectorPair,
)


def marker_to_end(marker: ConnectorMarker) -> ConnectorEnd:
    """Turn a parsed marker into a connector endpoint."""
    return ConnectorEnd(
        start_offset=marker.start_offset,
        end_offset=marker.end_offset,
        track=marker.options.track,
        color=marker.options.color,
        label_text=marker.label,
        marker=marker,
    )


def collect_connector_pairs(markers: list[ConnectorMarker]) -> list[ConnectorPair]:
    """Group markers by identifier, in first-seen order.

    A marker with options is the start of its connector (a later start
    replaces an earlier one); every bare marker is one more end.
    """
    pairs: dict[str, ConnectorPair] = {}
    for marker in markers:
        pair = pairs.setdefault(marker.identifier, ConnectorPair(identifier=marker.identifier))
        if marker.is_start:
            if pair.start is not None:
                logger.debug("Connector {!r} has more than one start", marker.identifier)
            pair.start = marker_to_end(marker)
        else:
            pair.ends.append(marker_to_end(marker))
    return list(pairs.values())


def is_resolved(pair: ConnectorPair) -> bool:
    """A connector can be drawn once it has a start and at least one end."""
    return pair.start is not None and len(pair.ends) > 0


def start_end_plugs(options: ConnectorOptions) -> tuple[str, str]:
    """Return (start_plug, end_plug) for a connector.

    One plug keyword sets the end plug; two set the start and end plugs.
    """
    start_plug, end_plug = NOARROW, ARROW
    if len(options.plugs) == 1:
        end_plug = options.plugs[0]
    elif len(options.plugs) >= 2:
        start_plug, end_plug = options.plugs[0], options.plugs[1]
    return start_plug, end_plug


def parse_color_aliases(text: str) -> dict[str, str]:
    """Parse `name: value` lines into a color alias mapping."""
    aliases: dict[str, str] = {}
    for line in text.splitlines():
        parts = line.replace(" ", "").split(":")
        if len(parts) > 1 and parts[1]:
            aliases[parts[0]] = parts[1]
    return aliases


def load_color_aliases(path: Path | None) -> dict[str, str]:
    """Read color aliases from path, returning {} when there is no file."""
    if path is None:
        return {}
    try:
        return parse_color_aliases(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        logger.warning("Color alias file not found: {}", path)
        return {}


def effective_color(
    color: str | None,
    aliases: dict[str, str],
    default: str = DEFAULT_CONNECTOR_COLOR,
) -> str:
    """Resolve a connector color through the alias table."""
    if not color:
        return default
    return aliases.get(color, color)
