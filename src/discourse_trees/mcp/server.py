"""MCP server exposing forest building, connector inference and id allocation."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any

from loguru import logger
from mcp.server.fastmcp import Context, FastMCP

from discourse_trees.config import HierarchyThresholds, resolve_color_file
from discourse_trees.core.connectors.collect import load_color_aliases
from discourse_trees.core.export import connector_to_dict, tree_to_dict
from discourse_trees.core.ids.allocator import IdCache, suggest_node_marker
from discourse_trees.core.tree.markdown import render_forest_as_markdown
from discourse_trees.document import analyze_connectors, build_document_forest

# --- Core functions (testable without MCP context) ---


def discourse_build_forest(
    text: str,
    *,
    group_by: str = "scope",
    output_format: str = "json",
    max_depth: int | None = None,
) -> dict[str, Any]:
    """Build the node forests declared by tree markers in text.

    Args:
        text: Document text containing {id|parent|label} markers.
        group_by: "scope" (one forest per paragraph) or "tree".
        output_format: "json" (structured) or "markdown".
        max_depth: Max levels below each root in markdown output.
    """
    if group_by not in ("scope", "tree"):
        return {"error": f"Unknown grouping mode '{group_by}'.", "trees": [], "count": 0}
    if output_format not in ("json", "markdown"):
        return {"error": f"Unknown output format '{output_format}'.", "trees": [], "count": 0}

    forest = build_document_forest(text, group_by=group_by)  # type: ignore[arg-type]

    if output_format == "markdown":
        return {
            "count": len(forest),
            "content": render_forest_as_markdown(forest, max_depth=max_depth),
        }
    return {"count": len(forest), "trees": [tree_to_dict(t) for t in forest]}


def discourse_infer_connectors(
    text: str,
    *,
    color_aliases: dict[str, str] | None = None,
    include_unresolved: bool = False,
    thresholds: HierarchyThresholds | None = None,
) -> dict[str, Any]:
    """Pair connector markers in text and infer their hierarchy.

    Args:
        text: Document text containing connector markers.
        color_aliases: Color alias table for effective colors.
        include_unresolved: Include connectors missing a start or an end.
        thresholds: Inference constants.
    """
    pairs = analyze_connectors(
        text, thresholds=thresholds, include_unresolved=include_unresolved
    )
    return {
        "count": len(pairs),
        "connectors": [connector_to_dict(p, color_aliases=color_aliases) for p in pairs],
    }


def discourse_next_id(cache: IdCache, *, seed: str, text: str) -> dict[str, Any]:
    """Allocate the next free node id after seed.

    Args:
        cache: Id cache for the document.
        seed: Id to derive the new id from.
        text: Document text whose marker ids are in use.
    """
    if not seed.strip():
        return {"error": "No seed id provided."}
    new_id = cache.allocate(seed.strip(), text)
    return {"id": new_id, "seed": seed.strip()}


def discourse_suggest_node(cache: IdCache, *, text: str, position: int) -> dict[str, Any]:
    """Suggest a node marker to insert at position.

    Args:
        cache: Id cache for the document.
        text: Document text.
        position: Character offset of the new line.
    """
    if not 0 <= position <= len(text):
        return {"error": f"Position {position} is outside the document (0-{len(text)})."}
    marker = suggest_node_marker(text, position, cache=cache)
    if marker is None:
        return {"marker": None, "reason": "Position is not inside a tree paragraph."}
    return {"marker": marker}


# --- MCP Server Setup ---


@dataclass
class ServerContext:
    """Shared resources for the MCP server lifetime."""

    id_cache: IdCache
    color_aliases: dict[str, str]
    id_cache_lock: asyncio.Lock = field(default_factory=asyncio.Lock)


@asynccontextmanager
async def server_lifespan(_server: FastMCP) -> AsyncIterator[ServerContext]:
    """Load color aliases and create the id cache on startup."""
    color_file = resolve_color_file()
    aliases = load_color_aliases(color_file)
    if aliases:
        logger.info("Loaded {} color aliases from {}", len(aliases), color_file)
    yield ServerContext(id_cache=IdCache(), color_aliases=aliases)


mcp_server = FastMCP(
    "discourse-trees",
    instructions="""\
Tools for inline tree and connector markers in plain text.

- Tree markers look like {id|parent_id|label}; parent_id "root" starts a tree.
  discourse_build_forest_tool returns one forest per paragraph.
- Connector markers look like {name|options} (start) and {name} (end).
  discourse_infer_connectors_tool pairs them and infers which connector hangs
  off which, with TOP/MIDDLE/BOTTOM attachment points.
- discourse_next_id_tool and discourse_suggest_node_tool allocate fresh node
  ids that do not collide with the document's existing ones.
""",
    lifespan=server_lifespan,
)


def _ctx(mcp_ctx: Context) -> ServerContext:
    return mcp_ctx.request_context.lifespan_context  # type: ignore[return-value]


# --- MCP Tool Wrappers ---


@mcp_server.tool()
async def discourse_build_forest_tool(
    text: str,
    group_by: str = "scope",
    output_format: str = "json",
    max_depth: int | None = None,
) -> dict[str, Any]:
    """Build node forests from {id|parent_id|label} markers.

    Args:
        text: Document text.
        group_by: "scope" (per paragraph) or "tree" (per connected component).
        output_format: "json" (structured) or "markdown".
        max_depth: Max levels below each root in markdown output.
    """
    return discourse_build_forest(
        text, group_by=group_by, output_format=output_format, max_depth=max_depth
    )


@mcp_server.tool()
async def discourse_infer_connectors_tool(
    ctx: Context,
    text: str,
    include_unresolved: bool = False,
) -> dict[str, Any]:
    """Pair connector markers and infer their hierarchy.

    Args:
        text: Document text.
        include_unresolved: Include connectors missing a start or an end.
    """
    return discourse_infer_connectors(
        text,
        color_aliases=_ctx(ctx).color_aliases,
        include_unresolved=include_unresolved,
    )


@mcp_server.tool()
async def discourse_next_id_tool(ctx: Context, seed: str, text: str) -> dict[str, Any]:
    """Allocate the next node id after seed that the document does not use.

    Args:
        seed: Id to derive the new id from (e.g. "1a" -> "1b").
        text: Document text whose marker ids are in use.
    """
    server_ctx = _ctx(ctx)
    async with server_ctx.id_cache_lock:
        return discourse_next_id(server_ctx.id_cache, seed=seed, text=text)


@mcp_server.tool()
async def discourse_suggest_node_tool(ctx: Context, text: str, position: int) -> dict[str, Any]:
    """Suggest the node marker to insert on a new line inside a tree paragraph.

    Args:
        text: Document text.
        position: Character offset of the new line.
    """
    server_ctx = _ctx(ctx)
    async with server_ctx.id_cache_lock:
        return discourse_suggest_node(server_ctx.id_cache, text=text, position=position)


def run_mcp_server() -> None:
    """Run the MCP server with stdio transport."""
    from discourse_trees.logging_config import configure_logging

    configure_logging(verbose=False)
    mcp_server.run(transport="stdio")
