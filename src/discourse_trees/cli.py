"""CLI for discourse-trees (forests, connectors, id allocation, MCP server)."""

import json
from pathlib import Path
from typing import Annotated

import typer
from loguru import logger

from discourse_trees.config import resolve_color_file
from discourse_trees.core.connectors.collect import load_color_aliases
from discourse_trees.core.export import connector_to_dict, tree_to_dict
from discourse_trees.core.ids.allocator import collect_node_ids, next_id, suggest_node_marker
from discourse_trees.core.tree.markdown import render_forest_as_markdown
from discourse_trees.document import analyze_connectors, build_document_forest
from discourse_trees.logging_config import configure_logging

app = typer.Typer(help="Discourse trees: build node forests and connector hierarchies from text.")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    configure_logging(verbose=verbose)


def _read_document(path: Path) -> str:
    """Read a document, exiting with an error if it doesn't exist."""
    if not path.is_file():
        logger.error("Document not found: {}", path)
        raise typer.Exit(1)
    return path.read_text(encoding="utf-8")


@app.command()
def trees(
    path: Path = typer.Argument(..., help="Text or markdown document"),
    group_by: str = typer.Option("scope", "--group-by", "-g", help="'scope' or 'tree'"),
    max_depth: Annotated[
        int | None,
        typer.Option("--max-depth", "-m", help="Max levels below each root"),
    ] = None,
    output_json: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
) -> None:
    """Build the node forests declared by {id|parent|label} markers."""
    if group_by not in ("scope", "tree"):
        logger.error("Unknown grouping mode: {}", group_by)
        raise typer.Exit(1)

    text = _read_document(path)
    forest = build_document_forest(text, group_by=group_by)  # type: ignore[arg-type]

    if output_json:
        data = {"count": len(forest), "trees": [tree_to_dict(t) for t in forest]}
        typer.echo(json.dumps(data, indent=2))
        return

    if not forest:
        typer.echo("No tree markers found.")
        return
    typer.echo(render_forest_as_markdown(forest, max_depth=max_depth), nl=False)


@app.command()
def connectors(
    path: Path = typer.Argument(..., help="Text or markdown document"),
    colors: Annotated[
        Path | None,
        typer.Option("--colors", "-c", help="Color alias file ('name: value' lines)"),
    ] = None,
    include_unresolved: bool = typer.Option(
        False, "--all", "-a", help="Include connectors missing a start or an end"
    ),
    output_json: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
) -> None:
    """Pair connector markers and infer their hierarchy."""
    text = _read_document(path)
    aliases = load_color_aliases(colors or resolve_color_file())
    pairs = analyze_connectors(text, include_unresolved=include_unresolved)

    if output_json:
        data = {
            "count": len(pairs),
            "connectors": [connector_to_dict(p, color_aliases=aliases) for p in pairs],
        }
        typer.echo(json.dumps(data, indent=2))
        return

    if not pairs:
        typer.echo("No connectors found.")
        return

    for pair in pairs:
        info = pair.hierarchy
        if info is None:
            continue
        indent = "  " * info.level
        parts = [f"{indent}{pair.identifier}", f"level={info.level}"]
        if info.parent_id:
            point = info.connection_point.value if info.connection_point else "-"
            parts.append(f"parent={info.parent_id} ({point})")
        if info.is_junction:
            parts.append("junction")
        typer.echo("  ".join(parts))


@app.command(name="next-id")
def next_id_cmd(
    seed: str = typer.Argument(..., help="Id to derive the new id from"),
    document: Annotated[
        Path | None,
        typer.Option("--document", "-d", help="Document whose marker ids are in use"),
    ] = None,
    used: Annotated[
        list[str] | None,
        typer.Option("--used", "-u", help="Additional id already in use (repeatable)"),
    ] = None,
) -> None:
    """Print the next free node id after SEED."""
    in_use = set(used or [])
    if document is not None:
        in_use |= collect_node_ids(_read_document(document))
    typer.echo(next_id(seed, in_use))


@app.command()
def suggest(
    path: Path = typer.Argument(..., help="Text or markdown document"),
    at: int = typer.Option(..., "--at", help="Character offset of the new line"),
) -> None:
    """Suggest the node marker to insert at an offset inside a tree paragraph."""
    text = _read_document(path)
    marker = suggest_node_marker(text, at)
    if marker is None:
        typer.echo("No suggestion: offset is not inside a tree paragraph.")
        raise typer.Exit(1)
    typer.echo(marker)


@app.command()
def mcp() -> None:
    """Start the MCP server (stdio transport)."""
    from discourse_trees.mcp.server import run_mcp_server

    run_mcp_server()
