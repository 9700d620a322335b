"""Typer-based CLI for CodeGraph Viz layouts."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from . import __version__, config, config_manager, filters, force, hierarchical
from .clusters import classify, cluster_stats
from .graph_io import GraphFormatError, load_graph, node_to_dict
from .models import ClusterType, EdgeType, FilterState, Node, NodeType, valid_edges
from .transform import demo_document

console = Console()

app = typer.Typer(
    help="🧭 CodeGraph Viz: layout engine for code dependency graphs.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

config_app = typer.Typer(
    help="⚙️  Configuration: default layout tunables.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
app.add_typer(config_app, name="config")


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"CodeGraph Viz v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Log layout internals to stderr."),
):
    """CodeGraph Viz: classify, filter and lay out code dependency graphs."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


def _load(graph_file: Path):
    try:
        return load_graph(graph_file)
    except GraphFormatError as exc:
        typer.echo(f"❌ {exc}", err=True)
        raise typer.Exit(code=1)


@app.command("classify")
def classify_paths(paths: List[str] = typer.Argument(..., help="Source file paths to classify.")):
    """Show the cluster each file path belongs to."""
    for path in paths:
        typer.echo(f"{classify(path).value:<9} {path}")


@app.command("demo")
def demo():
    """Print the demo graph as a JSON document."""
    typer.echo(json.dumps(demo_document(), indent=2))


@app.command("stats")
def stats(graph_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Graph JSON document.")):
    """Summarize nodes, edges, orphans and clusters."""
    nodes, edges = _load(graph_file)
    usable = valid_edges(nodes, edges)
    touched = {e.source for e in usable} | {e.target for e in usable}
    orphans = [n for n in nodes if n.id not in touched]

    typer.echo(
        f"Nodes: {len(nodes)} | Edges: {len(edges)} | Orphans: {len(orphans)} "
        f"| Dangling edges: {len(edges) - len(usable)}"
    )

    table = Table(title="Clusters")
    table.add_column("Cluster")
    table.add_column("Nodes", justify="right")
    for cluster, count in cluster_stats(nodes).items():
        table.add_row(cluster.value, str(count))
    console.print(table)


@app.command("filter")
def filter_graph(
    graph_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Graph JSON document."),
    node_types: Optional[List[str]] = typer.Option(None, "--type", "-t", help="Allowed node type (repeatable)."),
    edge_types: Optional[List[str]] = typer.Option(None, "--edge-type", "-e", help="Allowed edge type (repeatable)."),
    clusters: Optional[List[str]] = typer.Option(None, "--cluster", "-c", help="Allowed cluster (repeatable)."),
    path: Optional[str] = typer.Option(None, "--path", "-p", help="Keep nodes whose file path contains this."),
    search: str = typer.Option("", "--search", "-s", help="Highlight nodes matching this text."),
):
    """Apply filters and list the visible nodes, marking highlighted ones."""
    nodes, edges = _load(graph_file)
    state = FilterState(file_path=path, search_query=search)
    if node_types:
        state.node_types = {NodeType(t) for t in node_types}
    if edge_types:
        state.edge_types = {EdgeType(t) for t in edge_types}
    if clusters:
        state.clusters = {ClusterType(c) for c in clusters}

    result = filters.apply(nodes, edges, state)

    if not result.filtered_nodes:
        typer.echo("No nodes match the current filters.")
        raise typer.Exit(code=0)

    for node in result.filtered_nodes:
        marker = "*" if node.id in result.highlighted_node_ids else " "
        typer.echo(f"{marker} [{node.data.node_type.value}] {node.data.name}  ({node.data.file_path})")
    typer.echo(
        f"\nNodes: {len(result.filtered_nodes)} | Edges: {len(result.filtered_edges)} "
        f"| Highlighted: {len(result.highlighted_node_ids)}"
    )


def _print_positions(nodes: List[Node], as_json: bool) -> None:
    if as_json:
        typer.echo(json.dumps([node_to_dict(n) for n in nodes], indent=2))
        return
    table = Table(title="Layout")
    table.add_column("Id")
    table.add_column("Name")
    table.add_column("Cluster")
    table.add_column("x", justify="right")
    table.add_column("y", justify="right")
    for node in nodes:
        table.add_row(node.id, node.data.name, node.data.cluster.value, f"{node.position.x:.1f}", f"{node.position.y:.1f}")
    console.print(table)


@app.command("layout")
def layout(
    graph_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Graph JSON document."),
    mode: str = typer.Option("hierarchical", "--mode", "-m", help="Layout mode: hierarchical or force."),
    direction: Optional[str] = typer.Option(None, "--direction", "-d", help="Rank direction: TB, BT, LR or RL."),
    iterations: int = typer.Option(config.DEFAULT_ITERATIONS, min=0, max=5000, help="Force simulation ticks."),
    as_json: bool = typer.Option(False, "--json", help="Print positions as JSON."),
):
    """Compute node positions and print them."""
    mode = mode.lower()
    if mode not in {"hierarchical", "force"}:
        raise typer.BadParameter("Mode must be one of: hierarchical, force")

    nodes, edges = _load(graph_file)
    if mode == "hierarchical":
        try:
            placed = hierarchical.layout(
                nodes, edges, direction=direction, config=config_manager.load_hierarchical_config()
            )
        except ValueError as exc:
            raise typer.BadParameter(str(exc))
    else:
        placed = force.solve(nodes, edges, config_manager.load_layout_config(), iterations=iterations)

    if not placed:
        typer.echo("Graph has no nodes.")
        raise typer.Exit(code=0)
    _print_positions(placed, as_json)


@config_app.command("show")
def config_show():
    """Show the effective layout configuration."""
    table = Table(title=f"Layout config ({config.CONFIG_FILE})")
    table.add_column("Setting")
    table.add_column("Value", justify="right")
    for key, value in asdict(config_manager.load_layout_config()).items():
        table.add_row(key, f"{value:g}")
    console.print(table)


@config_app.command("set")
def config_set(
    cluster_strength: Optional[float] = typer.Option(None, help="Pull toward cluster anchors."),
    link_distance: Optional[float] = typer.Option(None, help="Target edge length."),
    charge_strength: Optional[float] = typer.Option(None, help="Node repulsion (negative repels)."),
    center_strength: Optional[float] = typer.Option(None, help="Pull toward the origin."),
    collision_radius: Optional[float] = typer.Option(None, help="Fallback collision radius."),
):
    """Persist default layout tunables."""
    values = {
        "cluster_strength": cluster_strength,
        "link_distance": link_distance,
        "charge_strength": charge_strength,
        "center_strength": center_strength,
        "collision_radius": collision_radius,
    }
    values = {k: v for k, v in values.items() if v is not None}
    if not values:
        raise typer.BadParameter("Provide at least one setting to change.")
    if not config_manager.save_layout_config(**values):
        typer.echo(f"❌ Could not write {config.CONFIG_FILE}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Saved {', '.join(sorted(values))} to {config.CONFIG_FILE}")


@config_app.command("reset")
def config_reset():
    """Forget saved layout tunables."""
    if not config_manager.clear_layout_config():
        typer.echo(f"❌ Could not write {config.CONFIG_FILE}", err=True)
        raise typer.Exit(code=1)
    typer.echo("Layout configuration reset to defaults.")


if __name__ == "__main__":
    app()
