"""Typer-based CLI for DepGraph dependency extraction."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from . import __version__, config_manager
from .cli_watch import watch
from .config import GRANULARITIES
from .errors import DepGraphError
from .graph_export import export_json, graph_to_json, import_json
from .models import GraphData
from .scanner import extract, find_root_marker

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    help="🧭 DepGraph CLI: module dependency graphs for JS/TS/CSS projects.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

config_app = typer.Typer(
    help="⚙️  Configuration: default scan settings.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
app.add_typer(config_app, name="config")

app.command("watch")(watch)


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"DepGraph CLI v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
):
    """DepGraph CLI: extract import graphs from a source tree."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def print_summary(graph: GraphData, title: str = "Graph") -> None:
    """Render node/edge counts by type as a rich table."""
    table = Table(title=f"{title}: {graph.root}", show_header=True, header_style="bold cyan")
    table.add_column("Metric")
    table.add_column("Value", justify="right")

    table.add_row("Files scanned", str(graph.total_files))
    table.add_row("Ignored", str(graph.ignored_count))
    table.add_row("External references", str(graph.external_count))
    table.add_row("Nodes", str(len(graph.nodes)))
    table.add_row("Edges", str(len(graph.edges)))

    node_types: dict = {}
    for node in graph.nodes:
        node_types[node.type] = node_types.get(node.type, 0) + 1
    for node_type, count in sorted(node_types.items()):
        table.add_row(f"  {node_type} nodes", str(count))

    edge_types: dict = {}
    for edge in graph.edges:
        edge_types[edge.type] = edge_types.get(edge.type, 0) + 1
    for edge_type, count in sorted(edge_types.items()):
        table.add_row(f"  {edge_type} edges", str(count))

    console.print(table)


@app.command("scan")
def scan(
    root: Path = typer.Argument(..., help="Directory to scan."),
    max_files: Optional[int] = typer.Option(None, "--max-files", "-m", min=1, help="Abort when more files than this are found."),
    external: Optional[bool] = typer.Option(None, "--external/--no-external", help="Draw external references."),
    granularity: Optional[str] = typer.Option(None, "--granularity", "-g", help="file or symbol."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the JSON snapshot here."),
    as_json: bool = typer.Option(False, "--json", help="Print the JSON snapshot to stdout."),
):
    """Extract the dependency graph of ROOT."""
    settings = config_manager.load_scan_settings()
    granularity = granularity or settings.granularity
    if granularity not in GRANULARITIES:
        raise typer.BadParameter(f"granularity must be one of: {', '.join(GRANULARITIES)}.")

    try:
        graph = extract(
            root,
            max_files=max_files or settings.max_files,
            include_external=settings.include_external if external is None else external,
            granularity=granularity,
            aliases=settings.aliases,
        )
    except DepGraphError as exc:
        err_console.print(f"[red]✗[/red] {exc}")
        raise typer.Exit(1)

    if as_json:
        typer.echo(graph_to_json(graph))
        return

    print_summary(graph, title="Scanned")
    if output is not None:
        export_json(graph, output)
        console.print(f"[green]✓[/green] Snapshot written to [cyan]{output}[/cyan]")


@app.command("detect-root")
def detect_root(path: Path = typer.Argument(Path("."), help="Start directory.")):
    """Print the nearest ancestor of PATH containing a .git directory."""
    found = find_root_marker(path)
    if found is None:
        err_console.print(f"[yellow]No repository root found above {path}[/yellow]")
        raise typer.Exit(1)
    typer.echo(str(found))


@app.command("show")
def show(snapshot: Path = typer.Argument(..., exists=True, dir_okay=False, help="Snapshot JSON file.")):
    """Summarise a previously exported snapshot without re-scanning."""
    try:
        graph = import_json(snapshot)
    except DepGraphError as exc:
        err_console.print(f"[red]✗[/red] {exc}")
        raise typer.Exit(1)
    print_summary(graph, title="Snapshot")


@config_app.command("show")
def config_show():
    """Show effective scan settings."""
    settings = config_manager.load_scan_settings()
    for key, value in settings.to_dict().items():
        typer.echo(f"{key} = {value}")


@config_app.command("set")
def config_set(
    key: str = typer.Argument(..., help=f"One of: {', '.join(config_manager.SETTABLE_KEYS)}"),
    value: str = typer.Argument(...),
):
    """Persist a default scan setting."""
    try:
        saved = config_manager.set_scan_value(key, value)
    except KeyError:
        raise typer.BadParameter(f"Unknown key '{key}'.")
    except ValueError as exc:
        raise typer.BadParameter(str(exc))
    if not saved:
        err_console.print("[red]✗[/red] Could not write configuration.")
        raise typer.Exit(1)
    typer.echo(f"Set {key} = {value}")


@config_app.command("alias")
def config_alias(
    prefix: str = typer.Argument(..., help="Import prefix, e.g. '~/'."),
    target: str = typer.Argument("", help="Root-relative directory the prefix maps to."),
):
    """Map an import alias prefix to a directory under the scan root."""
    if not config_manager.set_alias(prefix, target):
        err_console.print("[red]✗[/red] Could not write configuration.")
        raise typer.Exit(1)
    typer.echo(f"Alias {prefix} -> /{target.strip('/')}")


if __name__ == "__main__":
    app()
