"""Watch mode: re-extract the graph whenever the tree changes."""

from __future__ import annotations

import threading
import time
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from . import config_manager
from .errors import DepGraphError
from .graph_export import export_json
from .scanner import extract
from .watch_registry import Debouncer, WatchRegistry

console = Console()


def watch(
    root: Path = typer.Argument(Path("."), help="Directory to watch."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Rewrite this JSON snapshot after each scan."),
    interval: Optional[float] = typer.Option(None, "--interval", "-i", help="Quiet period in seconds before re-scanning."),
    granularity: Optional[str] = typer.Option(None, "--granularity", "-g", help="file or symbol."),
    external: Optional[bool] = typer.Option(None, "--external/--no-external", help="Draw external references."),
):
    """👀 Watch mode: re-scan on every change.

    Example:
      depgraph watch ./web -o graph.json
      depgraph watch . --interval 2
    """
    watch_path = root.expanduser().resolve()
    if not watch_path.is_dir():
        console.print(f"[red]✗[/red] Not a directory: {root}")
        raise typer.Exit(1)

    settings = config_manager.load_scan_settings()
    quiet_period = settings.debounce_seconds if interval is None else interval
    scan_granularity = granularity or settings.granularity
    include_external = settings.include_external if external is None else external
    scan_lock = threading.Lock()
    scan_count = 0

    def rescan() -> None:
        nonlocal scan_count
        # Passes never overlap.
        with scan_lock:
            try:
                graph = extract(
                    watch_path,
                    max_files=settings.max_files,
                    include_external=include_external,
                    granularity=scan_granularity,
                    aliases=settings.aliases,
                )
            except DepGraphError as exc:
                console.print(f"  [red]✗[/red] Re-scan failed: {exc}")
                return
            if output is not None:
                export_json(graph, output)
            scan_count += 1
            console.print(
                f"  [green]✓[/green] {len(graph.nodes)} nodes, {len(graph.edges)} edges"
                f" [dim]({graph.total_files} files)[/dim]"
            )

    console.print(f"\n[bold green]👀 Watching[/bold green] [cyan]{watch_path}[/cyan] for changes...")
    console.print(f"[dim]  Debounce:  {quiet_period}s[/dim]")
    console.print(f"[dim]  Output:    {output or '-'}[/dim]")
    console.print("[dim]  Press Ctrl+C to stop[/dim]\n")

    rescan()
    debouncer = Debouncer(rescan, interval=quiet_period)

    with WatchRegistry() as registry:
        try:
            unsubscribe = registry.subscribe(watch_path, debouncer.trigger)
        except DepGraphError as exc:
            console.print(f"[red]✗[/red] {exc}")
            raise typer.Exit(1)
        try:
            while True:
                time.sleep(1)
        except KeyboardInterrupt:
            unsubscribe()
            debouncer.cancel()
            console.print(f"\n[yellow]Stopped watching.[/yellow] Scanned {scan_count} time(s).")
