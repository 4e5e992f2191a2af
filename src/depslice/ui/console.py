"""Rich-powered console output for DepSlice."""

from __future__ import annotations

import logging

from rich.console import Console as RichConsole
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table
from rich.tree import Tree

from depslice import __version__
from depslice.output.destination import DestinationFile, DestinationType


class Console:
    """Terminal output for DepSlice using Rich."""

    def __init__(self) -> None:
        self.console = RichConsole()

    def banner(self) -> None:
        """Show the DepSlice banner."""
        self.console.print(
            Panel(
                f"[bold cyan]DepSlice[/bold cyan] [dim]v{__version__}[/dim]\n"
                "[dim]Carve the code your entry points actually need[/dim]",
                border_style="cyan",
                padding=(1, 2),
            )
        )

    def success(self, message: str) -> None:
        self.console.print(f"[green]✓[/green] {message}")

    def error(self, message: str) -> None:
        self.console.print(f"[red]✗[/red] {message}")

    def warning(self, message: str) -> None:
        self.console.print(f"[yellow]![/yellow] {message}")

    def info(self, message: str) -> None:
        self.console.print(f"[blue]i[/blue] {message}")

    def indexing_progress(self) -> Progress:
        """Create a progress bar for parsing."""
        return Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
            TimeElapsedColumn(),
            console=self.console,
        )

    def show_stats(self, stats: dict) -> None:
        """Display slice statistics in a table."""
        table = Table(title="Dependency Graph Statistics", border_style="cyan")
        table.add_column("Metric", style="bold")
        table.add_column("Count", justify="right", style="cyan")

        table.add_row("Source Files", str(stats.get("source_files", 0)))
        table.add_row("Output Files", str(stats.get("files", 0)))
        table.add_row("Methods/Constructors", str(stats.get("methods", 0)))
        table.add_row("Fields", str(stats.get("fields", 0)))
        table.add_row("Total Nodes", str(stats.get("total_nodes", 0)))
        table.add_row("Total Edges", str(stats.get("total_edges", 0)))
        table.add_row("Unresolved Seeds", str(stats.get("unresolved_seeds", 0)))

        edge_types = stats.get("edge_types", {})
        if edge_types:
            table.add_section()
            for kind, count in sorted(edge_types.items(), key=lambda x: -x[1]):
                table.add_row(f"  {kind} edges", str(count))

        self.console.print(table)

    def show_closure(self, dependencies: dict[str, DestinationFile]) -> None:
        """Display the kept members of every output type."""
        tree = Tree("[bold cyan]Slice[/bold cyan]")
        for name, dest in dependencies.items():
            branch = tree.add(f"[bold]{name}[/bold] [dim]({dest.path})[/dim]")
            for imp in dest.imports.values():
                branch.add(f"[dim]import {imp.name}[/dim]")
            self._add_members(branch, dest.primary_type)
        self.console.print(tree)

    def _add_members(self, branch: Tree, dest_type: DestinationType) -> None:
        for fd in dest_type.fields:
            branch.add(f"[yellow]field[/yellow] {fd.name}")
        if dest_type.initializers:
            branch.add(f"[yellow]initializers[/yellow] {len(dest_type.initializers)}")
        for ctor in dest_type.constructors:
            branch.add(f"[green]constructor[/green] {ctor.name}/{ctor.arity}")
        for md in dest_type.methods:
            branch.add(f"[cyan]method[/cyan] {md.name}/{md.arity}")
        for nested in dest_type.nested:
            self._add_members(branch.add(f"[magenta]type[/magenta] {nested.name}"), nested)


def configure_logging(verbose: bool = False, console: Console | None = None) -> None:
    """Route DepSlice loggers through Rich."""
    handler = RichHandler(
        console=console.console if console else None,
        show_path=False,
        markup=False,
    )
    logger = logging.getLogger("depslice")
    logger.handlers[:] = [handler]
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    logger.propagate = False
