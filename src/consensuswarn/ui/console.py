"""Rich-powered console output for ConsensusWarn."""

from __future__ import annotations

from rich.console import Console as RichConsole
from rich.table import Table
from rich.tree import Tree

from consensuswarn.analysis.patch import Hunk
from consensuswarn.github.renderer import render_frame


class Console:
    """Terminal output for ConsensusWarn using Rich."""

    def __init__(self, stderr: bool = False) -> None:
        self.console = RichConsole(stderr=stderr)

    def success(self, message: str) -> None:
        self.console.print(f"[green]✓[/green] {message}")

    def error(self, message: str) -> None:
        self.console.print(f"[red]✗[/red] {message}")

    def warning(self, message: str) -> None:
        self.console.print(f"[yellow]![/yellow] {message}")

    def info(self, message: str) -> None:
        self.console.print(f"[blue]i[/blue] {message}")

    def show_hunks(self, hunks: list[Hunk], base_dir: str) -> None:
        """Display each touched hunk with its call sequence as a tree."""
        for hunk in hunks:
            tree = Tree(
                f"[bold yellow]{hunk.rel_file}[/bold yellow] "
                f"[dim]lines {hunk.start_line}-{hunk.end_line}[/dim]"
            )
            node = tree
            for frame in hunk.stack:
                node = node.add(f"[cyan]{render_frame(frame, base_dir)}[/cyan]")
            self.console.print(tree)

    def show_stats(self, stats: dict) -> None:
        """Display program model statistics in a table."""
        table = Table(title="Program Model", border_style="cyan")
        table.add_column("Metric", style="bold")
        table.add_column("Count", justify="right", style="cyan")

        table.add_row("Files", str(stats.get("files", 0)))
        table.add_row("Functions", str(stats.get("functions", 0)))
        table.add_row("Methods", str(stats.get("methods", 0)))
        table.add_row("Call Edges", str(stats.get("call_edges", 0)))
        table.add_row("Unresolved Calls", str(stats.get("unresolved_refs", 0)))

        self.console.print(table)
