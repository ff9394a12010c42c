"""Rich-powered console output for smite."""

from __future__ import annotations

from rich.console import Console as RichConsole
from rich.panel import Panel
from rich.table import Table
from rich.tree import Tree

from smite import __version__
from smite.ralph.models import Batch, ExecutionSummary, WorkItem
from smite.search.cache import CacheStats
from smite.search.models import SearchResponse


class Console:
    """Terminal output for smite using Rich."""

    def __init__(self, console: RichConsole | None = None) -> None:
        self.console = console or RichConsole()

    def banner(self) -> None:
        self.console.print(
            Panel(
                f"[bold cyan]smite[/bold cyan] [dim]v{__version__}[/dim]\n"
                "[dim]Parallel work planning and routed code search[/dim]",
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

    def show_batches(self, batches: list[Batch]) -> None:
        """Display an execution plan, one row per batch."""
        table = Table(title="Execution Plan", border_style="cyan")
        table.add_column("Batch", justify="right", style="bold")
        table.add_column("Mode")
        table.add_column("Work items", style="cyan")

        for batch in batches:
            mode = "[green]parallel[/green]" if batch.parallel else "[dim]sequential[/dim]"
            table.add_row(str(batch.number), mode, ", ".join(batch.ids))

        self.console.print(table)

    def show_batch(self, batch: Batch) -> None:
        """Display the work items of a single batch."""
        table = Table(title=f"Batch {batch.number}", border_style="green")
        table.add_column("ID", style="bold cyan")
        table.add_column("Title")
        table.add_column("Priority", justify="right")
        table.add_column("Agent", style="dim")
        for item in batch.items:
            table.add_row(item.id, item.title, str(item.priority), item.agent or "")
        self.console.print(table)

    def show_summary(self, summary: ExecutionSummary) -> None:
        path = " -> ".join(summary.critical_path) or "(none)"
        self.console.print(
            Panel(
                f"[bold]Work items:[/bold] {summary.total_items}\n"
                f"[bold]Batches:[/bold] {summary.batch_count}\n"
                f"[bold]Max parallel:[/bold] {summary.max_parallel}\n"
                f"[bold]Critical path:[/bold] {path}",
                title="[bold]Summary[/bold]",
                border_style="cyan",
            )
        )

    def show_status(self, items: list[WorkItem], blocked: list[str]) -> None:
        """Display per-item status."""
        table = Table(title="Work Item Status", border_style="cyan")
        table.add_column("ID", style="bold")
        table.add_column("Title")
        table.add_column("Status")

        blocked_set = set(blocked)
        for item in items:
            if item.passes:
                status = "[green]done[/green]"
            elif item.failed:
                status = "[red]failed[/red]"
            elif item.id in blocked_set:
                status = "[yellow]blocked[/yellow]"
            else:
                status = "[dim]pending[/dim]"
            table.add_row(item.id, item.title, status)

        self.console.print(table)

    def show_dependency_tree(self, items: list[WorkItem], title: str = "Work items") -> None:
        """Display each item with its dependencies as children."""
        tree = Tree(f"[bold cyan]{title}[/bold cyan]")
        for item in items:
            node = tree.add(f"[bold]{item.id}[/bold] {item.title} [dim](priority {item.priority})[/dim]")
            for dep in item.dependencies:
                node.add(f"[cyan]{dep}[/cyan]")
        self.console.print(tree)

    def show_search_results(self, response: SearchResponse) -> None:
        """Display a search response."""
        source = " [dim](cached)[/dim]" if response.from_cache else ""
        self.console.print(
            f"[bold]{response.result_count}[/bold] result(s) via "
            f"[cyan]{response.strategy.value}[/cyan] in {response.execution_time * 1000:.0f}ms{source}"
        )
        for r in response.results:
            self.console.print(
                f"  [cyan]{r.file_path}:{r.line_number}[/cyan] "
                f"[dim]({r.score:.2f})[/dim] {r.content.strip()}"
            )

    def show_cache_stats(self, stats: CacheStats) -> None:
        table = Table(title="Search Cache", border_style="cyan")
        table.add_column("Metric", style="bold")
        table.add_column("Value", justify="right", style="cyan")
        table.add_row("Entries", str(stats.total_entries))
        table.add_row("Hits", str(stats.hits))
        table.add_row("Misses", str(stats.misses))
        table.add_row("Hit rate", f"{stats.hit_rate:.1%}")
        self.console.print(table)
