"""Rich-powered console output for RelGraph."""

from __future__ import annotations

from rich.console import Console as RichConsole
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.tree import Tree

from relgraph import __version__
from relgraph.models import Cluster, DependencyMap, Node, node_label


class Console:
    """Terminal output for RelGraph using Rich."""

    def __init__(self) -> None:
        self.console = RichConsole()

    def banner(self) -> None:
        """Show the RelGraph banner."""
        self.console.print(
            Panel(
                f"[bold cyan]RelGraph[/bold cyan] [dim]v{__version__}[/dim]\n"
                "[dim]What references what, without the cycles[/dim]",
                border_style="cyan",
                padding=(1, 2),
            )
        )

    def success(self, message: str) -> None:
        self.console.print(f"[green]✓[/green] {escape(message)}")

    def error(self, message: str) -> None:
        self.console.print(f"[red]✗[/red] {escape(message)}")

    def warning(self, message: str) -> None:
        self.console.print(f"[yellow]![/yellow] {escape(message)}")

    def info(self, message: str) -> None:
        self.console.print(f"[blue]i[/blue] {escape(message)}")

    def _styled(self, node: Node, show_members: bool) -> str:
        label = escape(node_label(node, show_members))
        if isinstance(node, Cluster) and node.anchor is None and len(node.members) > 1:
            return f"[magenta]{label}[/magenta]"
        return f"[bold]{label}[/bold]"

    def show_graph(
        self,
        graph: DependencyMap,
        roots: set[Node],
        title: str = "Dependencies",
        max_depth: int = 8,
        show_members: bool = True,
    ) -> None:
        """Render the graph as one tree per root.

        Nodes reachable along several paths are expanded once; later
        occurrences are marked with an arrow.
        """
        tree = Tree(f"[bold cyan]{escape(title)}[/bold cyan]")
        expanded: set = set()

        def _sort_key(n: Node) -> str:
            return node_label(n, show_members)

        def _add(parent: Tree, node: Node, depth: int) -> None:
            if node in expanded:
                parent.add(f"{self._styled(node, show_members)} [dim]↑[/dim]")
                return
            branch = parent.add(self._styled(node, show_members))
            expanded.add(node)
            children = graph.get(node, set())
            if depth >= max_depth:
                if children:
                    branch.add(f"[dim]... {len(children)} more[/dim]")
                return
            for child in sorted(children, key=_sort_key):
                _add(branch, child, depth + 1)

        for root in sorted(roots, key=_sort_key):
            _add(tree, root, 1)

        self.console.print(tree)

    def show_stats(self, stats: dict) -> None:
        """Display graph statistics in a table."""
        table = Table(title="Dependency Graph Statistics", border_style="cyan")
        table.add_column("Metric", style="bold")
        table.add_column("Count", justify="right", style="cyan")

        table.add_row("Nodes", str(stats.get("total_nodes", 0)))
        table.add_row("Edges", str(stats.get("total_edges", 0)))
        table.add_row("Leaves", str(stats.get("leaves", 0)))
        table.add_row("Clusters", str(stats.get("clusters", 0)))
        table.add_row("Roots", str(stats.get("roots", 0)))
        table.add_section()
        table.add_row("Acyclic", "yes" if stats.get("acyclic") else "no")

        self.console.print(table)
