"""``eventrouter sinks`` — list the registered sink keys."""

from __future__ import annotations

from rich.console import Console
from rich.table import Table

from eventrouter.routing.registry import DEFAULT_SINK, SINK_REGISTRY

console = Console()


def sinks_cmd() -> None:
    """Show every sink key accepted by the ``sink`` setting."""
    table = Table(title="Registered Sinks")
    table.add_column("Key", style="cyan")
    table.add_column("Factory")
    table.add_column("Default", justify="center")

    for key in sorted(SINK_REGISTRY):
        factory = SINK_REGISTRY[key]
        default = "[green]Yes[/green]" if key == DEFAULT_SINK else ""
        table.add_row(key, f"{factory.__module__}.{factory.__name__}", default)

    console.print(table)
