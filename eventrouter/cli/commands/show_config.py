"""``eventrouter config`` — print the effective configuration."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from eventrouter.config import StartupConfigurationError, load_config

console = Console()

_SECRET_FIELDS = {"eventhub_connection_string"}


def config_cmd(
    config_file: Path = typer.Option(
        None, "--config", "-c", help="JSON config file (overrides EVENTROUTER_CONFIG)."
    ),
) -> None:
    """Show the settings ``run`` would use, after file and environment overrides."""
    try:
        config = load_config(config_file)
    except StartupConfigurationError as exc:
        console.print(f"[red]Configuration error:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    table = Table(title="Eventrouter Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")

    for name, value in config.model_dump(mode="json").items():
        if name in _SECRET_FIELDS and value:
            value = "********"
        table.add_row(name, str(value))

    console.print(table)
