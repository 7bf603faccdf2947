"""Main Typer application — imports and registers all CLI commands.

Entry point: ``eventrouter`` (configured via pyproject.toml scripts).
"""

from __future__ import annotations

import typer

from eventrouter.cli.commands.run import run_cmd
from eventrouter.cli.commands.show_config import config_cmd
from eventrouter.cli.commands.sinks import sinks_cmd

app = typer.Typer(
    name="eventrouter",
    help="Eventrouter: forward Kubernetes Events to pluggable sinks.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

app.command(name="run", help="Watch Events and route them to the configured sink.")(run_cmd)
app.command(name="sinks", help="List registered sink keys.")(sinks_cmd)
app.command(name="config", help="Show the effective configuration.")(config_cmd)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
