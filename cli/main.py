#!/usr/bin/env python3
"""
stakesim CLI - staking event harvesting and replay simulation

Main entrypoint for the stakesim command-line tool.
"""

import typer
from typing import Optional
from rich.table import Table

from stakesim.logging_config import setup_logging

from cli.commands import actions, harvest, simulate
from cli.commands.common import console

# Initialize Typer app
app = typer.Typer(
    name="stakesim",
    help="Staking event harvesting and replay simulation CLI",
    add_completion=False,
)

# Add command groups
app.add_typer(actions.app, name="actions", help="Action batch operations")

# Add standalone commands
app.command(name="harvest")(harvest.harvest_command)
app.command(name="simulate")(simulate.simulate_command)


@app.callback()
def configure(
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Log level (default: STAKESIM_LOG_LEVEL or INFO)"),
    log_format: Optional[str] = typer.Option(None, "--log-format", help="Log format: text or json"),
):
    """Configure logging for every command."""
    setup_logging(level=log_level, fmt=log_format)


@app.command()
def version():
    """Show version information."""
    from cli import __version__

    table = Table(show_header=False, box=None)
    table.add_row("[bold]stakesim[/bold]", f"v{__version__}")
    table.add_row("Backends", "memory, web3")

    console.print(table)


def main():
    """Main entrypoint."""
    app()


if __name__ == "__main__":
    main()
