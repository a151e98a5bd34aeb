#!/usr/bin/env python3
"""
routeledger CLI - deterministic routing with a hash-chained ledger.

Main entrypoint for the routeledger command-line tool.
"""

import typer
from rich.console import Console
from rich.table import Table

from ..logging_config import setup_logging
from .commands import checkpoint, ledger, route

app = typer.Typer(
    name="routeledger",
    help="Deterministic routing with a tamper-evident ledger",
    add_completion=False,
)

console = Console()

app.add_typer(ledger.app, name="ledger", help="Ledger inspection and verification")
app.add_typer(checkpoint.app, name="checkpoint", help="Signed ledger checkpoints")

app.command("route")(route.route_command)
app.command("proof")(ledger.proof_command)


@app.callback()
def _configure(
    log_level: str = typer.Option("WARNING", "--log-level", envvar="ROUTELEDGER_LOG_LEVEL", help="Log level"),
    log_format: str = typer.Option("text", "--log-format", envvar="ROUTELEDGER_LOG_FORMAT", help="json or text"),
):
    setup_logging(level=log_level, fmt=log_format)


@app.command()
def version():
    """Show version information."""
    from .. import __version__
    from ..ledger.integrity import ENTRY_HASH_VERSION
    from ..routing.selector import SELECTION_HASH_VERSION

    table = Table(show_header=False, box=None)
    table.add_row("[bold]routeledger[/bold]", f"v{__version__}")
    table.add_row("Selection hash", f"v{SELECTION_HASH_VERSION}")
    table.add_row("Entry hash", f"v{ENTRY_HASH_VERSION}")

    console.print(table)


def main():
    """Main entrypoint."""
    app()


if __name__ == "__main__":
    main()
