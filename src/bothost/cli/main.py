"""Main CLI application and entry point.

This module defines the main Typer application and aggregates all
command groups (bots, reconcile, analytics, config).
"""

import logging

import typer

from bothost.cli.commands import analytics as analytics_commands
from bothost.cli.commands import bots as bot_commands
from bothost.cli.commands import config as config_commands
from bothost.cli.commands import reconcile as reconcile_commands

app = typer.Typer(
    name="bothost",
    help="Run and manage containerized bots",
    no_args_is_help=True,
    pretty_exceptions_enable=True,
)

# Add command groups
app.add_typer(bot_commands.app, name="bots", help="Bot lifecycle management")
app.add_typer(reconcile_commands.app, name="reconcile", help="Resource usage sampling")
app.add_typer(analytics_commands.app, name="analytics", help="Uptime and usage analytics")
app.add_typer(config_commands.app, name="config", help="Configuration utilities")


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """bothost operator CLI.

    Use the subcommands to create, start and inspect bots, sample their
    resource usage, and validate configuration files.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


if __name__ == "__main__":
    app()
