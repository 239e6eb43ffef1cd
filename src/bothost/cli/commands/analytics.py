"""Analytics subcommands over recorded status history."""

from __future__ import annotations

from typing import Annotated

import typer

from bothost.cli.context import ConfigOption, run_with_orchestrator
from bothost.cli.utils.output import console, create_analytics_panel, create_overview_panel
from bothost.service import BotOrchestrator

app = typer.Typer(no_args_is_help=True)


@app.command("bot")
def bot_analytics(
    bot_id: Annotated[str, typer.Argument(help="Bot ID")],
    hours: Annotated[
        float, typer.Option("--hours", min=0.1, help="Window length in hours")
    ] = 24.0,
    config_path: ConfigOption = None,
) -> None:
    """Show uptime and average resource usage of a bot.

    Examples:
        bothost analytics bot 3f2a... --hours 6
    """

    async def action(orchestrator: BotOrchestrator):
        return await orchestrator.bot_analytics(bot_id, hours_back=hours)

    console.print(create_analytics_panel(run_with_orchestrator(config_path, action)))


@app.command("overview")
def overview(config_path: ConfigOption = None) -> None:
    """Show fleet-wide status counts, uptime and recent activity."""

    async def action(orchestrator: BotOrchestrator):
        return await orchestrator.overview(), await orchestrator.system_summary()

    summary, system = run_with_orchestrator(config_path, action)
    console.print(create_overview_panel(summary, system))
