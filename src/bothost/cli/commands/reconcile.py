"""Reconcile subcommands for on-demand stats sampling."""

from __future__ import annotations

import typer

from bothost.cli.context import ConfigOption, run_with_orchestrator
from bothost.cli.utils.output import console, print_success, print_warning
from bothost.service import BotOrchestrator

app = typer.Typer(no_args_is_help=True)


@app.command("once")
def reconcile_once(config_path: ConfigOption = None) -> None:
    """Sample every running bot once and append the results to history.

    Examples:
        bothost reconcile once
    """

    async def action(orchestrator: BotOrchestrator):
        return await orchestrator.reconcile_once()

    result = run_with_orchestrator(config_path, action)
    total = len(result.sampled) + len(result.skipped) + len(result.failed)
    if total == 0:
        console.print("No running bots to sample")
        return

    print_success(f"Sampled {len(result.sampled)} of {total} running bots")
    if result.skipped:
        print_warning(f"No stats available for: {', '.join(result.skipped)}")
    if result.failed:
        print_warning(f"Sampling failed for: {', '.join(result.failed)}")
