"""Bot subcommands for lifecycle management."""

from __future__ import annotations

import asyncio
from typing import Annotated

import typer

from bothost.cli.context import ConfigOption, run_with_orchestrator
from bothost.cli.utils.output import (
    console,
    create_bot_detail_panel,
    create_bot_table,
    format_status,
    print_error,
    print_success,
)
from bothost.exceptions import ContainerRuntimeError
from bothost.models import BotCreate, BotRuntime, BotStatus
from bothost.service import BotOrchestrator

app = typer.Typer(no_args_is_help=True)
env_app = typer.Typer(no_args_is_help=True)
app.add_typer(env_app, name="env", help="Manage encrypted environment variables")


@app.command("list")
def list_bots(
    status: Annotated[
        BotStatus | None,
        typer.Option("--status", "-s", help="Filter by status", case_sensitive=False),
    ] = None,
    config_path: ConfigOption = None,
) -> None:
    """List managed bots.

    Examples:
        bothost bots list
        bothost bots list --status RUNNING
    """

    async def action(orchestrator: BotOrchestrator):
        return await orchestrator.list_bots(status)

    bots = run_with_orchestrator(config_path, action)
    if not bots:
        console.print("No bots found")
        return
    console.print(create_bot_table(bots))


@app.command("create")
def create_bot(
    name: Annotated[str, typer.Argument(help="Display name of the bot")],
    description: Annotated[
        str | None, typer.Option("--description", "-d", help="Free-form description")
    ] = None,
    runtime: Annotated[
        BotRuntime, typer.Option("--runtime", "-r", help="Interpreter the bot runs under")
    ] = BotRuntime.NODEJS,
    entry_file: Annotated[
        str | None,
        typer.Option("--entry-file", "-e", help="Entry point (default: index.js / main.py)"),
    ] = None,
    start_command: Annotated[
        str | None, typer.Option("--start-command", help="Custom shell start command")
    ] = None,
    auto_restart: Annotated[
        bool, typer.Option("--auto-restart", help="Restart the container when it exits")
    ] = False,
    memory: Annotated[int, typer.Option("--memory", "-m", help="Memory limit in MB")] = 512,
    cpu: Annotated[float, typer.Option("--cpu", help="CPU limit in cores")] = 1.0,
    config_path: ConfigOption = None,
) -> None:
    """Create a bot and its code directory.

    Examples:
        bothost bots create "Echo Bot"
        bothost bots create worker --runtime python --memory 256 --cpu 0.5
    """
    if entry_file is None:
        entry_file = "main.py" if runtime == BotRuntime.PYTHON else "index.js"

    async def action(orchestrator: BotOrchestrator):
        request = BotCreate(
            name=name,
            description=description,
            runtime=runtime,
            entry_file=entry_file,
            start_command=start_command,
            auto_restart=auto_restart,
            memory_limit_mb=memory,
            cpu_limit=cpu,
        )
        return await orchestrator.create_bot(request)

    bot = run_with_orchestrator(config_path, action)
    print_success(f"Created bot {bot.name} ({bot.id})")
    console.print(f"Upload code to: {bot.code_directory}")


@app.command("show")
def show_bot(
    bot_id: Annotated[str, typer.Argument(help="Bot ID")],
    config_path: ConfigOption = None,
) -> None:
    """Show a bot with its live container status.

    Examples:
        bothost bots show 3f2a...
    """

    async def action(orchestrator: BotOrchestrator):
        bot = await orchestrator.get_bot(bot_id)
        report = await orchestrator.get_bot_status(bot_id)
        keys = await orchestrator.list_env_var_keys(bot_id)
        return bot, report, keys

    bot, report, keys = run_with_orchestrator(config_path, action)
    console.print(create_bot_detail_panel(bot, report, keys))


@app.command("start")
def start_bot(
    bot_id: Annotated[str, typer.Argument(help="Bot ID")],
    config_path: ConfigOption = None,
) -> None:
    """Start a bot in a fresh container."""

    async def action(orchestrator: BotOrchestrator):
        return await orchestrator.start_bot(bot_id)

    bot = run_with_orchestrator(config_path, action)
    print_success(f"Bot {bot.name} is {format_status(bot.status)}")


@app.command("stop")
def stop_bot(
    bot_id: Annotated[str, typer.Argument(help="Bot ID")],
    config_path: ConfigOption = None,
) -> None:
    """Stop a bot's container."""

    async def action(orchestrator: BotOrchestrator):
        return await orchestrator.stop_bot(bot_id)

    bot = run_with_orchestrator(config_path, action)
    print_success(f"Bot {bot.name} is {format_status(bot.status)}")


@app.command("restart")
def restart_bot(
    bot_id: Annotated[str, typer.Argument(help="Bot ID")],
    config_path: ConfigOption = None,
) -> None:
    """Restart a bot's container in place."""

    async def action(orchestrator: BotOrchestrator):
        return await orchestrator.restart_bot(bot_id)

    bot = run_with_orchestrator(config_path, action)
    print_success(f"Bot {bot.name} is {format_status(bot.status)}")


@app.command("delete")
def delete_bot(
    bot_id: Annotated[str, typer.Argument(help="Bot ID")],
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation")] = False,
    config_path: ConfigOption = None,
) -> None:
    """Delete a bot, its container and its code directory."""
    if not yes:
        typer.confirm(f"Delete bot {bot_id} and its code directory?", abort=True)

    async def action(orchestrator: BotOrchestrator):
        await orchestrator.delete_bot(bot_id)

    run_with_orchestrator(config_path, action)
    print_success(f"Deleted bot {bot_id}")


@app.command("logs")
def bot_logs(
    bot_id: Annotated[str, typer.Argument(help="Bot ID")],
    tail: Annotated[int, typer.Option("--tail", "-n", help="Number of recent lines")] = 100,
    follow: Annotated[
        bool, typer.Option("--follow", "-f", help="Keep streaming until interrupted")
    ] = False,
    config_path: ConfigOption = None,
) -> None:
    """Print recent log lines of a bot.

    Examples:
        bothost bots logs 3f2a... --tail 20
        bothost bots logs 3f2a... --follow
    """

    async def action(orchestrator: BotOrchestrator):
        if not follow:
            return await orchestrator.get_bot_logs(bot_id, tail=tail)

        failed = asyncio.Event()
        errors: list[Exception] = []

        def on_error(error: Exception) -> None:
            errors.append(error)
            failed.set()

        await orchestrator.subscribe(
            "cli",
            bot_id,
            lambda line: console.print(line, markup=False, highlight=False),
            on_error,
        )
        await failed.wait()
        raise ContainerRuntimeError(f"Log stream failed: {errors[0]}") from errors[0]

    try:
        lines = run_with_orchestrator(config_path, action)
    except KeyboardInterrupt:
        return

    if not lines:
        console.print("No log output")
        return
    for line in lines:
        console.print(line, markup=False, highlight=False)


@env_app.command("set")
def set_env(
    bot_id: Annotated[str, typer.Argument(help="Bot ID")],
    key: Annotated[str, typer.Argument(help="Variable name, e.g. API_TOKEN")],
    value: Annotated[str, typer.Argument(help="Variable value (stored encrypted)")],
    config_path: ConfigOption = None,
) -> None:
    """Set an environment variable. Takes effect on the next start."""

    async def action(orchestrator: BotOrchestrator):
        return await orchestrator.set_env_var(bot_id, key, value)

    run_with_orchestrator(config_path, action)
    print_success(f"Set {key} on bot {bot_id}")


@env_app.command("unset")
def unset_env(
    bot_id: Annotated[str, typer.Argument(help="Bot ID")],
    key: Annotated[str, typer.Argument(help="Variable name")],
    config_path: ConfigOption = None,
) -> None:
    """Remove an environment variable."""

    async def action(orchestrator: BotOrchestrator):
        return await orchestrator.delete_env_var(bot_id, key)

    if not run_with_orchestrator(config_path, action):
        print_error(f"{key} is not set on bot {bot_id}")
        raise typer.Exit(1)
    print_success(f"Removed {key} from bot {bot_id}")


@env_app.command("list")
def list_env(
    bot_id: Annotated[str, typer.Argument(help="Bot ID")],
    config_path: ConfigOption = None,
) -> None:
    """List environment variable names. Values are never shown."""

    async def action(orchestrator: BotOrchestrator):
        return await orchestrator.list_env_var_keys(bot_id)

    keys = run_with_orchestrator(config_path, action)
    if not keys:
        console.print("No environment variables")
        return
    for key in keys:
        console.print(key)
