"""Rich console output formatting utilities."""

from datetime import datetime
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from bothost.lifecycle import BotStatusReport
from bothost.models import Bot, BotStatus
from bothost.reconciler import BotAnalytics, OverviewAnalytics

console = Console()

STATUS_COLORS = {
    BotStatus.RUNNING: "green",
    BotStatus.STARTING: "yellow",
    BotStatus.STOPPING: "yellow",
    BotStatus.RESTARTING: "yellow",
    BotStatus.STOPPED: "white",
    BotStatus.ERROR: "red",
}


def print_error(message: str) -> None:
    """Print an error message in red."""
    console.print(f"[bold red]Error:[/bold red] {message}")


def print_warning(message: str) -> None:
    """Print a warning message in yellow."""
    console.print(f"[bold yellow]Warning:[/bold yellow] {message}")


def print_success(message: str) -> None:
    """Print a success message in green."""
    console.print(f"[bold green]Success:[/bold green] {message}")


def format_timestamp(dt: datetime | None) -> str:
    """Format timestamp for display."""
    if dt is None:
        return "-"
    return dt.strftime("%Y-%m-%d %H:%M:%S")


def format_status(status: BotStatus) -> str:
    color = STATUS_COLORS.get(status, "white")
    return f"[{color}]{status.value}[/{color}]"


def create_bot_table(bots: list[Bot]) -> Table:
    """Create a rich table listing bots.

    Args:
        bots: Bots to display

    Returns:
        Rich Table instance
    """
    table = Table(title="Bots")

    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name")
    table.add_column("Status", no_wrap=True)
    table.add_column("Runtime")
    table.add_column("Memory", justify="right")
    table.add_column("CPU", justify="right")
    table.add_column("Last Started", no_wrap=True)

    for bot in bots:
        table.add_row(
            bot.id,
            bot.name,
            format_status(bot.status),
            bot.runtime.value,
            f"{bot.memory_limit_mb} MB",
            f"{bot.cpu_limit:g}",
            format_timestamp(bot.last_started_at),
        )

    return table


def create_bot_detail_panel(
    bot: Bot, report: BotStatusReport | None = None, env_keys: list[str] | None = None
) -> Panel:
    """Create a detailed panel for a single bot.

    Args:
        bot: Bot record
        report: Live status report, if available
        env_keys: Names of configured env vars

    Returns:
        Rich Panel instance
    """
    content = f"""[bold]ID:[/bold] {bot.id}
[bold]Name:[/bold] {bot.name}
[bold]Status:[/bold] {format_status(bot.status)}
[bold]Runtime:[/bold] {bot.runtime.value} ({bot.entry_file})
[bold]Container:[/bold] {bot.container_name} ({bot.container_id or "none"})
[bold]Code Directory:[/bold] {bot.code_directory}
[bold]Auto Restart:[/bold] {"yes" if bot.auto_restart else "no"}

[bold cyan]Limits[/bold cyan]
  Memory: {bot.memory_limit_mb} MB
  CPU: {bot.cpu_limit:g} cores

[bold cyan]History[/bold cyan]
  Created: {format_timestamp(bot.created_at)}
  Last Started: {format_timestamp(bot.last_started_at)}
  Last Stopped: {format_timestamp(bot.last_stopped_at)}"""

    if bot.description:
        content += f"\n\n[bold]Description:[/bold] {bot.description}"

    if bot.start_command:
        content += f"\n[bold]Start Command:[/bold] {bot.start_command}"

    if report is not None and report.container_status is not None:
        content += f"\n\n[bold cyan]Container[/bold cyan]\n  State: {report.container_status}"
        if report.stats is not None:
            content += (
                f"\n  CPU: {report.stats.cpu_usage_percent:.2f}%"
                f"\n  Memory: {report.stats.memory_usage_mb:.2f} / "
                f"{report.stats.memory_limit_mb:.2f} MB"
            )

    if env_keys:
        content += f"\n\n[bold]Env Vars:[/bold] {', '.join(env_keys)}"

    return Panel(content, title=f"[bold]{bot.name}[/bold]", border_style="blue")


def create_analytics_panel(analytics: BotAnalytics) -> Panel:
    """Create a panel summarising one bot's analytics."""
    content = f"""[bold]Bot:[/bold] {analytics.bot_id}
[bold]Window:[/bold] {analytics.window_hours:g}h

  Uptime: {analytics.uptime_percent:.2f}%
  Runtime: {analytics.total_runtime_hours:.2f}h
  Avg CPU: {analytics.average_cpu:.2f}%
  Avg Memory: {analytics.average_memory_mb:.2f} MB
  Samples: {len(analytics.history)}"""

    return Panel(content, title="[bold]Bot Analytics[/bold]", border_style="green")


def create_overview_panel(overview: OverviewAnalytics, system: dict[str, Any] | None = None) -> Panel:
    """Create a panel with fleet-wide counts and recent activity."""
    content = f"""[bold]Bots:[/bold] {overview.total_bots}
  Running: {overview.running_bots}
  Stopped: {overview.stopped_bots}
  Error: {overview.error_bots}
[bold]Average Uptime (24h):[/bold] {overview.average_uptime_percent:.2f}%"""

    if system is not None:
        if system.get("connected"):
            containers = system["containers"]
            content += (
                f"\n\n[bold cyan]Engine[/bold cyan] {system.get('version')}"
                f"\n  Managed containers: {containers['total']}"
                f" ({containers['running']} running)"
            )
        else:
            content += "\n\n[bold red]Engine unreachable[/bold red]"

    if overview.recent_activity:
        content += "\n\n[bold cyan]Recent Activity[/bold cyan]"
        for entry in overview.recent_activity:
            content += (
                f"\n  {format_timestamp(entry.timestamp)}  "
                f"{entry.bot_name or entry.bot_id}  {format_status(entry.status)}"
            )

    return Panel(content, title="[bold]Overview[/bold]", border_style="green")
