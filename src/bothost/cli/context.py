"""Shared plumbing for CLI commands: configuration, wiring, error reporting."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Annotated, TypeVar

import typer
from pydantic import ValidationError

from bothost.cli.utils.output import print_error
from bothost.config import BotHostConfig
from bothost.exceptions import BotHostError
from bothost.service import BotOrchestrator

T = TypeVar("T")

ConfigOption = Annotated[
    Path | None,
    typer.Option(
        "--config",
        "-c",
        help="YAML configuration file (default: environment variables)",
        dir_okay=False,
    ),
]


def load_config(config_path: Path | None) -> BotHostConfig:
    """Load configuration from a file, or from the environment when omitted."""
    if config_path is not None:
        return BotHostConfig.from_yaml(str(config_path))
    return BotHostConfig.from_env()


def get_orchestrator(config_path: Path | None) -> BotOrchestrator:
    """Build an orchestrator for a single CLI invocation."""
    return BotOrchestrator.from_config(load_config(config_path))


def run_with_orchestrator(
    config_path: Path | None,
    action: Callable[[BotOrchestrator], Awaitable[T]],
) -> T:
    """Run ``action`` against a fresh orchestrator and report failures.

    Known errors are printed and turned into exit code 1.
    """

    async def runner() -> T:
        async with get_orchestrator(config_path) as orchestrator:
            return await action(orchestrator)

    try:
        return asyncio.run(runner())
    except FileNotFoundError as e:
        print_error(f"File not found: {e.filename}")
        raise typer.Exit(1)
    except ValidationError as e:
        print_error(f"Invalid input: {e}")
        raise typer.Exit(1)
    except BotHostError as e:
        print_error(str(e))
        raise typer.Exit(1)
