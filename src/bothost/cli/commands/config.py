"""Config subcommands: validation, effective settings and key generation."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
import yaml
from pydantic import ValidationError

from bothost.cli.context import ConfigOption, load_config
from bothost.cli.utils.output import console, print_error, print_success, print_warning
from bothost.config import BotHostConfig
from bothost.exceptions import ConfigError
from bothost.secrets import generate_key

app = typer.Typer(no_args_is_help=True)


@app.command("validate")
def validate(
    config_path: Annotated[
        Path,
        typer.Argument(
            help="Path to configuration file to validate",
            exists=True,
            dir_okay=False,
        ),
    ],
) -> None:
    """Validate a bothost configuration file.

    Examples:
        bothost config validate bothost.yaml
    """
    try:
        with open(config_path) as f:
            raw_data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        print_error(f"Invalid YAML syntax: {e}")
        raise typer.Exit(1)

    if raw_data is not None and not isinstance(raw_data, dict):
        print_error("Configuration must be a YAML mapping (dictionary)")
        raise typer.Exit(1)

    try:
        config = BotHostConfig.model_validate(raw_data or {})
    except ValidationError as e:
        print_error(f"Invalid configuration: {e}")
        raise typer.Exit(1)

    print_success(f"Configuration is valid: {config_path}")

    warnings: list[str] = []
    if not config.secrets.key:
        warnings.append("secrets.key is not set; BOTHOST_SECRET_KEY must be provided")
    if config.reconciler.enabled and config.reconciler.interval_seconds < 30:
        warnings.append(
            f"reconciler.interval_seconds ({config.reconciler.interval_seconds:g}) is very low"
        )
    for webhook in config.webhooks:
        if not webhook.url.startswith(("http://", "https://")):
            warnings.append(f"Webhook {webhook.name} has a non-HTTP url: {webhook.url}")

    if warnings:
        console.print()
        for warning in warnings:
            print_warning(warning)


@app.command("show")
def show(
    config_path: ConfigOption = None,
    reveal: Annotated[
        bool, typer.Option("--reveal", help="Print the secret key instead of masking it")
    ] = False,
) -> None:
    """Print the effective configuration as YAML.

    Examples:
        bothost config show
        bothost config show --config bothost.yaml
    """
    try:
        config = load_config(config_path)
    except (ValidationError, ConfigError) as e:
        print_error(f"Invalid configuration: {e}")
        raise typer.Exit(1)

    data = config.model_dump(mode="json")
    if data["secrets"]["key"] and not reveal:
        data["secrets"]["key"] = "********"
    console.print(yaml.dump(data, default_flow_style=False, sort_keys=False), markup=False)


@app.command("generate-key")
def generate_secret_key() -> None:
    """Print a new random base64 key for secrets.key / BOTHOST_SECRET_KEY."""
    console.print(generate_key(), markup=False, highlight=False)
