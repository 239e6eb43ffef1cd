"""Service configuration with Pydantic validation.

This module provides the BotHostConfig tree, loadable from YAML and from
environment variables, shared by the daemon and the operator CLI.
"""

import base64
import binascii
import os
from collections.abc import Mapping
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from bothost.exceptions import ConfigError
from bothost.models import BotRuntime
from bothost.notify import WebhookConfig
from bothost.runtime.container_spec import DEFAULT_RUNTIME_IMAGES

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class DockerConfig(BaseModel):
    """Container engine connection settings."""

    model_config = ConfigDict(frozen=True)

    base_url: str | None = Field(
        None,
        description="Engine address; None uses DOCKER_HOST or the platform default",
    )
    call_timeout_seconds: float = Field(
        60.0,
        gt=0,
        description="Upper bound for any single engine call",
    )
    stop_grace_seconds: int = Field(
        10,
        ge=0,
        description="Grace period before a stopping container is killed",
    )
    log_tail: int = Field(
        50,
        ge=0,
        description="Buffered lines replayed when a log stream attaches",
    )


class StorageConfig(BaseModel):
    """Where records and bot code live on the host."""

    model_config = ConfigDict(frozen=True)

    data_path: str = Field("data", description="Directory of the JSON record store")
    code_root: str = Field("bots", description="Root of per-bot code directories")


class SecretsConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: str | None = Field(
        None,
        description="Base64-encoded 32-byte AES key for env var encryption",
    )

    @field_validator("key")
    @classmethod
    def _check_key(cls, value: str | None) -> str | None:
        if value is None:
            return value
        try:
            raw = base64.b64decode(value, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValueError("secrets.key must be base64") from e
        if len(raw) != 32:
            raise ValueError(f"secrets.key must decode to 32 bytes, got {len(raw)}")
        return value


class ReconcilerConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    enabled: bool = Field(True, description="Run the periodic stats sweep")
    interval_seconds: float = Field(300.0, gt=0, description="Seconds between sweeps")


class BotHostConfig(BaseModel):
    """Complete bothost configuration.

    The configuration can be:
    - Instantiated with defaults: `BotHostConfig()`
    - Loaded from YAML: `BotHostConfig.from_yaml("bothost.yaml")`
    - Loaded from the environment: `BotHostConfig.from_env()`
    - Saved to YAML: `config.to_yaml("bothost.yaml")`
    """

    model_config = ConfigDict(frozen=True)

    docker: DockerConfig = Field(default_factory=DockerConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    secrets: SecretsConfig = Field(default_factory=SecretsConfig)
    reconciler: ReconcilerConfig = Field(default_factory=ReconcilerConfig)
    runtime_images: dict[BotRuntime, str] = Field(
        default_factory=lambda: dict(DEFAULT_RUNTIME_IMAGES),
        description="Container image per runtime kind",
    )
    webhooks: list[WebhookConfig] = Field(default_factory=list)
    log_level: LogLevel = "INFO"

    @field_validator("runtime_images")
    @classmethod
    def _fill_images(cls, value: dict[BotRuntime, str]) -> dict[BotRuntime, str]:
        return {**DEFAULT_RUNTIME_IMAGES, **value}

    @classmethod
    def from_yaml(cls, path: str) -> "BotHostConfig":
        """Load configuration from a YAML file.

        Args:
            path: Path to the YAML configuration file.

        Returns:
            A validated BotHostConfig instance.

        Raises:
            FileNotFoundError: If the configuration file doesn't exist.
            ValidationError: If the configuration is invalid.
        """
        with open(path) as f:
            data = yaml.safe_load(f)
        return cls.model_validate(data or {})

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "BotHostConfig":
        """Load configuration from environment variables.

        ``BOTHOST_CONFIG`` names an optional YAML file used as the base; the
        remaining variables override individual settings:

            DOCKER_HOST                  docker.base_url
            BOTHOST_DOCKER_TIMEOUT       docker.call_timeout_seconds
            BOTHOST_STOP_GRACE           docker.stop_grace_seconds
            BOTHOST_DATA_PATH            storage.data_path
            BOTHOST_CODE_ROOT            storage.code_root
            BOTHOST_SECRET_KEY           secrets.key
            BOTHOST_RECONCILE_ENABLED    reconciler.enabled
            BOTHOST_RECONCILE_INTERVAL   reconciler.interval_seconds
            BOTHOST_LOG_LEVEL            log_level

        Raises:
            ConfigError: If BOTHOST_CONFIG names a missing file.
            ValidationError: If a value is invalid.
        """
        env = os.environ if environ is None else environ
        data: dict[str, Any] = {}

        config_path = env.get("BOTHOST_CONFIG")
        if config_path:
            if not os.path.exists(config_path):
                raise ConfigError(f"BOTHOST_CONFIG file not found: {config_path}")
            with open(config_path) as f:
                data = yaml.safe_load(f) or {}

        overrides = {
            "DOCKER_HOST": ("docker", "base_url"),
            "BOTHOST_DOCKER_TIMEOUT": ("docker", "call_timeout_seconds"),
            "BOTHOST_STOP_GRACE": ("docker", "stop_grace_seconds"),
            "BOTHOST_DATA_PATH": ("storage", "data_path"),
            "BOTHOST_CODE_ROOT": ("storage", "code_root"),
            "BOTHOST_SECRET_KEY": ("secrets", "key"),
            "BOTHOST_RECONCILE_ENABLED": ("reconciler", "enabled"),
            "BOTHOST_RECONCILE_INTERVAL": ("reconciler", "interval_seconds"),
        }
        for name, (section, key) in overrides.items():
            value = env.get(name)
            if value:
                data.setdefault(section, {})[key] = value

        log_level = env.get("BOTHOST_LOG_LEVEL")
        if log_level:
            data["log_level"] = log_level.upper()

        return cls.model_validate(data)

    def to_yaml(self, path: str) -> None:
        """Save configuration to a YAML file.

        Args:
            path: Path where the YAML file will be saved.
        """
        with open(path, "w") as f:
            yaml.dump(
                self.model_dump(mode="json"),
                f,
                default_flow_style=False,
                sort_keys=False,
            )

    def require_secret_key(self) -> str:
        """Return the configured secret key.

        Raises:
            ConfigError: If no key is configured.
        """
        if not self.secrets.key:
            raise ConfigError(
                "No secret key configured; set secrets.key or BOTHOST_SECRET_KEY"
            )
        return self.secrets.key
