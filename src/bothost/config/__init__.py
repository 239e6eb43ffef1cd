"""Configuration module for the bothost daemon and CLI.

This module provides Pydantic-based configuration classes with support for
YAML files and environment variable overrides.
"""

from bothost.config.settings import (
    BotHostConfig,
    DockerConfig,
    ReconcilerConfig,
    SecretsConfig,
    StorageConfig,
)

__all__ = [
    "BotHostConfig",
    "DockerConfig",
    "StorageConfig",
    "SecretsConfig",
    "ReconcilerConfig",
]
