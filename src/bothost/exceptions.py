"""Custom exceptions for bothost.

This module defines the exception hierarchy shared by the lifecycle
controller, the container runtime client and their collaborators.
"""


class BotHostError(Exception):
    """Base exception for bothost errors."""

    pass


class BotNotFoundError(BotHostError):
    """Raised when a bot record does not exist."""

    pass


class AlreadyRunningError(BotHostError):
    """Raised when starting a bot that is already running."""

    pass


class NoContainerError(BotHostError):
    """Raised when an operation needs a container the bot does not have."""

    pass


class ConfigError(BotHostError):
    """Raised when configuration is missing or malformed."""

    pass


class SecretsError(BotHostError):
    """Raised when a secret cannot be encrypted or decrypted."""

    pass


class ContainerRuntimeError(BotHostError):
    """Raised when communication with the container engine fails.

    A missing container is absorbed by stop, remove and status queries; only
    start, restart and log attachment report it through this error.
    """

    pass


class ImagePullError(ContainerRuntimeError):
    """Raised when a required image cannot be pulled."""

    pass


class ContainerTimeoutError(ContainerRuntimeError):
    """Raised when an engine call exceeds the configured call timeout."""

    pass


class DuplicateBotError(BotHostError):
    """Raised when a bot id or container name is already taken."""

    pass
