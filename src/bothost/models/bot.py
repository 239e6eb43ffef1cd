"""Pydantic models for managed bots.

This module defines the bot record, its status state machine values, the
encrypted environment variable record, and the append-only status history
samples used for analytics.
"""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class BotStatus(str, Enum):
    """Lifecycle status of a bot.

    STOPPED is the initial rest state. STARTING, STOPPING and RESTARTING are
    transient and only observable while a lifecycle operation is in flight.
    ERROR is not terminal: a later start may leave it.
    """

    STOPPED = "STOPPED"
    STARTING = "STARTING"
    RUNNING = "RUNNING"
    STOPPING = "STOPPING"
    RESTARTING = "RESTARTING"
    ERROR = "ERROR"


TRANSIENT_STATUSES = frozenset(
    {BotStatus.STARTING, BotStatus.STOPPING, BotStatus.RESTARTING}
)


class BotRuntime(str, Enum):
    """Interpreter the bot's code runs under."""

    NODEJS = "nodejs"
    PYTHON = "python"


class EventKind(str, Enum):
    """Lifecycle events published to the notification collaborator."""

    BOT_STARTED = "BOT_STARTED"
    BOT_STOPPED = "BOT_STOPPED"
    BOT_RESTARTED = "BOT_RESTARTED"
    BOT_CREATED = "BOT_CREATED"
    BOT_DELETED = "BOT_DELETED"
    BOT_ERROR = "BOT_ERROR"


class BotSummary(BaseModel):
    """Minimal bot description attached to notifications."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    status: str


class Bot(BaseModel):
    """A managed, containerized bot.

    Attributes:
        id: Unique bot identifier
        name: Display name
        description: Optional free-form description
        runtime: Interpreter kind, selects the container image
        entry_file: Entry point relative to the code directory
        start_command: Optional custom shell command replacing the default
        auto_restart: Whether the engine restarts the container on exit
        memory_limit_mb: Memory limit in megabytes
        cpu_limit: CPU limit in fractional cores
        code_directory: Host directory bind-mounted into the container
        container_name: Unique container name, generated once at creation
        container_id: Live container id, None when no container exists
        status: Current lifecycle status
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str | None = None
    runtime: BotRuntime = BotRuntime.NODEJS
    entry_file: str = "index.js"
    start_command: str | None = None
    auto_restart: bool = False
    memory_limit_mb: int = Field(512, ge=64, le=8192)
    cpu_limit: float = Field(1.0, ge=0.1, le=8.0)
    code_directory: str
    container_name: str
    container_id: str | None = None
    status: BotStatus = BotStatus.STOPPED
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    last_started_at: datetime | None = None
    last_stopped_at: datetime | None = None

    def summary(self, status: BotStatus | str | None = None) -> BotSummary:
        """Build a notification summary, optionally overriding the status."""
        value = status if status is not None else self.status
        if isinstance(value, BotStatus):
            value = value.value
        return BotSummary(id=self.id, name=self.name, status=value)


class BotCreate(BaseModel):
    """Fields accepted when creating a bot."""

    name: str = Field(min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    runtime: BotRuntime = BotRuntime.NODEJS
    entry_file: str = "index.js"
    start_command: str | None = None
    auto_restart: bool = False
    memory_limit_mb: int = Field(512, ge=64, le=8192)
    cpu_limit: float = Field(1.0, ge=0.1, le=8.0)


class BotUpdate(BaseModel):
    """Mutable bot fields. Unset fields are left untouched."""

    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    runtime: BotRuntime | None = None
    entry_file: str | None = None
    start_command: str | None = None
    auto_restart: bool | None = None
    memory_limit_mb: int | None = Field(default=None, ge=64, le=8192)
    cpu_limit: float | None = Field(default=None, ge=0.1, le=8.0)


class EnvVar(BaseModel):
    """A per-bot environment variable. ``value`` is always ciphertext."""

    model_config = ConfigDict(frozen=True)

    bot_id: str
    key: str = Field(pattern=r"^[A-Z_][A-Z0-9_]*$")
    value: str


class StatusHistoryEntry(BaseModel):
    """Immutable status sample for a bot."""

    model_config = ConfigDict(frozen=True)

    id: str
    bot_id: str
    status: BotStatus
    cpu_usage: float | None = None
    memory_usage: float | None = None
    timestamp: datetime = Field(default_factory=utcnow)
