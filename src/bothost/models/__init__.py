"""Data models for bots, environment variables and status history."""

from bothost.models.bot import (
    TRANSIENT_STATUSES,
    Bot,
    BotCreate,
    BotRuntime,
    BotStatus,
    BotSummary,
    BotUpdate,
    EnvVar,
    EventKind,
    StatusHistoryEntry,
    utcnow,
)

__all__ = [
    "Bot",
    "BotCreate",
    "BotUpdate",
    "BotRuntime",
    "BotStatus",
    "BotSummary",
    "EnvVar",
    "EventKind",
    "StatusHistoryEntry",
    "TRANSIENT_STATUSES",
    "utcnow",
]
