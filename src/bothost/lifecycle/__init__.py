"""Bot lifecycle controller - the per-bot container state machine."""

from bothost.lifecycle.controller import (
    BotStatusReport,
    LifecycleController,
    StatusListener,
    generate_container_name,
)
from bothost.lifecycle.locks import KeyedLock

__all__ = [
    "BotStatusReport",
    "KeyedLock",
    "LifecycleController",
    "StatusListener",
    "generate_container_name",
]
