"""Persistence for bots, encrypted env vars and status history."""

from bothost.storage.base import PROTECTED_FIELDS, BotStore
from bothost.storage.file_store import JsonFileBotStore
from bothost.storage.memory_store import InMemoryBotStore
from bothost.storage.snapshot import StoreSnapshot

__all__ = [
    "PROTECTED_FIELDS",
    "BotStore",
    "InMemoryBotStore",
    "JsonFileBotStore",
    "StoreSnapshot",
]
