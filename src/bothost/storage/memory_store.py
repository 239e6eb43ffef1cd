"""Process-local BotStore, used by tests and single-shot tooling."""

import uuid
from datetime import datetime
from typing import Any

from bothost.models import Bot, BotStatus, EnvVar, StatusHistoryEntry
from bothost.storage.snapshot import StoreSnapshot


class InMemoryBotStore:
    """BotStore keeping everything in memory."""

    def __init__(self) -> None:
        self._snapshot = StoreSnapshot()
        self._history: list[StatusHistoryEntry] = []

    async def get_bot(self, bot_id: str) -> Bot | None:
        return self._snapshot.get_bot(bot_id)

    async def list_bots(self, status: BotStatus | None = None) -> list[Bot]:
        return self._snapshot.list_bots(status)

    async def create_bot(self, bot: Bot) -> Bot:
        return self._snapshot.create_bot(bot)

    async def update_bot(self, bot_id: str, fields: dict[str, Any]) -> Bot:
        return self._snapshot.update_bot(bot_id, fields)

    async def delete_bot(self, bot_id: str) -> None:
        self._snapshot.delete_bot(bot_id)
        self._history = [h for h in self._history if h.bot_id != bot_id]

    async def set_bot_status(self, bot_id: str, status: BotStatus) -> Bot:
        return self._snapshot.update_bot(bot_id, {"status": status})

    async def append_status_history(
        self,
        bot_id: str,
        status: BotStatus,
        cpu_usage: float | None = None,
        memory_usage: float | None = None,
    ) -> StatusHistoryEntry:
        self._snapshot.require_bot(bot_id)
        entry = StatusHistoryEntry(
            id=uuid.uuid4().hex,
            bot_id=bot_id,
            status=status,
            cpu_usage=cpu_usage,
            memory_usage=memory_usage,
        )
        self._history.append(entry)
        return entry

    async def list_status_history(
        self, bot_id: str | None = None, since: datetime | None = None
    ) -> list[StatusHistoryEntry]:
        return [
            h
            for h in self._history
            if (bot_id is None or h.bot_id == bot_id) and (since is None or h.timestamp >= since)
        ]

    async def get_env_vars(self, bot_id: str) -> list[EnvVar]:
        return self._snapshot.get_env_vars(bot_id)

    async def upsert_env_var(self, bot_id: str, key: str, ciphertext: str) -> EnvVar:
        return self._snapshot.upsert_env_var(bot_id, key, ciphertext)

    async def delete_env_var(self, bot_id: str, key: str) -> bool:
        return self._snapshot.delete_env_var(bot_id, key)
