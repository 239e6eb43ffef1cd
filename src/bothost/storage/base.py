"""Persistence contract consumed by the lifecycle controller and reconciler."""

from datetime import datetime
from typing import Any, Protocol

from bothost.models import Bot, BotStatus, EnvVar, StatusHistoryEntry

# Fields a caller may never change through update_bot().
PROTECTED_FIELDS = frozenset({"id", "container_name", "code_directory", "created_at"})


class BotStore(Protocol):
    """Record store for bots, their encrypted env vars and status history.

    Bots are immutable snapshots; every write returns the updated record.
    Deleting a bot also deletes its env vars and history.
    """

    async def get_bot(self, bot_id: str) -> Bot | None: ...

    async def list_bots(self, status: BotStatus | None = None) -> list[Bot]: ...

    async def create_bot(self, bot: Bot) -> Bot: ...

    async def update_bot(self, bot_id: str, fields: dict[str, Any]) -> Bot: ...

    async def delete_bot(self, bot_id: str) -> None: ...

    async def set_bot_status(self, bot_id: str, status: BotStatus) -> Bot: ...

    async def append_status_history(
        self,
        bot_id: str,
        status: BotStatus,
        cpu_usage: float | None = None,
        memory_usage: float | None = None,
    ) -> StatusHistoryEntry: ...

    async def list_status_history(
        self, bot_id: str | None = None, since: datetime | None = None
    ) -> list[StatusHistoryEntry]: ...

    async def get_env_vars(self, bot_id: str) -> list[EnvVar]: ...

    async def upsert_env_var(self, bot_id: str, key: str, ciphertext: str) -> EnvVar: ...

    async def delete_env_var(self, bot_id: str, key: str) -> bool: ...
