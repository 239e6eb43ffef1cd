"""In-memory state shared by the store implementations.

StoreSnapshot holds bots and their encrypted env vars and implements the
record-level rules once: unique container names, protected fields,
validation on update and cascade on delete.
"""

from typing import Any

from pydantic import BaseModel, Field

from bothost.exceptions import BotNotFoundError, DuplicateBotError
from bothost.models import Bot, BotStatus, EnvVar, utcnow
from bothost.storage.base import PROTECTED_FIELDS


class StoreSnapshot(BaseModel):
    """Serializable state of all bots and env vars."""

    bots: dict[str, Bot] = Field(default_factory=dict)
    env_vars: dict[str, dict[str, EnvVar]] = Field(default_factory=dict)

    def get_bot(self, bot_id: str) -> Bot | None:
        return self.bots.get(bot_id)

    def require_bot(self, bot_id: str) -> Bot:
        bot = self.bots.get(bot_id)
        if bot is None:
            raise BotNotFoundError(f"Bot {bot_id} not found")
        return bot

    def list_bots(self, status: BotStatus | None = None) -> list[Bot]:
        bots = [b for b in self.bots.values() if status is None or b.status == status]
        return sorted(bots, key=lambda b: b.created_at, reverse=True)

    def create_bot(self, bot: Bot) -> Bot:
        if bot.id in self.bots:
            raise DuplicateBotError(f"Bot {bot.id} already exists")
        if any(b.container_name == bot.container_name for b in self.bots.values()):
            raise DuplicateBotError(f"Container name {bot.container_name} already in use")
        self.bots[bot.id] = bot
        return bot

    def update_bot(self, bot_id: str, fields: dict[str, Any]) -> Bot:
        bot = self.require_bot(bot_id)
        protected = PROTECTED_FIELDS.intersection(fields)
        if protected:
            raise ValueError(f"Fields cannot be updated: {sorted(protected)}")
        unknown = set(fields) - set(Bot.model_fields)
        if unknown:
            raise ValueError(f"Unknown bot fields: {sorted(unknown)}")
        updated = Bot.model_validate({**bot.model_dump(), **fields, "updated_at": utcnow()})
        self.bots[bot_id] = updated
        return updated

    def delete_bot(self, bot_id: str) -> None:
        self.require_bot(bot_id)
        del self.bots[bot_id]
        self.env_vars.pop(bot_id, None)

    def get_env_vars(self, bot_id: str) -> list[EnvVar]:
        return sorted(self.env_vars.get(bot_id, {}).values(), key=lambda e: e.key)

    def upsert_env_var(self, bot_id: str, key: str, ciphertext: str) -> EnvVar:
        self.require_bot(bot_id)
        env_var = EnvVar(bot_id=bot_id, key=key, value=ciphertext)
        self.env_vars.setdefault(bot_id, {})[key] = env_var
        return env_var

    def delete_env_var(self, bot_id: str, key: str) -> bool:
        return self.env_vars.get(bot_id, {}).pop(key, None) is not None
