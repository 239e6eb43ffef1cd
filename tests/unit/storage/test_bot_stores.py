"""Unit tests for the BotStore implementations.

Both stores share their record rules, so the same tests run against each.
"""

import json
from datetime import timedelta

import pytest

from bothost.exceptions import BotNotFoundError, DuplicateBotError
from bothost.models import BotStatus, utcnow
from bothost.storage import InMemoryBotStore, JsonFileBotStore
from tests.conftest import make_bot


@pytest.fixture(params=["memory", "file"])
def bot_store(request, tmp_path):
    if request.param == "memory":
        return InMemoryBotStore()
    return JsonFileBotStore(tmp_path / "data")


class TestBotRecords:
    """Tests for bot CRUD."""

    @pytest.mark.asyncio
    async def test_create_and_get(self, bot_store) -> None:
        bot = await bot_store.create_bot(make_bot())
        assert await bot_store.get_bot("bot-1") == bot
        assert await bot_store.get_bot("missing") is None

    @pytest.mark.asyncio
    async def test_duplicate_container_name(self, bot_store) -> None:
        """Container names are unique across bots."""
        await bot_store.create_bot(make_bot())
        with pytest.raises(DuplicateBotError):
            await bot_store.create_bot(make_bot("bot-2", container_name="bot_bot-1"))

    @pytest.mark.asyncio
    async def test_list_newest_first_and_filter(self, bot_store) -> None:
        now = utcnow()
        await bot_store.create_bot(make_bot("old", created_at=now - timedelta(hours=1)))
        await bot_store.create_bot(make_bot("new", created_at=now))
        await bot_store.set_bot_status("new", BotStatus.RUNNING)

        assert [b.id for b in await bot_store.list_bots()] == ["new", "old"]
        assert [b.id for b in await bot_store.list_bots(BotStatus.RUNNING)] == ["new"]

    @pytest.mark.asyncio
    async def test_update_validates_and_stamps(self, bot_store) -> None:
        created = await bot_store.create_bot(make_bot())
        updated = await bot_store.update_bot("bot-1", {"memory_limit_mb": 1024})

        assert updated.memory_limit_mb == 1024
        assert updated.updated_at >= created.updated_at

        with pytest.raises(ValueError):
            await bot_store.update_bot("bot-1", {"memory_limit_mb": 10})

    @pytest.mark.asyncio
    async def test_update_protected_field(self, bot_store) -> None:
        await bot_store.create_bot(make_bot())
        with pytest.raises(ValueError, match="container_name"):
            await bot_store.update_bot("bot-1", {"container_name": "other"})

    @pytest.mark.asyncio
    async def test_update_missing_bot(self, bot_store) -> None:
        with pytest.raises(BotNotFoundError):
            await bot_store.set_bot_status("missing", BotStatus.RUNNING)

    @pytest.mark.asyncio
    async def test_delete_cascades(self, bot_store) -> None:
        """Deleting a bot removes its env vars and history."""
        await bot_store.create_bot(make_bot())
        await bot_store.create_bot(make_bot("bot-2"))
        await bot_store.upsert_env_var("bot-1", "TOKEN", "ciphertext")
        await bot_store.append_status_history("bot-1", BotStatus.RUNNING)
        await bot_store.append_status_history("bot-2", BotStatus.RUNNING)

        await bot_store.delete_bot("bot-1")

        assert await bot_store.get_bot("bot-1") is None
        assert await bot_store.get_env_vars("bot-1") == []
        assert [h.bot_id for h in await bot_store.list_status_history()] == ["bot-2"]
        with pytest.raises(BotNotFoundError):
            await bot_store.delete_bot("bot-1")


class TestEnvVars:
    """Tests for encrypted env var records."""

    @pytest.mark.asyncio
    async def test_upsert_replaces(self, bot_store) -> None:
        await bot_store.create_bot(make_bot())
        await bot_store.upsert_env_var("bot-1", "TOKEN", "v1")
        await bot_store.upsert_env_var("bot-1", "TOKEN", "v2")
        await bot_store.upsert_env_var("bot-1", "API_URL", "v3")

        env = await bot_store.get_env_vars("bot-1")
        assert [(e.key, e.value) for e in env] == [("API_URL", "v3"), ("TOKEN", "v2")]

    @pytest.mark.asyncio
    async def test_delete(self, bot_store) -> None:
        await bot_store.create_bot(make_bot())
        await bot_store.upsert_env_var("bot-1", "TOKEN", "v1")

        assert await bot_store.delete_env_var("bot-1", "TOKEN") is True
        assert await bot_store.delete_env_var("bot-1", "TOKEN") is False

    @pytest.mark.asyncio
    async def test_unknown_bot(self, bot_store) -> None:
        with pytest.raises(BotNotFoundError):
            await bot_store.upsert_env_var("missing", "TOKEN", "v1")


class TestStatusHistory:
    """Tests for append-only history."""

    @pytest.mark.asyncio
    async def test_append_and_filter(self, bot_store) -> None:
        await bot_store.create_bot(make_bot())
        first = await bot_store.append_status_history("bot-1", BotStatus.RUNNING)
        second = await bot_store.append_status_history(
            "bot-1", BotStatus.RUNNING, cpu_usage=12.5, memory_usage=64.0
        )

        history = await bot_store.list_status_history(bot_id="bot-1")
        assert [h.id for h in history] == [first.id, second.id]
        assert history[1].cpu_usage == 12.5

        since_first = await bot_store.list_status_history(since=first.timestamp)
        assert len(since_first) == 2
        future = await bot_store.list_status_history(since=utcnow() + timedelta(seconds=5))
        assert future == []

    @pytest.mark.asyncio
    async def test_append_unknown_bot(self, bot_store) -> None:
        with pytest.raises(BotNotFoundError):
            await bot_store.append_status_history("missing", BotStatus.RUNNING)


class TestJsonFileBotStore:
    """Tests specific to the file-backed store."""

    @pytest.mark.asyncio
    async def test_persists_across_instances(self, tmp_path) -> None:
        path = tmp_path / "data"
        await JsonFileBotStore(path).create_bot(make_bot())
        await JsonFileBotStore(path).append_status_history("bot-1", BotStatus.STOPPED)

        reopened = JsonFileBotStore(path)
        bot = await reopened.get_bot("bot-1")
        assert bot is not None and bot.name == "Echo"
        assert len(await reopened.list_status_history()) == 1

    @pytest.mark.asyncio
    async def test_file_layout(self, tmp_path) -> None:
        """Bots live in a JSON snapshot and history in JSON Lines."""
        path = tmp_path / "data"
        store = JsonFileBotStore(path)
        await store.create_bot(make_bot())
        await store.append_status_history("bot-1", BotStatus.RUNNING)
        await store.append_status_history("bot-1", BotStatus.STOPPED)

        snapshot = json.loads((path / "bots.json").read_text())
        assert list(snapshot["bots"]) == ["bot-1"]
        lines = (path / "status_history.jsonl").read_text().splitlines()
        assert [json.loads(line)["status"] for line in lines] == ["RUNNING", "STOPPED"]

    @pytest.mark.asyncio
    async def test_empty_directory(self, tmp_path) -> None:
        store = JsonFileBotStore(tmp_path / "missing")
        assert await store.list_bots() == []
        assert await store.list_status_history() == []
