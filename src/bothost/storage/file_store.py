"""File-based BotStore.

Bots and env vars live in a single JSON snapshot; status history is an
append-only JSON Lines file so periodic sweeps never rewrite the snapshot.
Both files are guarded by one file lock so several processes (the daemon
and the CLI) can share a data directory.
"""

import asyncio
import json
import os
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, TypeVar

import filelock

from bothost.models import Bot, BotStatus, EnvVar, StatusHistoryEntry
from bothost.storage.snapshot import StoreSnapshot

T = TypeVar("T")


class JsonFileBotStore:
    """BotStore persisted under a data directory.

    Directory structure:
        data_path/
        ├── bots.json              # Bots and encrypted env vars
        ├── status_history.jsonl   # One StatusHistoryEntry per line
        └── bots.json.lock         # Lock file for concurrent access
    """

    SNAPSHOT_FILENAME = "bots.json"
    HISTORY_FILENAME = "status_history.jsonl"
    LOCK_TIMEOUT = 10.0  # seconds

    def __init__(self, data_path: str | Path):
        """Initialize the store.

        Args:
            data_path: Directory holding the store files. Created on first write.
        """
        self.data_path = Path(data_path)
        self._snapshot_path = self.data_path / self.SNAPSHOT_FILENAME
        self._history_path = self.data_path / self.HISTORY_FILENAME
        self._lock_path = self.data_path / f"{self.SNAPSHOT_FILENAME}.lock"
        self._lock: filelock.FileLock | None = None

    def _file_lock(self) -> filelock.FileLock:
        if self._lock is None:
            self.data_path.mkdir(parents=True, exist_ok=True)
            self._lock = filelock.FileLock(str(self._lock_path), timeout=self.LOCK_TIMEOUT)
        return self._lock

    def _read_snapshot(self) -> StoreSnapshot:
        if not self._snapshot_path.exists():
            return StoreSnapshot()
        with open(self._snapshot_path, encoding="utf-8") as f:
            return StoreSnapshot.model_validate(json.load(f))

    def _write_snapshot(self, snapshot: StoreSnapshot) -> None:
        tmp_path = self._snapshot_path.with_suffix(".json.tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(snapshot.model_dump(mode="json"), f, indent=2)
        os.replace(tmp_path, self._snapshot_path)

    def _read_history(self) -> list[StatusHistoryEntry]:
        if not self._history_path.exists():
            return []
        entries = []
        with open(self._history_path, encoding="utf-8") as f:
            for line in f:
                if line.strip():
                    entries.append(StatusHistoryEntry.model_validate_json(line))
        return entries

    def _write_history(self, entries: list[StatusHistoryEntry]) -> None:
        tmp_path = self._history_path.with_suffix(".jsonl.tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            for entry in entries:
                f.write(entry.model_dump_json() + "\n")
        os.replace(tmp_path, self._history_path)

    def _read(self, func: Callable[[StoreSnapshot], T]) -> T:
        with self._file_lock():
            return func(self._read_snapshot())

    def _mutate(self, func: Callable[[StoreSnapshot], T]) -> T:
        with self._file_lock():
            snapshot = self._read_snapshot()
            result = func(snapshot)
            self._write_snapshot(snapshot)
            return result

    def _delete_bot_sync(self, bot_id: str) -> None:
        with self._file_lock():
            snapshot = self._read_snapshot()
            snapshot.delete_bot(bot_id)
            self._write_snapshot(snapshot)
            history = self._read_history()
            remaining = [h for h in history if h.bot_id != bot_id]
            if len(remaining) != len(history):
                self._write_history(remaining)

    def _append_history_sync(self, entry: StatusHistoryEntry) -> None:
        with self._file_lock():
            self._read_snapshot().require_bot(entry.bot_id)
            with open(self._history_path, "a", encoding="utf-8") as f:
                f.write(entry.model_dump_json() + "\n")

    def _list_history_sync(
        self, bot_id: str | None, since: datetime | None
    ) -> list[StatusHistoryEntry]:
        with self._file_lock():
            history = self._read_history()
        return [
            h
            for h in history
            if (bot_id is None or h.bot_id == bot_id) and (since is None or h.timestamp >= since)
        ]

    async def get_bot(self, bot_id: str) -> Bot | None:
        return await asyncio.to_thread(self._read, lambda s: s.get_bot(bot_id))

    async def list_bots(self, status: BotStatus | None = None) -> list[Bot]:
        return await asyncio.to_thread(self._read, lambda s: s.list_bots(status))

    async def create_bot(self, bot: Bot) -> Bot:
        return await asyncio.to_thread(self._mutate, lambda s: s.create_bot(bot))

    async def update_bot(self, bot_id: str, fields: dict[str, Any]) -> Bot:
        return await asyncio.to_thread(self._mutate, lambda s: s.update_bot(bot_id, fields))

    async def delete_bot(self, bot_id: str) -> None:
        await asyncio.to_thread(self._delete_bot_sync, bot_id)

    async def set_bot_status(self, bot_id: str, status: BotStatus) -> Bot:
        return await asyncio.to_thread(
            self._mutate, lambda s: s.update_bot(bot_id, {"status": status})
        )

    async def append_status_history(
        self,
        bot_id: str,
        status: BotStatus,
        cpu_usage: float | None = None,
        memory_usage: float | None = None,
    ) -> StatusHistoryEntry:
        entry = StatusHistoryEntry(
            id=uuid.uuid4().hex,
            bot_id=bot_id,
            status=status,
            cpu_usage=cpu_usage,
            memory_usage=memory_usage,
        )
        await asyncio.to_thread(self._append_history_sync, entry)
        return entry

    async def list_status_history(
        self, bot_id: str | None = None, since: datetime | None = None
    ) -> list[StatusHistoryEntry]:
        return await asyncio.to_thread(self._list_history_sync, bot_id, since)

    async def get_env_vars(self, bot_id: str) -> list[EnvVar]:
        return await asyncio.to_thread(self._read, lambda s: s.get_env_vars(bot_id))

    async def upsert_env_var(self, bot_id: str, key: str, ciphertext: str) -> EnvVar:
        return await asyncio.to_thread(
            self._mutate, lambda s: s.upsert_env_var(bot_id, key, ciphertext)
        )

    async def delete_env_var(self, bot_id: str, key: str) -> bool:
        return await asyncio.to_thread(self._mutate, lambda s: s.delete_env_var(bot_id, key))
