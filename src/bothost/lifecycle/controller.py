"""Bot lifecycle state machine.

This module provides the LifecycleController, the sole writer of a bot's
status and container id. It maps create/start/stop/restart/delete onto
container operations, serialises operations per bot, and guarantees a bot is
never left in a transient status after a failed transition.
"""

import asyncio
import logging
import re
import secrets
import shutil
import uuid
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from bothost.exceptions import AlreadyRunningError, BotNotFoundError, NoContainerError
from bothost.lifecycle.locks import KeyedLock
from bothost.logs import LogLineDecoder
from bothost.models import (
    Bot,
    BotCreate,
    BotRuntime,
    BotStatus,
    BotUpdate,
    EnvVar,
    EventKind,
    utcnow,
)
from bothost.notify import NotificationDispatcher, NullNotifier
from bothost.runtime import ContainerState, ContainerStats, DockerRuntimeClient, build_container_spec
from bothost.secrets import SecretCipher
from bothost.storage import BotStore

StatusListener = Callable[[Bot], None]

_SLUG_PATTERN = re.compile(r"[^a-z0-9]")


def generate_container_name(name: str) -> str:
    """Build a unique container name: ``bot_<slug>_<8 hex chars>``."""
    slug = _SLUG_PATTERN.sub("_", name.lower())[:30]
    return f"bot_{slug}_{secrets.token_hex(4)}"


class BotStatusReport(BaseModel):
    """Recorded status of a bot combined with what the engine observes."""

    status: BotStatus
    container_status: ContainerState | None = None
    stats: ContainerStats | None = None
    memory_limit_mb: int
    cpu_limit: float
    last_started_at: datetime | None = None
    last_stopped_at: datetime | None = None


class LifecycleController:
    """Owns create/start/stop/restart/delete for bots.

    At most one lifecycle operation runs per bot at a time; operations on
    different bots proceed concurrently. Every failed transition persists
    ERROR before re-raising.

    Example:
        controller = LifecycleController(store, runtime, cipher, code_root="bots")
        bot = await controller.create_bot(BotCreate(name="Echo"))
        await controller.start(bot.id)
    """

    def __init__(
        self,
        store: BotStore,
        runtime: DockerRuntimeClient,
        cipher: SecretCipher,
        dispatcher: NotificationDispatcher | None = None,
        code_root: str | Path = "bots",
        runtime_images: dict[BotRuntime, str] | None = None,
        windows_host: bool | None = None,
    ):
        """Initialize the controller.

        Args:
            store: Persistence collaborator.
            runtime: Container runtime client.
            cipher: Encrypts env var values at rest.
            dispatcher: Fire-and-forget notification dispatcher.
            code_root: Directory under which per-bot code directories live.
            runtime_images: Image per runtime kind.
            windows_host: Override host path convention detection.
        """
        self._store = store
        self._runtime = runtime
        self._cipher = cipher
        self._dispatcher = dispatcher or NotificationDispatcher(NullNotifier())
        self._code_root = Path(code_root)
        self._runtime_images = runtime_images
        self._windows_host = windows_host
        self._locks = KeyedLock()
        self._status_listeners: list[StatusListener] = []
        self._logger = logging.getLogger(__name__)

    @property
    def dispatcher(self) -> NotificationDispatcher:
        return self._dispatcher

    def add_status_listener(self, listener: StatusListener) -> None:
        """Register a callback invoked with the bot after every status change."""
        self._status_listeners.append(listener)

    def remove_status_listener(self, listener: StatusListener) -> None:
        if listener in self._status_listeners:
            self._status_listeners.remove(listener)

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    async def get_bot(self, bot_id: str) -> Bot:
        """Load a bot or raise BotNotFoundError."""
        bot = await self._store.get_bot(bot_id)
        if bot is None:
            raise BotNotFoundError(f"Bot {bot_id} not found")
        return bot

    async def list_bots(self, status: BotStatus | None = None) -> list[Bot]:
        return await self._store.list_bots(status)

    async def create_bot(self, request: BotCreate) -> Bot:
        """Create a bot record and its code directory.

        The container name is generated here once and never changes.
        """
        container_name = generate_container_name(request.name)
        code_directory = (self._code_root / container_name).resolve()
        await asyncio.to_thread(code_directory.mkdir, parents=True, exist_ok=True)

        bot = Bot(
            id=uuid.uuid4().hex,
            container_name=container_name,
            code_directory=str(code_directory),
            **request.model_dump(),
        )
        bot = await self._store.create_bot(bot)
        self._logger.info("Bot created: %s (%s)", bot.id, bot.name)
        self._dispatcher.notify(
            EventKind.BOT_CREATED, bot.summary(), f'Bot "{bot.name}" has been created'
        )
        return bot

    async def update_bot(self, bot_id: str, request: BotUpdate) -> Bot:
        """Update descriptive and limit fields. Status and identity are untouched."""
        fields = request.model_dump(exclude_unset=True)
        async with self._locks.hold(bot_id):
            await self.get_bot(bot_id)
            if not fields:
                return await self.get_bot(bot_id)
            bot = await self._store.update_bot(bot_id, fields)
        self._logger.info("Bot updated: %s (%s)", bot_id, ", ".join(sorted(fields)))
        return bot

    async def delete_bot(self, bot_id: str) -> None:
        """Delete a bot. Container and code cleanup are best-effort."""
        async with self._locks.hold(bot_id):
            bot = await self.get_bot(bot_id)

            if bot.container_id:
                try:
                    await self._runtime.remove_container(bot.container_id)
                except Exception as e:
                    self._logger.warning(
                        "Failed to remove container during deletion of bot %s: %s", bot_id, e
                    )

            try:
                await asyncio.to_thread(shutil.rmtree, bot.code_directory)
            except FileNotFoundError:
                pass
            except OSError as e:
                self._logger.warning("Failed to remove code directory of bot %s: %s", bot_id, e)

            await self._store.delete_bot(bot_id)

        self._logger.info("Bot deleted: %s", bot_id)
        self._dispatcher.notify(
            EventKind.BOT_DELETED,
            bot.summary(status="DELETED"),
            f'Bot "{bot.name}" has been deleted',
        )

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def start(self, bot_id: str) -> Bot:
        """Start a bot in a fresh container.

        Any container left from a previous run is removed first.

        Raises:
            BotNotFoundError: If the bot does not exist.
            AlreadyRunningError: If the bot is already RUNNING.
            ContainerRuntimeError: If the container cannot be created or started.
            SecretsError: If an env var cannot be decrypted.
        """
        async with self._locks.hold(bot_id):
            bot = await self.get_bot(bot_id)
            if bot.status == BotStatus.RUNNING:
                raise AlreadyRunningError(f"Bot {bot_id} is already running")

            env_vars = await self._store.get_env_vars(bot_id)
            try:
                bot = await self._set_status(bot_id, BotStatus.STARTING)
                env = [(e.key, self._cipher.decrypt(e.value)) for e in env_vars]

                if bot.container_id:
                    await self._runtime.remove_container(bot.container_id)
                    bot = await self._store.update_bot(bot_id, {"container_id": None})
                else:
                    # A create that timed out may still have produced a container
                    # under this name without its id being recorded.
                    await self._runtime.remove_container(bot.container_name)

                spec = build_container_spec(
                    bot,
                    env,
                    runtime_images=self._runtime_images,
                    windows_host=self._windows_host,
                )
                container_id = await self._runtime.create_container(spec)
                # Recorded before start so a failed start leaves the id for cleanup.
                await self._store.update_bot(bot_id, {"container_id": container_id})
                await self._runtime.start_container(container_id)

                bot = await self._store.update_bot(
                    bot_id, {"status": BotStatus.RUNNING, "last_started_at": utcnow()}
                )
                self._emit_status(bot)
                await self._record_running(bot)
            except (Exception, asyncio.CancelledError) as e:
                await self._fail(bot, "start", e)
                raise

        self._logger.info("Bot started: %s (container %s)", bot_id, bot.container_id)
        self._dispatcher.notify(
            EventKind.BOT_STARTED, bot.summary(), f'Bot "{bot.name}" has started successfully'
        )
        return bot

    async def stop(self, bot_id: str) -> Bot:
        """Stop a bot's container, keeping it for a later restart or start.

        Raises:
            BotNotFoundError: If the bot does not exist.
            NoContainerError: If the bot has no container.
            ContainerRuntimeError: If the engine fails to stop the container.
        """
        async with self._locks.hold(bot_id):
            bot = await self._require_container(bot_id)
            try:
                bot = await self._set_status(bot_id, BotStatus.STOPPING)
                await self._runtime.stop_container(bot.container_id)
                bot = await self._store.update_bot(
                    bot_id, {"status": BotStatus.STOPPED, "last_stopped_at": utcnow()}
                )
                self._emit_status(bot)
                await self._store.append_status_history(bot_id, BotStatus.STOPPED)
            except (Exception, asyncio.CancelledError) as e:
                await self._fail(bot, "stop", e)
                raise

        self._logger.info("Bot stopped: %s", bot_id)
        self._dispatcher.notify(
            EventKind.BOT_STOPPED, bot.summary(), f'Bot "{bot.name}" has been stopped'
        )
        return bot

    async def restart(self, bot_id: str) -> Bot:
        """Restart a bot's container in place (same id, same mounts).

        Raises:
            BotNotFoundError: If the bot does not exist.
            NoContainerError: If the bot has no container.
            ContainerRuntimeError: If the engine fails to restart the container.
        """
        async with self._locks.hold(bot_id):
            bot = await self._require_container(bot_id)
            try:
                bot = await self._set_status(bot_id, BotStatus.RESTARTING)
                await self._runtime.restart_container(bot.container_id)
                bot = await self._store.update_bot(
                    bot_id, {"status": BotStatus.RUNNING, "last_started_at": utcnow()}
                )
                self._emit_status(bot)
                await self._record_running(bot)
            except (Exception, asyncio.CancelledError) as e:
                await self._fail(bot, "restart", e)
                raise

        self._logger.info("Bot restarted: %s", bot_id)
        self._dispatcher.notify(
            EventKind.BOT_RESTARTED, bot.summary(), f'Bot "{bot.name}" has been restarted'
        )
        return bot

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_bot_status(self, bot_id: str) -> BotStatusReport:
        """Recorded status plus live container status and stats when running."""
        bot = await self.get_bot(bot_id)
        container_status: ContainerState | None = None
        stats = None
        if bot.container_id:
            container_status = await self._runtime.get_container_status(bot.container_id)
            if container_status == "running":
                stats = await self._runtime.get_container_stats(bot.container_id)

        return BotStatusReport(
            status=bot.status,
            container_status=container_status,
            stats=stats,
            memory_limit_mb=bot.memory_limit_mb,
            cpu_limit=bot.cpu_limit,
            last_started_at=bot.last_started_at,
            last_stopped_at=bot.last_stopped_at,
        )

    async def get_bot_logs(self, bot_id: str, tail: int = 100) -> list[str]:
        """Recent decoded log lines, empty when the bot has no container."""
        bot = await self.get_bot(bot_id)
        if not bot.container_id:
            return []
        raw = await self._runtime.read_logs(bot.container_id, tail=tail)
        decoder = LogLineDecoder()
        return decoder.feed(raw) + decoder.flush()

    # ------------------------------------------------------------------
    # Environment variables
    # ------------------------------------------------------------------

    async def set_env_var(self, bot_id: str, key: str, value: str) -> EnvVar:
        """Encrypt and store an env var, replacing any previous value."""
        await self.get_bot(bot_id)
        # Validate the key before encrypting.
        EnvVar(bot_id=bot_id, key=key, value="")
        env_var = await self._store.upsert_env_var(bot_id, key, self._cipher.encrypt(value))
        self._logger.info("Env var set on bot %s: %s", bot_id, key)
        return env_var

    async def delete_env_var(self, bot_id: str, key: str) -> bool:
        await self.get_bot(bot_id)
        deleted = await self._store.delete_env_var(bot_id, key)
        if deleted:
            self._logger.info("Env var deleted from bot %s: %s", bot_id, key)
        return deleted

    async def list_env_var_keys(self, bot_id: str) -> list[str]:
        """Env var keys of a bot. Values are never returned."""
        await self.get_bot(bot_id)
        return [e.key for e in await self._store.get_env_vars(bot_id)]

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _require_container(self, bot_id: str) -> Bot:
        bot = await self.get_bot(bot_id)
        if not bot.container_id:
            raise NoContainerError(f"Bot {bot_id} has no container")
        return bot

    async def _set_status(self, bot_id: str, status: BotStatus) -> Bot:
        bot = await self._store.set_bot_status(bot_id, status)
        self._emit_status(bot)
        return bot

    async def _record_running(self, bot: Bot) -> None:
        """Append a RUNNING history row with a resource sample when one is available."""
        stats = await self._runtime.get_container_stats(bot.container_id)
        await self._store.append_status_history(
            bot.id,
            BotStatus.RUNNING,
            cpu_usage=stats.cpu_usage_percent if stats else None,
            memory_usage=stats.memory_usage_mb if stats else None,
        )

    def _emit_status(self, bot: Bot) -> None:
        for listener in list(self._status_listeners):
            try:
                listener(bot)
            except Exception as e:
                self._logger.warning("Status listener failed for bot %s: %s", bot.id, e)

    async def _fail(self, bot: Bot, action: str, error: BaseException) -> None:
        """Persist ERROR and announce the failed transition.

        Also runs when the calling task is cancelled mid-transition, so a bot
        never stays in a transient status.
        """
        if isinstance(error, asyncio.CancelledError):
            error_text = "operation cancelled"
        else:
            error_text = str(error)
        self._logger.error("Failed to %s bot %s: %s", action, bot.id, error_text)
        try:
            bot = await self._set_status(bot.id, BotStatus.ERROR)
        except Exception as e:
            self._logger.error("Could not record ERROR status for bot %s: %s", bot.id, e)

        details: dict[str, Any] = {"error": error_text}
        self._dispatcher.notify(
            EventKind.BOT_ERROR,
            bot.summary(status=BotStatus.ERROR),
            f'Bot "{bot.name}" failed to {action}',
            details,
        )
