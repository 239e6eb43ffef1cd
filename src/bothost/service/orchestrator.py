"""Orchestration facade over the bothost core.

This module provides BotOrchestrator, the single public surface consumed by
an HTTP or real-time gateway. It wires the runtime client, persistence,
secrets, notifications, lifecycle controller, log multiplexer and status
reconciler together and owns their shutdown.
"""

from __future__ import annotations

import logging
from typing import Any

from bothost.config import BotHostConfig
from bothost.exceptions import NoContainerError
from bothost.lifecycle import BotStatusReport, LifecycleController, StatusListener
from bothost.logs import CancelFn, ErrorCallback, LineCallback, LogSubscriptionRegistry, stream_logs
from bothost.models import Bot, BotCreate, BotStatus, BotUpdate, EnvVar
from bothost.notify import NotificationDispatcher, Notifier, NullNotifier, WebhookNotifier
from bothost.reconciler import (
    BotAnalytics,
    OverviewAnalytics,
    StatusReconciler,
    SweepResult,
    compute_bot_analytics,
    compute_overview,
)
from bothost.runtime import DockerRuntimeClient
from bothost.secrets import AesGcmCipher
from bothost.storage import BotStore, JsonFileBotStore

logger = logging.getLogger(__name__)


class BotOrchestrator:
    """Public entry point for managing bots.

    Example:
        async with BotOrchestrator.from_config(BotHostConfig.from_env()) as orch:
            bot = await orch.create_bot(BotCreate(name="Echo"))
            await orch.start_bot(bot.id)
            cancel = await orch.subscribe("socket-1", bot.id, print, print)
    """

    def __init__(
        self,
        controller: LifecycleController,
        store: BotStore,
        runtime: DockerRuntimeClient,
        reconciler: StatusReconciler | None = None,
        log_tail: int = 50,
    ) -> None:
        """Initialize the facade.

        Args:
            controller: Lifecycle controller owning bot state.
            store: Persistence collaborator, used for analytics.
            runtime: Container runtime client, used for log streams.
            reconciler: Periodic stats sampler. None disables sampling.
            log_tail: Lines replayed when a log subscription attaches.
        """
        self._controller = controller
        self._store = store
        self._runtime = runtime
        self._reconciler = reconciler
        self._log_tail = log_tail
        self._registry = LogSubscriptionRegistry()
        self._closed = False

    @classmethod
    def from_config(
        cls,
        config: BotHostConfig,
        store: BotStore | None = None,
        runtime: DockerRuntimeClient | None = None,
        notifier: Notifier | None = None,
    ) -> BotOrchestrator:
        """Wire all collaborators from configuration.

        Raises:
            ConfigError: If no secret key is configured.
            SecretsError: If the secret key is unusable.
        """
        cipher = AesGcmCipher.from_base64(config.require_secret_key())
        runtime = runtime or DockerRuntimeClient(
            base_url=config.docker.base_url,
            call_timeout=config.docker.call_timeout_seconds,
            stop_grace_seconds=config.docker.stop_grace_seconds,
        )
        store = store or JsonFileBotStore(config.storage.data_path)
        if notifier is None:
            notifier = WebhookNotifier(config.webhooks) if config.webhooks else NullNotifier()

        controller = LifecycleController(
            store,
            runtime,
            cipher,
            dispatcher=NotificationDispatcher(notifier),
            code_root=config.storage.code_root,
            runtime_images=config.runtime_images,
        )
        reconciler = None
        if config.reconciler.enabled:
            reconciler = StatusReconciler(
                store, runtime, interval_seconds=config.reconciler.interval_seconds
            )
        return cls(
            controller,
            store,
            runtime,
            reconciler=reconciler,
            log_tail=config.docker.log_tail,
        )

    async def __aenter__(self) -> BotOrchestrator:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        await self.shutdown()

    @property
    def controller(self) -> LifecycleController:
        return self._controller

    @property
    def reconciler(self) -> StatusReconciler | None:
        return self._reconciler

    @property
    def subscriptions(self) -> LogSubscriptionRegistry:
        return self._registry

    # Bots

    async def create_bot(self, request: BotCreate) -> Bot:
        return await self._controller.create_bot(request)

    async def get_bot(self, bot_id: str) -> Bot:
        return await self._controller.get_bot(bot_id)

    async def list_bots(self, status: BotStatus | None = None) -> list[Bot]:
        return await self._controller.list_bots(status)

    async def update_bot(self, bot_id: str, request: BotUpdate) -> Bot:
        return await self._controller.update_bot(bot_id, request)

    async def delete_bot(self, bot_id: str) -> None:
        """Delete a bot and cancel every log subscription following it.

        Subscriptions are released again afterwards for subscribers that
        attached while the deletion was in progress.
        """
        self._registry.release_bot(bot_id)
        try:
            await self._controller.delete_bot(bot_id)
        finally:
            self._registry.release_bot(bot_id)

    async def start_bot(self, bot_id: str) -> Bot:
        return await self._controller.start(bot_id)

    async def stop_bot(self, bot_id: str) -> Bot:
        return await self._controller.stop(bot_id)

    async def restart_bot(self, bot_id: str) -> Bot:
        return await self._controller.restart(bot_id)

    async def get_bot_status(self, bot_id: str) -> BotStatusReport:
        return await self._controller.get_bot_status(bot_id)

    async def get_bot_logs(self, bot_id: str, tail: int = 100) -> list[str]:
        return await self._controller.get_bot_logs(bot_id, tail=tail)

    async def set_env_var(self, bot_id: str, key: str, value: str) -> EnvVar:
        return await self._controller.set_env_var(bot_id, key, value)

    async def delete_env_var(self, bot_id: str, key: str) -> bool:
        return await self._controller.delete_env_var(bot_id, key)

    async def list_env_var_keys(self, bot_id: str) -> list[str]:
        return await self._controller.list_env_var_keys(bot_id)

    def add_status_listener(self, listener: StatusListener) -> None:
        """Invoke ``listener`` with the bot after every persisted status change."""
        self._controller.add_status_listener(listener)

    def remove_status_listener(self, listener: StatusListener) -> None:
        self._controller.remove_status_listener(listener)

    # Log subscriptions

    def open_subscriber(self, subscriber_id: str) -> None:
        self._registry.open_subscriber(subscriber_id)

    async def subscribe(
        self,
        subscriber_id: str,
        bot_id: str,
        on_line: LineCallback,
        on_error: ErrorCallback,
    ) -> CancelFn:
        """Follow a bot's logs, replacing this subscriber's previous stream for it.

        Raises:
            BotNotFoundError: If the bot does not exist.
            NoContainerError: If the bot has no container to follow.
        """
        bot = await self._controller.get_bot(bot_id)
        if not bot.container_id:
            raise NoContainerError(f"Bot {bot_id} has no container")
        container_id = bot.container_id
        return self._registry.subscribe(
            subscriber_id,
            bot_id,
            lambda: stream_logs(
                self._runtime, container_id, on_line, on_error, tail=self._log_tail
            ),
        )

    def unsubscribe(self, subscriber_id: str, bot_id: str) -> bool:
        return self._registry.unsubscribe(subscriber_id, bot_id)

    def release_subscriber(self, subscriber_id: str) -> int:
        """Cancel all streams of a disconnected subscriber."""
        return self._registry.release_subscriber(subscriber_id)

    # Analytics and status sampling

    async def bot_analytics(self, bot_id: str, hours_back: float = 24) -> BotAnalytics:
        return await compute_bot_analytics(self._store, bot_id, hours_back=hours_back)

    async def overview(self) -> OverviewAnalytics:
        return await compute_overview(self._store)

    async def system_summary(self) -> dict[str, Any]:
        return await self._runtime.system_summary()

    async def reconcile_once(self) -> SweepResult:
        """Run one stats sweep regardless of the configured schedule."""
        reconciler = self._reconciler or StatusReconciler(self._store, self._runtime)
        return await reconciler.sweep_once()

    def start_background(self) -> None:
        """Start the periodic reconciler, if enabled."""
        if self._reconciler is not None:
            self._reconciler.start()

    async def shutdown(self) -> None:
        """Stop sampling, cancel log streams and flush pending notifications."""
        if self._closed:
            return
        self._closed = True
        if self._reconciler is not None:
            await self._reconciler.stop()
        self._registry.close()
        await self._controller.dispatcher.shutdown()
        logger.info("Bot orchestrator shut down")
