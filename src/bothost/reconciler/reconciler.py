"""Periodic resource sampling of running bots.

This module provides the StatusReconciler, which on a fixed interval samples
container stats for every RUNNING bot and appends them to status history. It
never changes a bot's recorded status.
"""

import asyncio
import logging
from dataclasses import dataclass, field

from bothost.models import Bot, BotStatus
from bothost.runtime import DockerRuntimeClient
from bothost.storage import BotStore

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 300.0


@dataclass
class SweepResult:
    """Outcome of one reconciliation sweep."""

    sampled: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


class StatusReconciler:
    """Appends a usage sample per running bot on every tick.

    One bot's failure never aborts the sweep for the others; stats calls that
    race a stop simply yield no sample.

    Example:
        reconciler = StatusReconciler(store, runtime, interval_seconds=300)
        reconciler.start()
        ...
        await reconciler.stop()
    """

    def __init__(
        self,
        store: BotStore,
        runtime: DockerRuntimeClient,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
    ):
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be positive, got {interval_seconds}")
        self._store = store
        self._runtime = runtime
        self._interval = interval_seconds
        self._task: asyncio.Task | None = None

    @property
    def interval_seconds(self) -> float:
        return self._interval

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def sweep_once(self) -> SweepResult:
        """Sample every RUNNING bot with a container once."""
        result = SweepResult()
        bots = [b for b in await self._store.list_bots(BotStatus.RUNNING) if b.container_id]
        if not bots:
            return result

        outcomes = await asyncio.gather(*(self._sample(bot) for bot in bots))
        for bot, outcome in zip(bots, outcomes):
            getattr(result, outcome).append(bot.id)

        logger.info(
            "Reconcile sweep: %d sampled, %d skipped, %d failed",
            len(result.sampled),
            len(result.skipped),
            len(result.failed),
        )
        return result

    async def _sample(self, bot: Bot) -> str:
        try:
            stats = await self._runtime.get_container_stats(bot.container_id)
            if stats is None:
                logger.debug("No stats for bot %s, skipping sample", bot.id)
                return "skipped"
            await self._store.append_status_history(
                bot.id,
                BotStatus.RUNNING,
                cpu_usage=stats.cpu_usage_percent,
                memory_usage=stats.memory_usage_mb,
            )
            return "sampled"
        except Exception as e:
            logger.warning("Failed to sample bot %s: %s", bot.id, e)
            return "failed"

    async def run(self) -> None:
        """Sweep every interval until cancelled. The first sweep runs after one interval."""
        logger.info("Status reconciler running every %.0fs", self._interval)
        while True:
            await asyncio.sleep(self._interval)
            try:
                await self.sweep_once()
            except Exception as e:
                logger.error("Reconcile sweep failed: %s", e)

    def start(self) -> None:
        """Run the sweep loop as a background task."""
        if not self.running:
            self._task = asyncio.create_task(self.run())

    async def stop(self) -> None:
        """Cancel the background loop and wait for it to exit."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Status reconciler stopped")
