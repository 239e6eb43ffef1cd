"""Fire-and-forget dispatch of lifecycle notifications."""

import asyncio
import logging
from typing import Any

from bothost.models import BotSummary, EventKind
from bothost.notify.webhook import Notifier


class NotificationDispatcher:
    """Runs each notification as a detached task.

    ``notify`` returns immediately and never raises; delivery failures are
    logged. ``drain`` waits for pending deliveries, e.g. before shutdown.
    """

    def __init__(self, notifier: Notifier):
        self._notifier = notifier
        self._tasks: set[asyncio.Task] = set()
        self._logger = logging.getLogger(__name__)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def notify(
        self,
        event: EventKind,
        bot: BotSummary,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Schedule delivery of one event without waiting for it."""
        try:
            task = asyncio.get_running_loop().create_task(
                self._send(event, bot, message, details)
            )
        except RuntimeError as e:
            self._logger.warning("Cannot dispatch %s for bot %s: %s", event.value, bot.id, e)
            return
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _send(
        self,
        event: EventKind,
        bot: BotSummary,
        message: str,
        details: dict[str, Any] | None,
    ) -> None:
        try:
            await self._notifier.send(event, bot, message, details)
        except Exception as e:
            self._logger.warning(
                "Notification %s for bot %s failed: %s", event.value, bot.id, e
            )

    async def drain(self) -> None:
        """Wait for all pending notifications to finish."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def shutdown(self) -> None:
        """Drain pending notifications and close the notifier if it owns resources."""
        if self._tasks:
            self._logger.info("Waiting for %d pending notifications", len(self._tasks))
        await self.drain()
        aclose = getattr(self._notifier, "aclose", None)
        if aclose is not None:
            await aclose()
