"""Outbound webhook delivery for lifecycle events.

This module provides the Notifier contract used by the dispatcher and a
webhook implementation that posts a JSON payload to every configured
endpoint subscribed to the event.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Any, Protocol

import httpx
from pydantic import BaseModel, ConfigDict, Field

from bothost.models import BotSummary, EventKind, utcnow

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Delivers one lifecycle event. Implementations may raise."""

    async def send(
        self,
        event: EventKind,
        bot: BotSummary,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None: ...


class NullNotifier:
    """Notifier that drops every event."""

    async def send(
        self,
        event: EventKind,
        bot: BotSummary,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        logger.debug("Dropping %s notification for bot %s", event.value, bot.id)


class WebhookConfig(BaseModel):
    """A webhook endpoint and the events it subscribes to.

    Attributes:
        name: Display name
        url: Endpoint receiving POSTed JSON payloads
        enabled: Disabled webhooks never receive events
        events: Event kinds delivered to this endpoint
        bot_ids: Restrict delivery to these bots; empty means all bots
    """

    model_config = ConfigDict(frozen=True)

    name: str
    url: str
    enabled: bool = True
    events: list[EventKind] = Field(default_factory=lambda: list(EventKind))
    bot_ids: list[str] = Field(default_factory=list)

    def matches(self, event: EventKind, bot_id: str) -> bool:
        """Whether this webhook should receive ``event`` for ``bot_id``."""
        if not self.enabled or event not in self.events:
            return False
        return not self.bot_ids or bot_id in self.bot_ids


class WebhookPayload(BaseModel):
    """JSON body posted to webhook endpoints."""

    event: EventKind
    bot: BotSummary
    timestamp: datetime = Field(default_factory=utcnow)
    message: str
    details: dict[str, Any] | None = None


class WebhookNotifier:
    """Posts lifecycle events to the matching configured webhooks.

    Example:
        async with WebhookNotifier(config.webhooks) as notifier:
            await notifier.send(EventKind.BOT_STARTED, bot.summary(), "started")
    """

    def __init__(
        self,
        webhooks: list[WebhookConfig],
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ) -> None:
        """Initialize the notifier.

        Args:
            webhooks: Configured endpoints.
            client: Optional shared HTTP client. Created lazily when omitted.
            timeout: Per-request timeout in seconds for the owned client.
        """
        self._webhooks = list(webhooks)
        self._client = client
        self._owns_client = client is None
        self._timeout = timeout

    async def __aenter__(self) -> WebhookNotifier:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        await self.aclose()

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def aclose(self) -> None:
        """Close the owned HTTP client."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def targets(self, event: EventKind, bot_id: str) -> list[WebhookConfig]:
        """Webhooks subscribed to ``event`` for ``bot_id``."""
        return [w for w in self._webhooks if w.matches(event, bot_id)]

    async def deliver(self, webhook: WebhookConfig, payload: WebhookPayload) -> bool:
        """POST one payload. Returns False on any delivery failure."""
        try:
            response = await self._get_client().post(
                webhook.url, json=payload.model_dump(mode="json")
            )
        except httpx.HTTPError as e:
            logger.warning("Webhook %s delivery failed: %s", webhook.name, e)
            return False

        if response.is_error:
            logger.warning(
                "Webhook %s returned HTTP %d", webhook.name, response.status_code
            )
            return False
        return True

    async def send(
        self,
        event: EventKind,
        bot: BotSummary,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        targets = self.targets(event, bot.id)
        if not targets:
            return

        payload = WebhookPayload(event=event, bot=bot, message=message, details=details)
        results = await asyncio.gather(*(self.deliver(w, payload) for w in targets))
        logger.debug(
            "Delivered %s for bot %s to %d/%d webhooks",
            event.value,
            bot.id,
            sum(results),
            len(targets),
        )
