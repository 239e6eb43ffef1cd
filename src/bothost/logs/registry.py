"""Registry of live log subscriptions keyed by (subscriber, bot).

The registry is owned by the orchestration facade. A gateway calls
``open_subscriber`` when a client connects and ``release_subscriber`` when it
disconnects; everything in between is tracked here.
"""

import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)

CancelFn = Callable[[], None]


class LogSubscriptionRegistry:
    """Tracks the current cancel function per (subscriber_id, bot_id).

    Subscribing again under an existing key cancels the old subscription
    before the new one is attached.

    Example:
        registry = LogSubscriptionRegistry()
        registry.subscribe("socket-1", bot_id, lambda: stream_logs(...))
        ...
        registry.release_subscriber("socket-1")
    """

    def __init__(self) -> None:
        self._subscriptions: dict[tuple[str, str], CancelFn] = {}
        self._subscribers: set[str] = set()

    def open_subscriber(self, subscriber_id: str) -> None:
        """Register a subscriber connection."""
        self._subscribers.add(subscriber_id)

    def subscribe(
        self, subscriber_id: str, bot_id: str, attach: Callable[[], CancelFn]
    ) -> CancelFn:
        """Attach a subscription, replacing any existing one for the key.

        Args:
            subscriber_id: Identifier of the consuming connection.
            bot_id: Bot whose logs are followed.
            attach: Opens the new stream and returns its cancel function.
                Called only after the previous subscription was cancelled.

        Returns:
            The new cancel function.
        """
        key = (subscriber_id, bot_id)
        existing = self._subscriptions.pop(key, None)
        if existing is not None:
            existing()
            logger.debug("Replaced log subscription %s/%s", subscriber_id, bot_id)

        cancel = attach()
        self._subscribers.add(subscriber_id)
        self._subscriptions[key] = cancel
        logger.info("Subscribed %s to logs of bot %s", subscriber_id, bot_id)
        return cancel

    def unsubscribe(self, subscriber_id: str, bot_id: str) -> bool:
        """Cancel one subscription. Returns False if none was active."""
        cancel = self._subscriptions.pop((subscriber_id, bot_id), None)
        if cancel is None:
            return False
        cancel()
        logger.info("Unsubscribed %s from logs of bot %s", subscriber_id, bot_id)
        return True

    def release_subscriber(self, subscriber_id: str) -> int:
        """Cancel every subscription of a disconnecting subscriber.

        Returns:
            Number of subscriptions cancelled.
        """
        keys = [key for key in self._subscriptions if key[0] == subscriber_id]
        for key in keys:
            self._subscriptions.pop(key)()
        self._subscribers.discard(subscriber_id)
        if keys:
            logger.info("Released %d log subscriptions of %s", len(keys), subscriber_id)
        return len(keys)

    def release_bot(self, bot_id: str) -> int:
        """Cancel every subscription following ``bot_id``."""
        keys = [key for key in self._subscriptions if key[1] == bot_id]
        for key in keys:
            self._subscriptions.pop(key)()
        return len(keys)

    def subscriptions(self, subscriber_id: str) -> list[str]:
        """Bot ids the subscriber currently follows."""
        return [bot_id for sub, bot_id in self._subscriptions if sub == subscriber_id]

    def close(self) -> None:
        """Cancel all subscriptions and forget all subscribers."""
        for cancel in list(self._subscriptions.values()):
            cancel()
        self._subscriptions.clear()
        self._subscribers.clear()

    def __len__(self) -> int:
        return len(self._subscriptions)

    def __contains__(self, key: object) -> bool:
        return key in self._subscriptions
