"""Notification collaborator - best-effort lifecycle event delivery."""

from bothost.notify.dispatcher import NotificationDispatcher
from bothost.notify.webhook import (
    Notifier,
    NullNotifier,
    WebhookConfig,
    WebhookNotifier,
    WebhookPayload,
)

__all__ = [
    "NotificationDispatcher",
    "Notifier",
    "NullNotifier",
    "WebhookConfig",
    "WebhookNotifier",
    "WebhookPayload",
]
