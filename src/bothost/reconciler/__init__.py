"""Status reconciler and read-only analytics over status history."""

from bothost.reconciler.analytics import (
    ActivityEntry,
    BotAnalytics,
    OverviewAnalytics,
    compute_bot_analytics,
    compute_overview,
    running_seconds,
)
from bothost.reconciler.reconciler import StatusReconciler, SweepResult

__all__ = [
    "ActivityEntry",
    "BotAnalytics",
    "OverviewAnalytics",
    "StatusReconciler",
    "SweepResult",
    "compute_bot_analytics",
    "compute_overview",
    "running_seconds",
]
