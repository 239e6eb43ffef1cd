"""Read-only uptime and utilisation aggregation over status history."""

from datetime import datetime, timedelta

from pydantic import BaseModel, Field

from bothost.exceptions import BotNotFoundError
from bothost.models import BotStatus, StatusHistoryEntry, utcnow
from bothost.storage import BotStore

DEFAULT_WINDOW_HOURS = 24
RECENT_ACTIVITY_LIMIT = 10


class BotAnalytics(BaseModel):
    """Windowed analytics for one bot.

    Attributes:
        bot_id: Bot identifier
        window_hours: Length of the analysed window
        uptime_percent: Share of the window spent RUNNING
        total_runtime_hours: Time spent RUNNING within the window
        average_cpu: Mean CPU percent over samples carrying usage data
        average_memory_mb: Mean memory usage over samples carrying usage data
        history: Samples within the window, oldest first
    """

    bot_id: str
    window_hours: float
    uptime_percent: float
    total_runtime_hours: float
    average_cpu: float
    average_memory_mb: float
    history: list[StatusHistoryEntry] = Field(default_factory=list)


class ActivityEntry(BaseModel):
    bot_id: str
    bot_name: str
    status: BotStatus
    timestamp: datetime


class OverviewAnalytics(BaseModel):
    """Fleet-wide counts, mean uptime and the latest status samples."""

    total_bots: int
    running_bots: int
    stopped_bots: int
    error_bots: int
    average_uptime_percent: float
    recent_activity: list[ActivityEntry] = Field(default_factory=list)


def running_seconds(history: list[StatusHistoryEntry], now: datetime) -> float:
    """Total seconds covered by RUNNING intervals.

    An interval opens at the first RUNNING sample and closes at the next
    non-RUNNING sample. An interval still open at the end counts up to ``now``.
    """
    total = 0.0
    running_since: datetime | None = None
    for entry in sorted(history, key=lambda h: h.timestamp):
        if entry.status == BotStatus.RUNNING:
            if running_since is None:
                running_since = entry.timestamp
        elif running_since is not None:
            total += (entry.timestamp - running_since).total_seconds()
            running_since = None
    if running_since is not None:
        total += (now - running_since).total_seconds()
    return total


def _mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


async def compute_bot_analytics(
    store: BotStore,
    bot_id: str,
    hours_back: float = DEFAULT_WINDOW_HOURS,
    now: datetime | None = None,
) -> BotAnalytics:
    """Compute uptime and average usage for one bot over a trailing window.

    Raises:
        BotNotFoundError: If the bot does not exist.
    """
    if await store.get_bot(bot_id) is None:
        raise BotNotFoundError(f"Bot {bot_id} not found")

    now = now or utcnow()
    window = timedelta(hours=hours_back)
    since = now - window
    history = sorted(
        await store.list_status_history(bot_id=bot_id, since=since),
        key=lambda h: h.timestamp,
    )

    running = running_seconds(history, now)
    window_seconds = window.total_seconds()
    uptime = running / window_seconds * 100 if window_seconds > 0 else 0.0

    samples = [h for h in history if h.cpu_usage is not None and h.memory_usage is not None]

    return BotAnalytics(
        bot_id=bot_id,
        window_hours=hours_back,
        uptime_percent=round(uptime, 2),
        total_runtime_hours=round(running / 3600, 2),
        average_cpu=round(_mean([h.cpu_usage for h in samples]), 2),
        average_memory_mb=round(_mean([h.memory_usage for h in samples]), 2),
        history=history,
    )


async def compute_overview(store: BotStore, now: datetime | None = None) -> OverviewAnalytics:
    """Summarise all bots: status counts, mean 24h uptime, recent activity."""
    now = now or utcnow()
    bots = await store.list_bots()
    names = {b.id: b.name for b in bots}

    uptimes = []
    for bot in bots:
        try:
            analytics = await compute_bot_analytics(store, bot.id, now=now)
        except BotNotFoundError:
            # Deleted while the overview was being built.
            uptimes.append(0.0)
            continue
        uptimes.append(analytics.uptime_percent)

    history = await store.list_status_history()
    latest = sorted(history, key=lambda h: h.timestamp, reverse=True)[:RECENT_ACTIVITY_LIMIT]

    return OverviewAnalytics(
        total_bots=len(bots),
        running_bots=sum(1 for b in bots if b.status == BotStatus.RUNNING),
        stopped_bots=sum(1 for b in bots if b.status == BotStatus.STOPPED),
        error_bots=sum(1 for b in bots if b.status == BotStatus.ERROR),
        average_uptime_percent=round(_mean(uptimes), 2),
        recent_activity=[
            ActivityEntry(
                bot_id=h.bot_id,
                bot_name=names.get(h.bot_id, ""),
                status=h.status,
                timestamp=h.timestamp,
            )
            for h in latest
        ],
    )
