"""Unit tests for the StatusReconciler."""

import asyncio

import pytest

from bothost.exceptions import ContainerRuntimeError
from bothost.models import Bot, BotStatus
from bothost.reconciler import StatusReconciler
from tests.conftest import SAMPLE_STATS, make_bot


async def add_bot(store, bot_id: str, status: BotStatus, container_id: str | None) -> Bot:
    return await store.create_bot(make_bot(bot_id, status=status, container_id=container_id))


class TestSweep:
    """Tests for a single reconciliation sweep."""

    @pytest.mark.asyncio
    async def test_samples_running_bots_only(self, store, runtime) -> None:
        await add_bot(store, "running", BotStatus.RUNNING, "c-running")
        await add_bot(store, "stopped", BotStatus.STOPPED, "c-stopped")
        await add_bot(store, "errored", BotStatus.ERROR, "c-errored")
        reconciler = StatusReconciler(store, runtime, interval_seconds=60)

        result = await reconciler.sweep_once()

        assert result.sampled == ["running"]
        runtime.get_container_stats.assert_awaited_once_with("c-running")
        history = await store.list_status_history()
        assert len(history) == 1
        assert history[0].status == BotStatus.RUNNING
        assert history[0].cpu_usage == 12.5
        assert history[0].memory_usage == 64.0

    @pytest.mark.asyncio
    async def test_running_without_container_ignored(self, store, runtime) -> None:
        await add_bot(store, "orphan", BotStatus.RUNNING, None)

        result = await StatusReconciler(store, runtime).sweep_once()

        assert result.sampled == result.skipped == result.failed == []
        runtime.get_container_stats.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_one_failure_does_not_abort_sweep(self, store, runtime) -> None:
        await add_bot(store, "bad", BotStatus.RUNNING, "c-bad")
        await add_bot(store, "good", BotStatus.RUNNING, "c-good")

        async def stats(container_id: str):
            if container_id == "c-bad":
                raise ContainerRuntimeError("engine hiccup")
            return SAMPLE_STATS

        runtime.get_container_stats.side_effect = stats

        result = await StatusReconciler(store, runtime).sweep_once()

        assert result.failed == ["bad"]
        assert result.sampled == ["good"]
        assert [h.bot_id for h in await store.list_status_history()] == ["good"]

    @pytest.mark.asyncio
    async def test_missing_stats_skipped(self, store, runtime) -> None:
        """A bot whose stats are unavailable gets no sample."""
        await add_bot(store, "racing", BotStatus.RUNNING, "c-racing")
        runtime.get_container_stats.return_value = None

        result = await StatusReconciler(store, runtime).sweep_once()

        assert result.skipped == ["racing"]
        assert await store.list_status_history() == []

    @pytest.mark.asyncio
    async def test_never_changes_status(self, store, runtime) -> None:
        """Even when the container has exited, the recorded status stays RUNNING."""
        await add_bot(store, "exited", BotStatus.RUNNING, "c-exited")
        runtime.get_container_status.return_value = "exited"
        runtime.get_container_stats.side_effect = ContainerRuntimeError("not running")

        await StatusReconciler(store, runtime).sweep_once()

        bot = await store.get_bot("exited")
        assert bot.status == BotStatus.RUNNING
        assert bot.container_id == "c-exited"


class TestLoop:
    """Tests for the background loop."""

    def test_interval_must_be_positive(self, store, runtime) -> None:
        with pytest.raises(ValueError):
            StatusReconciler(store, runtime, interval_seconds=0)

    @pytest.mark.asyncio
    async def test_start_and_stop(self, store, runtime) -> None:
        await add_bot(store, "running", BotStatus.RUNNING, "c-running")
        reconciler = StatusReconciler(store, runtime, interval_seconds=0.01)

        reconciler.start()
        assert reconciler.running
        for _ in range(100):
            if await store.list_status_history():
                break
            await asyncio.sleep(0.01)
        await reconciler.stop()

        assert not reconciler.running
        assert len(await store.list_status_history()) >= 1

    @pytest.mark.asyncio
    async def test_loop_survives_sweep_errors(self, store, runtime) -> None:
        """A failing store does not kill the loop."""
        reconciler = StatusReconciler(store, runtime, interval_seconds=0.01)
        original = store.list_bots
        calls = 0

        async def flaky_list(status=None):
            nonlocal calls
            calls += 1
            if calls == 1:
                raise OSError("disk unavailable")
            return await original(status)

        store.list_bots = flaky_list
        reconciler.start()
        for _ in range(100):
            if calls >= 2:
                break
            await asyncio.sleep(0.01)
        await reconciler.stop()

        assert calls >= 2

    @pytest.mark.asyncio
    async def test_stop_when_not_started(self, store, runtime) -> None:
        await StatusReconciler(store, runtime).stop()
