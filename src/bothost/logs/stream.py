"""Followed log streams with per-subscriber lifecycles.

This module provides stream_logs(), which attaches to one container's
combined stdout/stderr output and pushes decoded lines to callbacks. Each call
owns its own engine connection; cancelling one subscription never affects
another.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from bothost.logs.decoder import LogLineDecoder
from bothost.runtime import ContainerLogStream, DockerRuntimeClient

logger = logging.getLogger(__name__)

LineCallback = Callable[[str], None]
ErrorCallback = Callable[[Exception], None]

DEFAULT_TAIL = 50


class LogSubscription:
    """Handle for one attached log stream.

    Calling the handle cancels it. Cancellation is idempotent, may happen
    before the engine stream has attached, and guarantees that no callback
    fires after it returns. It must be invoked from the event loop thread.
    """

    def __init__(
        self,
        runtime: DockerRuntimeClient,
        container_id: str,
        on_line: LineCallback,
        on_error: ErrorCallback,
        tail: int = DEFAULT_TAIL,
    ) -> None:
        self.container_id = container_id
        self._runtime = runtime
        self._on_line = on_line
        self._on_error = on_error
        self._tail = tail
        self._stream: ContainerLogStream | None = None
        self._task: asyncio.Task | None = None
        self._cancelled = False
        self._errored = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def start(self) -> None:
        """Schedule attachment on the running event loop."""
        if self._task is None:
            self._task = asyncio.create_task(self._pump())

    def __call__(self) -> None:
        self.cancel()

    def cancel(self) -> None:
        """Stop delivery and release the engine connection."""
        if self._cancelled:
            return
        self._cancelled = True
        if self._stream is None:
            # Still attaching: _pump closes the stream once it arrives.
            return
        self._stream.close()
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def wait(self) -> None:
        """Wait until the stream has ended or been torn down."""
        if self._task is None:
            return
        try:
            await self._task
        except asyncio.CancelledError:
            if not self._cancelled:
                raise

    async def _pump(self) -> None:
        if self._cancelled:
            return
        try:
            stream = await self._runtime.attach_logs(self.container_id, tail=self._tail)
        except Exception as e:
            self._fail(e)
            return

        if self._cancelled:
            stream.close()
            return
        self._stream = stream

        decoder = LogLineDecoder()
        try:
            while not self._cancelled:
                chunk = await stream.read()
                if chunk is None:
                    break
                self._deliver(decoder.feed(chunk))
            self._deliver(decoder.flush())
        except asyncio.CancelledError:
            if not self._cancelled:
                raise
        except Exception as e:
            self._fail(e)
        finally:
            stream.close()

    def _deliver(self, lines: list[str]) -> None:
        for line in lines:
            if self._cancelled or self._errored:
                return
            try:
                self._on_line(line)
            except Exception as e:
                logger.warning("Log subscriber for %s raised: %s", self.container_id, e)

    def _fail(self, error: Exception) -> None:
        if self._cancelled or self._errored:
            return
        self._errored = True
        logger.error("Log stream error for %s: %s", self.container_id, error)
        try:
            self._on_error(error)
        except Exception as e:
            logger.warning("Log error callback for %s raised: %s", self.container_id, e)


def stream_logs(
    runtime: DockerRuntimeClient,
    container_id: str,
    on_line: LineCallback,
    on_error: ErrorCallback,
    tail: int = DEFAULT_TAIL,
) -> LogSubscription:
    """Follow a container's logs, starting ``tail`` lines back.

    Must be called from a running event loop. Returns immediately; the
    returned handle is the cancel function.

    Example:
        cancel = stream_logs(runtime, container_id, print, on_error)
        ...
        cancel()
    """
    subscription = LogSubscription(runtime, container_id, on_line, on_error, tail=tail)
    subscription.start()
    return subscription
