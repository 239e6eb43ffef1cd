"""Async runtime client over the Docker engine.

This module provides the DockerRuntimeClient class, a thin async wrapper over
the blocking Docker SDK. Every engine call runs in a worker thread and is
bounded by an explicit call-level timeout. "Not found" conditions are
normalised here so callers never inspect engine-specific errors.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Callable
from typing import Any, Literal, TypeVar

import docker
from docker.errors import DockerException, NotFound

from bothost.exceptions import (
    ContainerRuntimeError,
    ContainerTimeoutError,
    ImagePullError,
)
from bothost.runtime.container_spec import ContainerSpec
from bothost.runtime.stats import ContainerStats, parse_stats

logger = logging.getLogger(__name__)

ContainerState = Literal["running", "exited", "created", "unknown"]

T = TypeVar("T")

_STATE_MAP: dict[str, ContainerState] = {
    "running": "running",
    "exited": "exited",
    "dead": "exited",
    "created": "created",
}


class ContainerLogStream:
    """A followed log stream attached to one container.

    Wraps the SDK's blocking stream. ``read`` pulls the next chunk in a worker
    thread; ``close`` shuts the underlying connection down, which also
    unblocks a pending ``read``.
    """

    def __init__(self, stream: Any) -> None:
        self._stream = stream
        self._iterator = iter(stream)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def read(self) -> bytes | None:
        """Return the next raw chunk, or None once the stream has ended."""
        if self._closed:
            return None
        return await asyncio.to_thread(next, self._iterator, None)

    def close(self) -> None:
        """Release the engine connection. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        close = getattr(self._stream, "close", None)
        if close is None:
            return
        try:
            close()
        except (OSError, AttributeError) as e:
            logger.debug("Error closing log stream: %s", e)


class DockerRuntimeClient:
    """Uniform async contract over the Docker engine.

    Example:
        client = DockerRuntimeClient(call_timeout=30.0)
        container_id = await client.create_container(spec)
        await client.start_container(container_id)
        stats = await client.get_container_stats(container_id)
        await client.stop_container(container_id)
        await client.remove_container(container_id)
    """

    def __init__(
        self,
        api: docker.APIClient | None = None,
        base_url: str | None = None,
        call_timeout: float = 60.0,
        stop_grace_seconds: int = 10,
    ) -> None:
        """Initialize the runtime client.

        Args:
            api: Preconfigured low-level API client. Created lazily from the
                environment (or ``base_url``) when omitted.
            base_url: Engine address, e.g. ``unix:///var/run/docker.sock``.
            call_timeout: Upper bound in seconds for any single engine call.
            stop_grace_seconds: Default grace period for stop and restart.
        """
        self._api = api
        self._base_url = base_url
        self._call_timeout = call_timeout
        self._stop_grace_seconds = stop_grace_seconds
        self._api_lock = threading.Lock()

    def _get_api(self) -> docker.APIClient:
        with self._api_lock:
            if self._api is None:
                if self._base_url:
                    self._api = docker.APIClient(base_url=self._base_url)
                else:
                    self._api = docker.from_env().api
            return self._api

    async def _call(self, description: str, func: Callable[[docker.APIClient], T]) -> T:
        """Run a blocking engine call in a worker thread with a timeout.

        NotFound propagates unchanged so callers can normalise it. Every other
        engine or transport failure becomes ContainerRuntimeError.
        """

        def run() -> T:
            return func(self._get_api())

        try:
            return await asyncio.wait_for(asyncio.to_thread(run), timeout=self._call_timeout)
        except NotFound:
            raise
        except asyncio.TimeoutError as e:
            raise ContainerTimeoutError(
                f"{description} timed out after {self._call_timeout}s"
            ) from e
        except (DockerException, OSError) as e:
            raise ContainerRuntimeError(f"{description} failed: {e}") from e

    async def ensure_image(self, image: str) -> None:
        """Pull an image unless it is already present locally.

        Raises:
            ImagePullError: If the pull fails.
        """
        try:
            await self._call(f"inspect image {image}", lambda api: api.inspect_image(image))
            logger.debug("Image %s already present", image)
            return
        except NotFound:
            pass

        logger.info("Pulling image %s", image)

        def pull(api: docker.APIClient) -> None:
            for event in api.pull(image, stream=True, decode=True):
                if isinstance(event, dict) and event.get("error"):
                    raise ImagePullError(f"Failed to pull {image}: {event['error']}")

        try:
            await self._call(f"pull image {image}", pull)
        except NotFound as e:
            raise ImagePullError(f"Image {image} not found: {e}") from e
        except ImagePullError:
            raise
        except ContainerRuntimeError as e:
            raise ImagePullError(f"Failed to pull {image}: {e}") from e
        logger.info("Image %s pulled successfully", image)

    async def create_container(self, spec: ContainerSpec) -> str:
        """Create (but do not start) a container.

        Returns:
            The new container id.

        Raises:
            ImagePullError: If the image is missing and cannot be pulled.
            ContainerRuntimeError: If the engine rejects the container.
        """
        await self.ensure_image(spec.image)

        def create(api: docker.APIClient) -> dict:
            host_config = api.create_host_config(
                binds=spec.binds,
                mem_limit=spec.memory_bytes,
                memswap_limit=spec.memory_swap_bytes,
                nano_cpus=spec.nano_cpus,
                restart_policy=spec.restart_policy,
                network_mode=spec.network_mode,
            )
            return api.create_container(
                image=spec.image,
                command=spec.command,
                name=spec.name,
                working_dir=spec.working_dir,
                environment=spec.environment,
                labels=spec.labels,
                host_config=host_config,
                tty=False,
            )

        try:
            result = await self._call(f"create container {spec.name}", create)
        except NotFound as e:
            raise ContainerRuntimeError(f"create container {spec.name} failed: {e}") from e

        container_id = result["Id"]
        logger.info(
            "Container created: %s (%s, memory=%dB, nano_cpus=%d)",
            container_id,
            spec.name,
            spec.memory_bytes,
            spec.nano_cpus,
        )
        return container_id

    async def start_container(self, container_id: str) -> None:
        """Start a created or stopped container."""
        try:
            await self._call(f"start {container_id}", lambda api: api.start(container_id))
        except NotFound as e:
            raise ContainerRuntimeError(f"Container {container_id} does not exist") from e
        logger.info("Container started: %s", container_id)

    async def stop_container(self, container_id: str, grace_period: int | None = None) -> None:
        """Stop a container. Stopping a stopped or absent container is a no-op."""
        grace = self._stop_grace_seconds if grace_period is None else grace_period
        try:
            await self._call(
                f"stop {container_id}", lambda api: api.stop(container_id, timeout=grace)
            )
        except NotFound:
            logger.debug("Container %s already gone, nothing to stop", container_id)
            return
        logger.info("Container stopped: %s", container_id)

    async def restart_container(self, container_id: str, grace_period: int | None = None) -> None:
        """Restart a container in place, keeping its id and mounts."""
        grace = self._stop_grace_seconds if grace_period is None else grace_period
        try:
            await self._call(
                f"restart {container_id}", lambda api: api.restart(container_id, timeout=grace)
            )
        except NotFound as e:
            raise ContainerRuntimeError(f"Container {container_id} does not exist") from e
        logger.info("Container restarted: %s", container_id)

    async def remove_container(self, container_id: str, force: bool = True) -> None:
        """Remove a container by id or name. Removing an absent container is a no-op."""
        try:
            await self._call(
                f"remove {container_id}",
                lambda api: api.remove_container(container_id, force=force),
            )
        except NotFound:
            logger.debug("Container %s already removed", container_id)
            return
        logger.info("Container removed: %s", container_id)

    async def get_container_status(self, container_id: str) -> ContainerState:
        """Return the engine-observed state, ``unknown`` if the container is gone."""
        try:
            info = await self._call(
                f"inspect {container_id}", lambda api: api.inspect_container(container_id)
            )
        except NotFound:
            return "unknown"
        raw_state = (info.get("State") or {}).get("Status", "")
        return _STATE_MAP.get(raw_state, "unknown")

    async def get_container_stats(self, container_id: str) -> ContainerStats | None:
        """Sample resource usage. Returns None on any retrieval failure."""
        try:
            raw = await self._call(
                f"stats {container_id}", lambda api: api.stats(container_id, stream=False)
            )
            return parse_stats(raw)
        except (NotFound, ContainerRuntimeError, KeyError, TypeError, ValueError) as e:
            logger.debug("Stats unavailable for %s: %s", container_id, e)
            return None

    async def read_logs(self, container_id: str, tail: int = 100) -> bytes:
        """Return the last ``tail`` log lines as raw bytes, empty if gone."""
        try:
            return await self._call(
                f"logs {container_id}",
                lambda api: api.logs(
                    container_id, stdout=True, stderr=True, tail=tail, timestamps=True
                ),
            )
        except NotFound:
            return b""

    async def attach_logs(self, container_id: str, tail: int = 50) -> ContainerLogStream:
        """Open a followed stdout/stderr stream starting ``tail`` lines back."""
        try:
            stream = await self._call(
                f"attach logs {container_id}",
                lambda api: api.logs(
                    container_id,
                    stdout=True,
                    stderr=True,
                    stream=True,
                    follow=True,
                    tail=tail,
                    timestamps=False,
                ),
            )
        except NotFound as e:
            raise ContainerRuntimeError(f"Container {container_id} does not exist") from e
        return ContainerLogStream(stream)

    async def system_summary(self) -> dict[str, Any]:
        """Summarize engine connectivity and managed containers. Never raises."""

        def collect(api: docker.APIClient) -> dict[str, Any]:
            version = api.version()
            containers = api.containers(all=True, filters={"label": "bothost.managed=true"})
            running = [c for c in containers if c.get("State") == "running"]
            return {
                "connected": True,
                "version": version.get("Version"),
                "containers": {
                    "total": len(containers),
                    "running": len(running),
                    "stopped": len(containers) - len(running),
                },
            }

        try:
            return await self._call("system summary", collect)
        except (NotFound, ContainerRuntimeError) as e:
            logger.warning("Container engine unavailable: %s", e)
            return {
                "connected": False,
                "version": None,
                "containers": {"total": 0, "running": 0, "stopped": 0},
            }
