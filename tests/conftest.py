"""Shared fixtures and utilities for bothost tests.

This module provides:
- Docker engine availability checking for integration tests
- The `requires_docker` decorator to skip tests when no engine is reachable
- A mocked runtime client and in-memory collaborators for unit tests
- Custom markers for test categorization
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from bothost.lifecycle import LifecycleController
from bothost.models import Bot
from bothost.notify import NotificationDispatcher
from bothost.runtime import ContainerStats, DockerRuntimeClient
from bothost.secrets import AesGcmCipher, generate_key
from bothost.storage import InMemoryBotStore


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for test categorization."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests requiring a Docker engine"
    )
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )


def _is_docker_available() -> bool:
    """Check whether a Docker engine answers on the default socket."""
    try:
        import docker

        client = docker.from_env(timeout=2)
        try:
            return bool(client.ping())
        finally:
            client.close()
    except Exception:
        return False


# Skip decorator for integration tests that require a running engine
requires_docker = pytest.mark.skipif(
    not _is_docker_available(),
    reason="Integration test requires a reachable Docker engine",
)


SAMPLE_STATS = ContainerStats(cpu_usage_percent=12.5, memory_usage_mb=64.0, memory_limit_mb=512.0)


def make_bot(bot_id: str = "bot-1", name: str = "Echo", **overrides) -> Bot:
    """Build a bot record with predictable identity fields."""
    fields = {
        "id": bot_id,
        "name": name,
        "code_directory": f"/srv/bots/{bot_id}",
        "container_name": f"bot_{bot_id}",
    }
    fields.update(overrides)
    return Bot(**fields)


@pytest.fixture
def runtime() -> MagicMock:
    """Provide a DockerRuntimeClient mock with happy-path defaults.

    Async methods of the mocked class become AsyncMocks automatically.
    """
    mock = MagicMock(spec=DockerRuntimeClient)
    mock.create_container.return_value = "container-1"
    mock.get_container_status.return_value = "running"
    mock.get_container_stats.return_value = SAMPLE_STATS
    mock.read_logs.return_value = b""
    return mock


@pytest.fixture
def store() -> InMemoryBotStore:
    return InMemoryBotStore()


@pytest.fixture
def cipher() -> AesGcmCipher:
    return AesGcmCipher.from_base64(generate_key())


@pytest.fixture
def notifier() -> MagicMock:
    """Provide a notifier whose send() records calls."""
    mock = MagicMock()
    mock.send = AsyncMock()
    mock.aclose = AsyncMock()
    return mock


@pytest.fixture
def dispatcher(notifier: MagicMock) -> NotificationDispatcher:
    return NotificationDispatcher(notifier)


@pytest.fixture
def controller(
    store: InMemoryBotStore,
    runtime: MagicMock,
    cipher: AesGcmCipher,
    dispatcher: NotificationDispatcher,
    tmp_path,
) -> LifecycleController:
    """Provide a controller wired to in-memory collaborators."""
    return LifecycleController(
        store,
        runtime,
        cipher,
        dispatcher=dispatcher,
        code_root=tmp_path / "bots",
        windows_host=False,
    )
