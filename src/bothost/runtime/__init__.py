"""Container runtime client - the uniform contract over the container engine."""

from bothost.runtime.container_spec import (
    CONTAINER_CODE_PATH,
    DEFAULT_RUNTIME_IMAGES,
    ContainerSpec,
    build_container_spec,
    build_start_command,
)
from bothost.runtime.docker_client import (
    ContainerLogStream,
    ContainerState,
    DockerRuntimeClient,
)
from bothost.runtime.paths import to_engine_path
from bothost.runtime.stats import ContainerStats, compute_cpu_percent, parse_stats

__all__ = [
    "CONTAINER_CODE_PATH",
    "DEFAULT_RUNTIME_IMAGES",
    "ContainerLogStream",
    "ContainerSpec",
    "ContainerState",
    "ContainerStats",
    "DockerRuntimeClient",
    "build_container_spec",
    "build_start_command",
    "compute_cpu_percent",
    "parse_stats",
    "to_engine_path",
]
