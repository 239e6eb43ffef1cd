"""Container resource usage statistics.

The engine reports cumulative CPU counters; usage is derived from the delta
between the current and the previous sample relative to the system-wide delta.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict

_MB = 1024 * 1024


class ContainerStats(BaseModel):
    """A single resource usage sample.

    Attributes:
        cpu_usage_percent: CPU usage, 100.0 equals one fully used core
        memory_usage_mb: Resident memory in megabytes
        memory_limit_mb: Memory limit in megabytes
    """

    model_config = ConfigDict(frozen=True)

    cpu_usage_percent: float
    memory_usage_mb: float
    memory_limit_mb: float


def compute_cpu_percent(cpu_delta: float, system_delta: float, online_cpus: int) -> float:
    """Compute CPU usage from counter deltas.

    Returns 0.0 when the system delta is not positive and never a negative
    value.
    """
    if system_delta <= 0:
        return 0.0
    return max((cpu_delta / system_delta) * online_cpus * 100.0, 0.0)


def parse_stats(raw: dict[str, Any]) -> ContainerStats:
    """Build a ContainerStats from the engine's one-shot stats payload."""
    cpu_stats = raw.get("cpu_stats") or {}
    precpu_stats = raw.get("precpu_stats") or {}
    memory_stats = raw.get("memory_stats") or {}

    cpu_delta = cpu_stats.get("cpu_usage", {}).get("total_usage", 0) - precpu_stats.get(
        "cpu_usage", {}
    ).get("total_usage", 0)
    system_delta = cpu_stats.get("system_cpu_usage", 0) - precpu_stats.get(
        "system_cpu_usage", 0
    )
    online_cpus = cpu_stats.get("online_cpus") or len(
        cpu_stats.get("cpu_usage", {}).get("percpu_usage") or []
    ) or 1

    cpu_percent = compute_cpu_percent(cpu_delta, system_delta, online_cpus)
    return ContainerStats(
        cpu_usage_percent=round(cpu_percent, 2),
        memory_usage_mb=round(memory_stats.get("usage", 0) / _MB, 2),
        memory_limit_mb=round(memory_stats.get("limit", 0) / _MB, 2),
    )
