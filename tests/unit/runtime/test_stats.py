"""Unit tests for container stats computation."""

from bothost.runtime import compute_cpu_percent, parse_stats


class TestComputeCpuPercent:
    """Tests for compute_cpu_percent."""

    def test_reference_values(self) -> None:
        """cpuDelta=200, systemDelta=1000, 4 CPUs gives 80 percent."""
        assert compute_cpu_percent(200, 1000, 4) == 80.0

    def test_zero_system_delta(self) -> None:
        """A non-positive system delta yields zero instead of dividing."""
        assert compute_cpu_percent(200, 0, 4) == 0.0
        assert compute_cpu_percent(200, -10, 4) == 0.0

    def test_never_negative(self) -> None:
        """A counter reset never produces negative usage."""
        assert compute_cpu_percent(-50, 1000, 2) == 0.0


class TestParseStats:
    """Tests for parse_stats."""

    def test_full_payload(self) -> None:
        """Usage is derived from the current and previous samples."""
        raw = {
            "cpu_stats": {
                "cpu_usage": {"total_usage": 1200},
                "system_cpu_usage": 11000,
                "online_cpus": 4,
            },
            "precpu_stats": {
                "cpu_usage": {"total_usage": 1000},
                "system_cpu_usage": 10000,
            },
            "memory_stats": {"usage": 128 * 1024 * 1024, "limit": 512 * 1024 * 1024},
        }
        stats = parse_stats(raw)
        assert stats.cpu_usage_percent == 80.0
        assert stats.memory_usage_mb == 128.0
        assert stats.memory_limit_mb == 512.0

    def test_percpu_fallback(self) -> None:
        """online_cpus falls back to the length of percpu_usage."""
        raw = {
            "cpu_stats": {
                "cpu_usage": {"total_usage": 300, "percpu_usage": [1, 1]},
                "system_cpu_usage": 1000,
            },
            "precpu_stats": {"cpu_usage": {"total_usage": 100}, "system_cpu_usage": 0},
            "memory_stats": {},
        }
        stats = parse_stats(raw)
        assert stats.cpu_usage_percent == 40.0
        assert stats.memory_usage_mb == 0.0

    def test_first_sample_without_previous(self) -> None:
        """An empty precpu block does not crash."""
        raw = {
            "cpu_stats": {"cpu_usage": {"total_usage": 0}, "system_cpu_usage": 0},
            "precpu_stats": {},
            "memory_stats": {"usage": 1024 * 1024},
        }
        stats = parse_stats(raw)
        assert stats.cpu_usage_percent == 0.0
        assert stats.memory_usage_mb == 1.0
