"""Tests for configuration, device limits and grid sizing."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from gpu_gradient.gpu_device import (
    device_config_create,
    device_config_validate,
    device_limits_query,
    perf_monitor_create,
    perf_monitor_kernel_time_record,
    perf_monitor_reset,
    perf_monitor_stats_get,
    perf_monitor_submission_record,
)
from gpu_gradient.gpu_ops import dispatch_grid, workgroup_count
from gpu_gradient.gpu_types import GradientConfig


def test_default_config_is_valid() -> None:
    """Defaults describe a 256x256 image in 8x8 tiles."""
    config = GradientConfig()
    device_config_validate(config)
    assert (config.width, config.height) == (256, 256)
    assert (config.blue, config.alpha) == (128, 255)
    assert config.workgroup_size == 8


@pytest.mark.parametrize(
    "overrides",
    [
        {"width": 0},
        {"height": 0},
        {"width": 2**32},
        {"blue": 300},
        {"alpha": -5},
        {"workgroup_size": 0},
        {"workgroup_size": 33},
        {"max_workgroups_per_dim": 0},
        {"max_batch_operations": 0},
        {"power_preference": "fastest"},
    ],
)
def test_invalid_config_raises(overrides) -> None:
    """Each invalid field is rejected with ValueError."""
    with pytest.raises(ValueError):
        device_config_validate(GradientConfig(**overrides))


@pytest.mark.parametrize(
    ("extent", "size", "count"),
    [(256, 8, 32), (255, 8, 32), (257, 8, 33), (1, 8, 1), (0, 8, 0), (100, 16, 7)],
)
def test_workgroup_count_rounds_up(extent: int, size: int, count: int) -> None:
    """Ceiling division covers every invocation."""
    assert workgroup_count(extent, size) == count


def test_workgroup_count_rejects_bad_input() -> None:
    with pytest.raises(ValueError):
        workgroup_count(-1, 8)
    with pytest.raises(ValueError):
        workgroup_count(256, 0)


def test_dispatch_grid_default() -> None:
    """256x256 in 8x8 tiles is a 32x32x1 grid."""
    assert dispatch_grid(GradientConfig()) == (32, 32, 1)
    assert dispatch_grid(GradientConfig(width=20, height=9)) == (3, 2, 1)


def test_limits_query_accepts_both_key_styles() -> None:
    """Hyphenated and snake_case limit names both resolve."""
    device = SimpleNamespace(
        limits={
            "max-compute-invocations-per-workgroup": 128,
            "max_compute_workgroups_per_dimension": 4096,
        }
    )
    limits = device_limits_query(device)
    assert limits["max_compute_invocations_per_workgroup"] == 128
    assert limits["max_compute_workgroups_per_dimension"] == 4096
    assert limits["max_compute_workgroup_size_x"] == 256


def test_config_create_keeps_8x8_on_default_limits() -> None:
    config = device_config_create(SimpleNamespace(limits={}))
    assert config.workgroup_size == 8
    assert config.max_workgroups_per_dim == 65535


def test_config_create_shrinks_tile_for_small_devices() -> None:
    """A device limited to 16 invocations gets a 4x4 tile."""
    device = SimpleNamespace(
        limits={
            "max_compute_invocations_per_workgroup": 16,
            "max_compute_workgroups_per_dimension": 1024,
        }
    )
    config = device_config_create(device)
    assert config.workgroup_size == 4
    assert config.max_workgroups_per_dim == 1024
    device_config_validate(config)


def test_perf_monitor_stats() -> None:
    """Kernel times aggregate into count/total/avg/min/max."""
    monitor = perf_monitor_create()
    perf_monitor_kernel_time_record(monitor, "gradient", 2.0)
    perf_monitor_kernel_time_record(monitor, "gradient", 4.0)
    perf_monitor_submission_record(monitor)

    stats = perf_monitor_stats_get(monitor)
    assert stats.total_submissions == 1
    gradient = stats.kernel_times["gradient"]
    assert gradient.count == 2
    assert gradient.total_ms == pytest.approx(6.0)
    assert gradient.avg_ms == pytest.approx(3.0)
    assert (gradient.min_ms, gradient.max_ms) == (2.0, 4.0)

    perf_monitor_reset(monitor)
    assert perf_monitor_stats_get(monitor).kernel_times == {}
    assert monitor.submission_count == 0
