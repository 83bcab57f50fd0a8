"""Device management and pipeline caching"""

import hashlib
from typing import Dict, Optional

import wgpu

from .gpu_types import (
    BatchState,
    GPUContext,
    GradientConfig,
    KernelTimeStats,
    PerfMonitor,
    PerfStats,
    PipelineCache,
)

# ============================================================================
# DEVICE MANAGEMENT
# ============================================================================


def device_create(power_preference: str = "high-performance") -> wgpu.GPUDevice:
    """
    Create a new WGPU device

    Args:
        power_preference: Adapter preference passed to request_adapter_sync

    Returns:
        Initialized WGPU device

    Raises:
        RuntimeError: If no adapter is available or device creation fails
    """

    try:
        adapter = wgpu.gpu.request_adapter_sync(power_preference=power_preference)
        if adapter is None:
            raise RuntimeError("no compatible adapter found")
        wgpu_device = adapter.request_device_sync()
    except Exception as e:
        raise RuntimeError(f"WGPU initialization failed: {e}") from e

    description = adapter.info.get("description") or adapter.info.get("device", "")
    print(f"WGPU device initialized {description}".rstrip())

    return wgpu_device


def pipeline_cache_create() -> PipelineCache:
    """Create a new pipeline cache.

    Returns:
        New empty pipeline cache for caching compiled shaders
    """
    return PipelineCache()


def context_create(
    config: Optional[GradientConfig] = None,
    device: Optional[wgpu.GPUDevice] = None,
) -> GPUContext:
    """Create a GPU context with a validated configuration.

    Args:
        config: Optional configuration. If None, tuned from device limits.
        device: Optional existing device to reuse

    Returns:
        Context with empty batch state, pipeline cache and perf monitor

    Raises:
        ValueError: If the config is invalid or exceeds the device limits
    """
    if device is None:
        preference = config.power_preference if config else "high-performance"
        device = device_create(preference)

    if config is None:
        config = device_config_create(device)

    device_config_validate(config)
    device_config_check_limits(config, device_limits_query(device))

    return GPUContext(
        device=device,
        config=config,
        batch_state=BatchState(encoder=None),
        pipeline_cache=pipeline_cache_create(),
        perf_monitor=perf_monitor_create(),
    )


def device_limits_query(device: wgpu.GPUDevice) -> Dict[str, int]:
    """Query device compute limits.

    Missing keys fall back to WebGPU defaults, so callers always get a
    complete dictionary.

    Args:
        device: GPU device

    Returns:
        Dictionary of device limits with keys:
        - max_compute_workgroup_size_x
        - max_compute_workgroup_size_y
        - max_compute_invocations_per_workgroup
        - max_compute_workgroups_per_dimension
        - max_storage_buffer_binding_size
    """
    limits = {
        "max_compute_workgroup_size_x": 256,
        "max_compute_workgroup_size_y": 256,
        "max_compute_invocations_per_workgroup": 256,
        "max_compute_workgroups_per_dimension": 65535,
        "max_storage_buffer_binding_size": 134217728,
    }

    # wgpu-py releases differ on "max-foo" vs "max_foo" keys
    device_limits = {
        str(key).replace("-", "_"): value
        for key, value in (getattr(device, "limits", None) or {}).items()
    }
    for key in limits:
        if key in device_limits:
            limits[key] = int(device_limits[key])

    return limits


def pipeline_get_or_create(
    ctx: GPUContext, shader_code: str
) -> wgpu.GPUComputePipeline:
    """Cache compute pipelines to avoid recompilation.

    Keyed by SHA256 of the shader source.

    Args:
        shader_code: WGSL shader source code

    Returns:
        Cached or newly compiled compute pipeline
    """
    shader_hash = hashlib.sha256(shader_code.encode("utf-8")).hexdigest()

    if shader_hash not in ctx.pipeline_cache.pipelines:
        shader_module = ctx.device.create_shader_module(code=shader_code)
        pipeline = ctx.device.create_compute_pipeline(
            layout="auto",
            compute={
                "module": shader_module,
                "entry_point": "main",
            },
        )
        ctx.pipeline_cache.pipelines[shader_hash] = pipeline

    return ctx.pipeline_cache.pipelines[shader_hash]


# ============================================================================
# CONFIGURATION
# ============================================================================


def device_config_create(device: wgpu.GPUDevice) -> GradientConfig:
    """
    Create configuration tuned for a specific device.

    Keeps the 8x8 tile unless the device cannot run that many invocations
    per workgroup, in which case the largest fitting power of 2 is used.

    Args:
        device: WGPU device (from adapter.request_device_sync())

    Returns:
        GradientConfig for the device
    """
    limits = device_limits_query(device)
    default_config = GradientConfig()

    max_invocations = limits["max_compute_invocations_per_workgroup"]
    max_edge = min(
        limits["max_compute_workgroup_size_x"],
        limits["max_compute_workgroup_size_y"],
    )

    workgroup_size = default_config.workgroup_size
    while workgroup_size > 1 and (
        workgroup_size * workgroup_size > max_invocations or workgroup_size > max_edge
    ):
        workgroup_size //= 2

    return GradientConfig(
        workgroup_size=workgroup_size,
        max_workgroups_per_dim=limits["max_compute_workgroups_per_dimension"],
    )


def device_config_validate(config: GradientConfig) -> None:
    """
    Validate configuration for correctness.

    Args:
        config: Configuration to validate

    Raises:
        ValueError: If any parameter is invalid
    """
    if config.width <= 0 or config.height <= 0:
        raise ValueError(
            f"Image dimensions must be positive, got ({config.width}, {config.height})"
        )

    # x * 255 and y * width + x are computed in u32
    if config.width * 255 > 0xFFFFFFFF or config.height * 255 > 0xFFFFFFFF:
        raise ValueError(
            f"Image dimensions too large for u32 channel math: "
            f"({config.width}, {config.height})"
        )

    if config.width * config.height > 0xFFFFFFFF:
        raise ValueError(
            f"Image has too many pixels to index with u32: "
            f"{config.width * config.height}"
        )

    for name in ("blue", "alpha"):
        value = getattr(config, name)
        if not 0 <= value <= 255:
            raise ValueError(f"{name} must be in [0, 255], got {value}")

    if config.workgroup_size <= 0:
        raise ValueError(
            f"workgroup_size must be positive, got {config.workgroup_size}"
        )

    if config.workgroup_size * config.workgroup_size > 1024:
        raise ValueError(
            f"workgroup_size too large: {config.workgroup_size}. "
            "WebGPU limit is 1024 invocations per workgroup."
        )

    if config.max_workgroups_per_dim <= 0:
        raise ValueError(
            f"max_workgroups_per_dim must be positive, got {config.max_workgroups_per_dim}"
        )

    if config.max_batch_operations <= 0:
        raise ValueError(
            f"max_batch_operations must be positive, got {config.max_batch_operations}"
        )

    if config.power_preference not in ("high-performance", "low-power"):
        raise ValueError(
            f"power_preference must be 'high-performance' or 'low-power', "
            f"got {config.power_preference!r}"
        )


def device_config_check_limits(config: GradientConfig, limits: Dict[str, int]) -> None:
    """
    Check a configuration against the limits of a specific device.

    Args:
        config: Configuration already passed through device_config_validate
        limits: Dictionary from device_limits_query

    Raises:
        ValueError: If the tile or grid limit exceeds what the device supports
    """
    invocations = config.workgroup_size * config.workgroup_size
    max_invocations = limits["max_compute_invocations_per_workgroup"]
    if invocations > max_invocations:
        raise ValueError(
            f"workgroup_size {config.workgroup_size} needs {invocations} invocations, "
            f"device allows {max_invocations} per workgroup"
        )

    max_edge = min(
        limits["max_compute_workgroup_size_x"],
        limits["max_compute_workgroup_size_y"],
    )
    if config.workgroup_size > max_edge:
        raise ValueError(
            f"workgroup_size {config.workgroup_size} exceeds device "
            f"workgroup edge limit {max_edge}"
        )

    max_per_dim = limits["max_compute_workgroups_per_dimension"]
    if config.max_workgroups_per_dim > max_per_dim:
        raise ValueError(
            f"max_workgroups_per_dim {config.max_workgroups_per_dim} exceeds "
            f"device limit {max_per_dim}"
        )


# ============================================================================
# PROFILING
# ============================================================================


def perf_monitor_create() -> PerfMonitor:
    """Create performance monitor state"""
    return PerfMonitor()


def perf_monitor_kernel_time_record(
    monitor: PerfMonitor, kernel_name: str, duration_ms: float
) -> None:
    """Record kernel execution time"""
    if kernel_name not in monitor.kernel_times:
        monitor.kernel_times[kernel_name] = []
    monitor.kernel_times[kernel_name].append(duration_ms)


def perf_monitor_submission_record(monitor: PerfMonitor) -> None:
    """Increment submission counter"""
    monitor.submission_count += 1


def perf_monitor_stats_get(monitor: PerfMonitor) -> PerfStats:
    """Get performance statistics"""
    kernel_stats = {}
    for kernel_name, times in monitor.kernel_times.items():
        kernel_stats[kernel_name] = KernelTimeStats(
            count=len(times),
            total_ms=sum(times),
            avg_ms=sum(times) / len(times) if times else 0,
            min_ms=min(times) if times else 0,
            max_ms=max(times) if times else 0,
        )
    return PerfStats(
        total_submissions=monitor.submission_count, kernel_times=kernel_stats
    )


def perf_monitor_reset(monitor: PerfMonitor) -> None:
    """Reset all counters"""
    monitor.kernel_times.clear()
    monitor.submission_count = 0
