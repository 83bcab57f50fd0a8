"""
GPU (WGPU) Backend for Gradient Rendering
"""

from .gpu_buffer import (
    pixel_buffer_create,
    pixel_buffer_create_sized,
    pixel_buffer_fill,
    pixel_buffer_read,
    pixel_buffer_write,
    pixel_buffer_zerofy,
)
from .gpu_device import (
    context_create,
    device_config_check_limits,
    device_config_create,
    device_config_validate,
    device_create,
    device_limits_query,
    perf_monitor_create,
    perf_monitor_kernel_time_record,
    perf_monitor_reset,
    perf_monitor_stats_get,
    perf_monitor_submission_record,
    pipeline_cache_create,
    pipeline_get_or_create,
)
from .gpu_kernels import create_gradient_kernel, get_gradient_kernel
from .gpu_ops import (
    batch_add,
    batch_begin,
    batch_commit,
    batch_discard,
    dispatch_grid,
    workgroup_count,
)
from .gpu_pass_gradient import gradient_fill, gradient_render
from .gpu_types import (
    GPUContext,
    GradientConfig,
    InvocationCoordinate,
    Pixel,
    PixelBuffer,
)

__all__ = [
    # Types
    "GPUContext",
    "GradientConfig",
    "InvocationCoordinate",
    "Pixel",
    "PixelBuffer",
    # Device
    "context_create",
    "device_create",
    "device_limits_query",
    "pipeline_cache_create",
    "pipeline_get_or_create",
    "device_config_check_limits",
    "device_config_create",
    "device_config_validate",
    # Profiling
    "perf_monitor_reset",
    "perf_monitor_stats_get",
    "perf_monitor_submission_record",
    "perf_monitor_kernel_time_record",
    "perf_monitor_create",
    # Buffers
    "pixel_buffer_create",
    "pixel_buffer_create_sized",
    "pixel_buffer_write",
    "pixel_buffer_fill",
    "pixel_buffer_zerofy",
    "pixel_buffer_read",
    # Kernels
    "create_gradient_kernel",
    "get_gradient_kernel",
    # Ops
    "workgroup_count",
    "dispatch_grid",
    "batch_begin",
    "batch_add",
    "batch_commit",
    "batch_discard",
    # Gradient
    "gradient_fill",
    "gradient_render",
]
