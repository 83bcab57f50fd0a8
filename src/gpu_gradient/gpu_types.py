"""Core data types - plain dataclasses only"""

from dataclasses import dataclass, field
from typing import (
    Dict,
    List,
    NamedTuple,
    Optional,
    Tuple,
)

import wgpu


# ============================================================================
# CONFIGURATION
# ============================================================================
@dataclass
class GradientConfig:
    """
    Centralized configuration for the gradient kernel and its dispatch.

    This dataclass is immutable - do not modify fields after creation.
    Image dimensions are fixed for the renderer; they are fields only so that
    tests can exercise other extents.
    """

    # ========================================================================
    # IMAGE EXTENT
    # ========================================================================

    width: int = 256
    """Image width in pixels (baked into the kernel as a constant)"""

    height: int = 256
    """Image height in pixels (baked into the kernel as a constant)"""

    # ========================================================================
    # CONSTANT CHANNELS
    # ========================================================================

    blue: int = 128
    """Blue channel value written for every pixel (0-255)"""

    alpha: int = 255
    """Alpha channel value written for every pixel (0-255)"""

    # ========================================================================
    # WORKGROUP SIZES
    # ========================================================================

    workgroup_size: int = 8
    """
    Edge length of the square workgroup tile (8x8x1 invocations default)

    Constraints:
    - workgroup_size * workgroup_size <= 1024 (WebGPU maximum), and no more
      than the device's max_compute_invocations_per_workgroup
    - Dispatch grid is rounded up to a multiple of this value
    """

    # ========================================================================
    # COMPUTE LIMITS
    # ========================================================================

    max_workgroups_per_dim: int = 65535
    """
    Maximum workgroups per dimension (WGSL limit).

    This is a WebGPU spec limit and should not be changed.
    """

    max_batch_operations: int = 1000
    """
    Maximum operations per batch submission.

    Prevents unbounded command buffer growth.
    """

    # ========================================================================
    # ADAPTER SELECTION
    # ========================================================================

    power_preference: str = "high-performance"
    """Adapter power preference: "high-performance" or "low-power" """


# ============================================================================
# DEVICE TYPES
# ============================================================================


@dataclass
class PipelineCache:
    """
    Cache for compiled GPU pipelines
    """

    pipelines: Dict[str, wgpu.GPUComputePipeline] = field(default_factory=dict)


@dataclass
class BatchState:
    """
    State for batched GPU operations
    """

    encoder: Optional[wgpu.GPUCommandEncoder]
    operation_count: int = 0


@dataclass
class KernelTimeStats:
    """
    Statistics for kernel execution times

    This dataclass is immutable - do not modify fields after creation.
    """

    count: int
    total_ms: float
    avg_ms: float
    min_ms: float
    max_ms: float


@dataclass
class PerfStats:
    """
    Complete performance statistics snapshot

    This dataclass is immutable - do not modify fields after creation.
    """

    total_submissions: int
    kernel_times: Dict[str, KernelTimeStats]


@dataclass
class PerfMonitor:
    """
    Performance monitoring state
    """

    kernel_times: Dict[str, List[float]] = field(default_factory=dict)
    submission_count: int = 0


@dataclass
class GPUContext:
    device: wgpu.GPUDevice
    config: GradientConfig
    batch_state: BatchState
    pipeline_cache: PipelineCache
    perf_monitor: PerfMonitor = field(default_factory=PerfMonitor)


@dataclass
class BindGroupEntry:
    """
    Type-safe bind group entry specification

    This dataclass is immutable - do not modify fields after creation.
    """

    binding: int
    buffer: wgpu.GPUBuffer
    offset: int
    size: int


# ============================================================================
# GPU BUFFER TYPES
# ============================================================================


@dataclass
class PixelBuffer:
    """
    Row-major buffer of packed 32-bit colors

    `size` may exceed width * height; words past the image are never written
    by the gradient kernel.

    This dataclass is immutable - do not modify fields after creation.
    """

    buffer: wgpu.GPUBuffer
    shape: Tuple[int, int]  # (height, width)
    size: int


# ============================================================================
# KERNEL TYPES
# ============================================================================


class InvocationCoordinate(NamedTuple):
    """global_invocation_id of one kernel execution; z is unused"""

    x: int
    y: int
    z: int = 0


class Pixel(NamedTuple):
    """Four 8-bit channels, intermediate only"""

    r: int
    g: int
    b: int
    a: int
