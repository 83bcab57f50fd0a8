"""Command batching and kernel dispatch"""

from typing import Dict, List, Tuple

from .gpu_device import perf_monitor_submission_record, pipeline_get_or_create
from .gpu_types import BatchState, BindGroupEntry, GPUContext, GradientConfig, PixelBuffer

# ============================================================================
# GRID SIZING
# ============================================================================


def workgroup_count(extent: int, workgroup_size: int) -> int:
    """Number of tiles needed to cover `extent` invocations (ceiling division)."""
    if extent < 0:
        raise ValueError(f"extent must be non-negative, got {extent}")
    if workgroup_size <= 0:
        raise ValueError(f"workgroup_size must be positive, got {workgroup_size}")
    return (extent + workgroup_size - 1) // workgroup_size


def dispatch_grid(config: GradientConfig) -> Tuple[int, int, int]:
    """Workgroup grid covering the whole image, e.g. (32, 32, 1) for 256x256 / 8."""
    return (
        workgroup_count(config.width, config.workgroup_size),
        workgroup_count(config.height, config.workgroup_size),
        1,
    )


# ============================================================================
# INFRASTRUCTURE
# ============================================================================


def create_bind_group_entries(entries: List[BindGroupEntry]) -> List[Dict]:
    """Convert typed BindGroupEntry list to wgpu bind group entry format.

    Args:
        entries: List of BindGroupEntry specifications

    Returns:
        New list of dictionaries in wgpu bind group format
    """
    return [
        {
            "binding": entry.binding,
            "resource": {
                "buffer": entry.buffer,
                "offset": entry.offset,
                "size": entry.size,
            },
        }
        for entry in entries
    ]


def batch_begin(ctx: GPUContext) -> None:
    """Start a new command batch on the context.

    Raises:
        RuntimeError: If a batch is already open
    """
    if ctx.batch_state.encoder is not None:
        raise RuntimeError("Batch already open. Call batch_commit() first.")

    ctx.batch_state = BatchState(encoder=ctx.device.create_command_encoder())


def batch_add(
    ctx: GPUContext,
    kernel_code: str,
    buffers: List[PixelBuffer],
    workgroups_x: int,
    workgroups_y: int = 1,
    workgroups_z: int = 1,
) -> None:
    """
    Add a compute operation to the open batch.

    Storage buffers are bound in order starting at binding 0.

    Args:
        ctx: GPU context with an open batch
        kernel_code: WGSL kernel source
        buffers: GPU buffers to bind
        workgroups_x: Workgroups in X
        workgroups_y: Workgroups in Y
        workgroups_z: Workgroups in Z

    Raises:
        RuntimeError: If no batch is open or the operation limit is exceeded
        ValueError: If workgroup counts exceed the per-dimension limit
    """
    batch_state = ctx.batch_state
    config = ctx.config

    if batch_state.encoder is None:
        raise RuntimeError("Must call batch_begin() before adding operations")

    max_ops = config.max_batch_operations
    if batch_state.operation_count >= max_ops:
        raise RuntimeError(
            f"Batch operation limit ({max_ops}) exceeded. "
            f"Call batch_commit() to flush operations."
        )

    max_workgroups = config.max_workgroups_per_dim
    if (
        workgroups_x > max_workgroups
        or workgroups_y > max_workgroups
        or workgroups_z > max_workgroups
    ):
        raise ValueError(
            f"Workgroup counts ({workgroups_x}, {workgroups_y}, {workgroups_z}) "
            f"exceed maximum ({max_workgroups})"
        )

    pipeline = pipeline_get_or_create(ctx, kernel_code)

    entries = [
        BindGroupEntry(binding, buf.buffer, 0, buf.size * 4)
        for binding, buf in enumerate(buffers)
    ]

    bind_group = ctx.device.create_bind_group(
        layout=pipeline.get_bind_group_layout(0),
        entries=create_bind_group_entries(entries),
    )

    compute_pass = batch_state.encoder.begin_compute_pass()
    compute_pass.set_pipeline(pipeline)
    compute_pass.set_bind_group(0, bind_group)
    compute_pass.dispatch_workgroups(workgroups_x, workgroups_y, workgroups_z)
    compute_pass.end()

    batch_state.operation_count += 1


def batch_commit(ctx: GPUContext) -> None:
    """Submit all batched operations.

    Raises:
        RuntimeError: If batch already submitted or not initialized
    """
    batch_state = ctx.batch_state
    if batch_state.encoder is None:
        raise RuntimeError("Batch already submitted or not initialized")

    ctx.device.queue.submit([batch_state.encoder.finish()])
    perf_monitor_submission_record(ctx.perf_monitor)

    # Clear encoder to prevent reuse
    batch_state.encoder = None


def batch_discard(ctx: GPUContext) -> None:
    """Drop an open batch without submitting it.

    Safe to call when no batch is open.
    """
    ctx.batch_state.encoder = None
    ctx.batch_state.operation_count = 0
