import time
from typing import Optional, Tuple

import numpy as np

from .gpu_buffer import pixel_buffer_create, pixel_buffer_read
from .gpu_device import perf_monitor_kernel_time_record
from .gpu_kernels import get_gradient_kernel
from .gpu_ops import (
    batch_add,
    batch_begin,
    batch_commit,
    batch_discard,
    dispatch_grid,
)
from .gpu_types import GPUContext, PixelBuffer

# ============================================================================
# GRADIENT PASS
# ============================================================================


def gradient_fill(
    ctx: GPUContext,
    buffer: PixelBuffer,
    workgroups: Optional[Tuple[int, int, int]] = None,
) -> None:
    """
    Record the gradient kernel into the open batch.

    Args:
        ctx: GPU context with an open batch
        buffer: Destination pixel buffer, at least width * height words
        workgroups: Explicit (x, y, z) workgroup grid. Defaults to the grid
            covering the image; a larger grid is absorbed by the bounds guard,
            a smaller one leaves the uncovered words unwritten.

    Raises:
        ValueError: If the buffer is too small for the configured image
    """
    config = ctx.config
    required = config.width * config.height

    if buffer.size < required:
        raise ValueError(
            f"Buffer size {buffer.size} is smaller than image "
            f"({config.width} x {config.height} = {required})"
        )

    workgroups_x, workgroups_y, workgroups_z = workgroups or dispatch_grid(config)

    batch_add(
        ctx,
        get_gradient_kernel(ctx),
        [buffer],
        workgroups_x,
        workgroups_y,
        workgroups_z,
    )


def gradient_render(ctx: GPUContext) -> np.ndarray:
    """
    Render the gradient on the GPU and read it back.

    On failure the open batch is discarded and the pixel buffer destroyed,
    so the context can be reused.

    Returns:
        (height, width) uint32 array of packed RGBA8 words
    """
    config = ctx.config

    start = time.perf_counter()

    buffer = pixel_buffer_create(ctx, config.width, config.height)

    try:
        batch_begin(ctx)
        try:
            gradient_fill(ctx, buffer)
            batch_commit(ctx)
        except Exception:
            batch_discard(ctx)
            raise

        out = np.zeros((config.height, config.width), dtype=np.uint32)
        pixel_buffer_read(ctx, buffer, out)
    finally:
        buffer.buffer.destroy()

    elapsed_ms = (time.perf_counter() - start) * 1000.0
    perf_monitor_kernel_time_record(ctx.perf_monitor, "gradient", elapsed_ms)

    return out
