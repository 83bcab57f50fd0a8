"""Buffer creation, upload and readback"""

from typing import Optional

import numpy as np
import wgpu

from .gpu_device import device_limits_query
from .gpu_types import GPUContext, PixelBuffer

# ============================================================================
# BASIC BUFFER OPERATIONS
# ============================================================================


def __gpu_buffer_create(
    ctx: GPUContext, size: int, data: Optional[np.ndarray] = None
) -> wgpu.GPUBuffer:
    """Internal: Create raw storage buffer of `size` u32 words.

    Args:
        ctx: GPU context
        size: Number of 32-bit words
        data: Optional numpy array to initialize buffer contents

    Returns:
        Raw WGPU buffer object
    """
    usage = (
        wgpu.BufferUsage.STORAGE | wgpu.BufferUsage.COPY_SRC | wgpu.BufferUsage.COPY_DST
    )

    if data is not None:
        data_np = np.ascontiguousarray(data, dtype=np.uint32).flatten()
        return ctx.device.create_buffer_with_data(data=data_np, usage=usage)

    return ctx.device.create_buffer(size=size * 4, usage=usage)


def pixel_buffer_create(
    ctx: GPUContext, width: int, height: int, data: Optional[np.ndarray] = None
) -> PixelBuffer:
    """Create a buffer holding exactly width x height packed pixels.

    Args:
        ctx: GPU context
        width: Image width
        height: Image height
        data: Optional initial words, shape (height, width) or (height * width,)

    Returns:
        Typed pixel buffer

    Raises:
        ValueError: If dimensions <= 0, the buffer exceeds the device storage binding
            limit, or data size doesn't match
    """
    return pixel_buffer_create_sized(ctx, width, height, width * height, data)


def pixel_buffer_create_sized(
    ctx: GPUContext,
    width: int,
    height: int,
    size: int,
    data: Optional[np.ndarray] = None,
) -> PixelBuffer:
    """Create a pixel buffer with room for `size` words.

    A buffer larger than the image lets callers observe that the kernel
    leaves trailing words untouched.

    Raises:
        ValueError: If dimensions <= 0, size is too small or too large for a
            storage binding on this device, or data size doesn't match
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Buffer dimensions must be positive, got ({width}, {height})")

    if size < width * height:
        raise ValueError(
            f"Buffer size {size} is smaller than image ({width} x {height})"
        )

    max_binding_size = device_limits_query(ctx.device)["max_storage_buffer_binding_size"]
    if size * 4 > max_binding_size:
        raise ValueError(
            f"Buffer of {size * 4} bytes exceeds device storage binding "
            f"limit of {max_binding_size} bytes"
        )

    if data is not None and data.size != size:
        raise ValueError(f"Data size {data.size} doesn't match buffer size {size}")

    buffer = __gpu_buffer_create(ctx, size, data)
    return PixelBuffer(buffer=buffer, shape=(height, width), size=size)


def pixel_buffer_write(ctx: GPUContext, in_data: np.ndarray, buffer: PixelBuffer) -> None:
    """Upload host words into the buffer, starting at word 0."""
    if in_data.size > buffer.size:
        raise ValueError(
            f"Data size {in_data.size} exceeds buffer size {buffer.size}"
        )
    data_u32 = np.ascontiguousarray(in_data, dtype=np.uint32)
    ctx.device.queue.write_buffer(buffer.buffer, 0, data_u32.tobytes())


def pixel_buffer_fill(ctx: GPUContext, buffer: PixelBuffer, word: int) -> None:
    """Set every word of the buffer, including any tail past the image."""
    pixel_buffer_write(ctx, np.full(buffer.size, word, dtype=np.uint32), buffer)


def pixel_buffer_zerofy(ctx: GPUContext, buffer: PixelBuffer) -> None:
    """Zero-initialize a pixel buffer."""
    pixel_buffer_fill(ctx, buffer, 0)


def pixel_buffer_read(
    ctx: GPUContext, buffer: PixelBuffer, out_data: np.ndarray
) -> None:
    """Read pixel buffer to numpy array

    Creates temporary staging buffer, copies GPU data to it, maps and reads.
    The staging buffer is destroyed after reading.

    Args:
        ctx: GPU context
        buffer: Source pixel buffer
        out_data: Pre-allocated uint32 array; out_data.size words are read
    """
    if out_data.dtype != np.uint32:
        raise ValueError(f"out_data must be uint32, got {out_data.dtype}")
    if out_data.size > buffer.size:
        raise ValueError(
            f"out_data size {out_data.size} exceeds buffer size {buffer.size}"
        )

    size_bytes = out_data.nbytes

    staging = ctx.device.create_buffer(
        size=size_bytes, usage=wgpu.BufferUsage.COPY_DST | wgpu.BufferUsage.MAP_READ
    )

    encoder = ctx.device.create_command_encoder()
    encoder.copy_buffer_to_buffer(buffer.buffer, 0, staging, 0, size_bytes)
    ctx.device.queue.submit([encoder.finish()])

    staging.map_sync(wgpu.MapMode.READ)

    mapped_data = staging.read_mapped()
    np.copyto(
        out_data, np.frombuffer(mapped_data, dtype=np.uint32).reshape(out_data.shape)
    )

    staging.unmap()
    staging.destroy()
