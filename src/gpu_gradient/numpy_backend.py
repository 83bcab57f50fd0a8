"""NumPy reference implementation of the gradient kernel.

Mirrors the WGSL kernel bit for bit: same bounds guard, same row-major
index, same truncating integer division, same packing. Used for CPU
rendering and as the reference when checking GPU output.
"""

from typing import Optional

import numpy as np

from .gpu_device import device_config_validate
from .gpu_ops import dispatch_grid
from .gpu_types import GradientConfig, InvocationCoordinate, Pixel

# ============================================================================
# PER-PIXEL MATH
# ============================================================================


def gradient_channels(x: int, y: int, config: GradientConfig) -> Pixel:
    """Channels for an in-bounds pixel; r follows x, g follows y."""
    return Pixel(
        r=(x * 255) // config.width,
        g=(y * 255) // config.height,
        b=config.blue,
        a=config.alpha,
    )


def pack_rgba(pixel: Pixel) -> int:
    """Pack channels as a << 24 | b << 16 | g << 8 | r.

    Raises:
        ValueError: If any channel is outside 0-255
    """
    for name, value in zip(pixel._fields, pixel):
        if not 0 <= value <= 255:
            raise ValueError(f"Channel {name} must be in [0, 255], got {value}")

    return pixel.a << 24 | pixel.b << 16 | pixel.g << 8 | pixel.r


def unpack_rgba(word: int) -> Pixel:
    word = int(word)
    return Pixel(
        r=word & 0xFF,
        g=(word >> 8) & 0xFF,
        b=(word >> 16) & 0xFF,
        a=(word >> 24) & 0xFF,
    )


def pixel_index(x: int, y: int, config: GradientConfig) -> Optional[int]:
    """Row-major buffer index, or None if (x, y) falls outside the image."""
    if x >= config.width or y >= config.height:
        return None
    return y * config.width + x


# ============================================================================
# KERNEL
# ============================================================================


def gradient_invocation(
    buffer: np.ndarray, coord: InvocationCoordinate, config: GradientConfig
) -> bool:
    """
    Run one kernel invocation against a flat uint32 buffer.

    Args:
        buffer: Flat, writable word buffer of at least width * height words
        coord: Invocation coordinate; z is ignored
        config: Kernel constants

    Returns:
        True if a word was written, False for a padding invocation
    """
    device_config_validate(config)

    idx = pixel_index(coord.x, coord.y, config)
    if idx is None:
        return False

    buffer[idx] = pack_rgba(gradient_channels(coord.x, coord.y, config))
    return True


def gradient_dispatch(
    buffer: np.ndarray,
    workgroups_x: int,
    workgroups_y: int,
    config: GradientConfig,
) -> int:
    """
    Emulate a full dispatch of (workgroups_x, workgroups_y, 1) tiles.

    Every invocation of the grid is evaluated at once, padding included;
    the bounds mask drops the ones past the image edge, so an over-sized
    grid writes the same words as an exact one and an under-sized grid
    leaves the uncovered words untouched.

    Args:
        buffer: Flat, writable uint32 buffer of at least width * height words
        workgroups_x: Tiles along x
        workgroups_y: Tiles along y
        config: Kernel constants

    Returns:
        Number of words written

    Raises:
        ValueError: If the config is invalid, or the buffer is too small or not uint32
    """
    device_config_validate(config)
    if buffer.dtype != np.uint32:
        raise ValueError(f"buffer must be uint32, got {buffer.dtype}")
    if not buffer.flags.c_contiguous:
        raise ValueError("buffer must be C-contiguous")
    if buffer.size < config.width * config.height:
        raise ValueError(
            f"Buffer size {buffer.size} is smaller than image "
            f"({config.width} x {config.height})"
        )

    grid_w = workgroups_x * config.workgroup_size
    grid_h = workgroups_y * config.workgroup_size

    ys, xs = np.meshgrid(
        np.arange(grid_h, dtype=np.uint64),
        np.arange(grid_w, dtype=np.uint64),
        indexing="ij",
    )
    in_bounds = (xs < config.width) & (ys < config.height)
    xs = xs[in_bounds]
    ys = ys[in_bounds]

    r = (xs * 255) // config.width
    g = (ys * 255) // config.height
    words = (
        (np.uint64(config.alpha) << np.uint64(24))
        | (np.uint64(config.blue) << np.uint64(16))
        | (g << np.uint64(8))
        | r
    )

    flat = buffer.reshape(-1)
    flat[ys * config.width + xs] = words.astype(np.uint32)

    return int(words.size)


def gradient_render(config: Optional[GradientConfig] = None) -> np.ndarray:
    """Render a complete image; returns (height, width) uint32 words."""
    config = config or GradientConfig()
    device_config_validate(config)
    out = np.zeros(config.width * config.height, dtype=np.uint32)
    workgroups_x, workgroups_y, _ = dispatch_grid(config)
    gradient_dispatch(out, workgroups_x, workgroups_y, config)
    return out.reshape(config.height, config.width)
