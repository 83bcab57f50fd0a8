"""GPU gradient tests against a JAX reference.

Skipped when no WGPU adapter is available.
"""

from __future__ import annotations

import jax.numpy as jnp
import numpy as np
import pytest

from gpu_gradient import gpu
from gpu_gradient.gpu_types import GradientConfig

SENTINEL = 0xDEADBEEF


def jax_gradient(config: GradientConfig) -> np.ndarray:
    """Reference words computed with JAX integer ops."""
    ys, xs = jnp.meshgrid(
        jnp.arange(config.height, dtype=jnp.uint32),
        jnp.arange(config.width, dtype=jnp.uint32),
        indexing="ij",
    )
    r = (xs * 255) // config.width
    g = (ys * 255) // config.height
    b = jnp.full_like(xs, config.blue)
    a = jnp.full_like(xs, config.alpha)
    words = (
        jnp.left_shift(a, 24) | jnp.left_shift(b, 16) | jnp.left_shift(g, 8) | r
    )
    return np.asarray(words, dtype=np.uint32)


def _fill_and_read(ctx, buffer, workgroups=None) -> np.ndarray:
    gpu.batch_begin(ctx)
    gpu.gradient_fill(ctx, buffer, workgroups)
    gpu.batch_commit(ctx)

    out = np.zeros(buffer.size, dtype=np.uint32)
    gpu.pixel_buffer_read(ctx, buffer, out)
    return out


def test_gpu_matches_jax_reference(ctx) -> None:
    """Full 256x256 render equals the JAX reference word for word."""
    result = gpu.gradient_render(ctx)
    expected = jax_gradient(ctx.config)

    assert result.shape == (256, 256)
    np.testing.assert_array_equal(result, expected)
    assert int(result[0, 0]) == 0xFF800000
    assert int(result[0, 255]) == 0xFF8000FE
    assert int(result[255, 0]) == 0xFF80FE00
    assert int(result[255, 255]) == 0xFF80FEFE


def test_gpu_non_square_extent(wgpu_device) -> None:
    """Extents that are not tile multiples still match the reference."""
    config = GradientConfig(width=37, height=21)
    ctx = gpu.context_create(config, device=wgpu_device)
    np.testing.assert_array_equal(gpu.gradient_render(ctx), jax_gradient(config))


def test_gpu_over_dispatch_leaves_tail(ctx) -> None:
    """A 40x40 grid writes the image and nothing after it."""
    image_size = 256 * 256
    buffer = gpu.pixel_buffer_create_sized(ctx, 256, 256, image_size + 1024)
    gpu.pixel_buffer_fill(ctx, buffer, SENTINEL)

    out = _fill_and_read(ctx, buffer, (40, 40, 1))

    np.testing.assert_array_equal(
        out[:image_size].reshape(256, 256), jax_gradient(ctx.config)
    )
    assert np.all(out[image_size:] == SENTINEL)


def test_gpu_under_dispatch_leaves_cells_unwritten(ctx) -> None:
    """Cells outside a 16x32 grid keep their previous contents."""
    buffer = gpu.pixel_buffer_create(ctx, 256, 256)
    gpu.pixel_buffer_zerofy(ctx, buffer)

    out = _fill_and_read(ctx, buffer, (16, 32, 1)).reshape(256, 256)

    np.testing.assert_array_equal(out[:, :128], jax_gradient(ctx.config)[:, :128])
    assert np.all(out[:, 128:] == 0)


def test_gpu_dispatch_is_idempotent(ctx) -> None:
    """Dispatching twice into the same buffer gives identical words."""
    buffer = gpu.pixel_buffer_create(ctx, 256, 256)
    first = _fill_and_read(ctx, buffer)
    second = _fill_and_read(ctx, buffer)
    np.testing.assert_array_equal(first, second)


def test_gpu_pipeline_is_cached(ctx) -> None:
    """Repeated renders compile the kernel once."""
    gpu.gradient_render(ctx)
    gpu.gradient_render(ctx)

    assert len(ctx.pipeline_cache.pipelines) == 1
    stats = gpu.perf_monitor_stats_get(ctx.perf_monitor)
    assert stats.kernel_times["gradient"].count == 2
    # One submission per render; readback copies are not counted
    assert stats.total_submissions == 2


def test_gpu_short_buffer_rejected(ctx) -> None:
    """A buffer smaller than the image is refused before dispatch."""
    small = gpu.pixel_buffer_create(ctx, 8, 8)
    gpu.batch_begin(ctx)
    with pytest.raises(ValueError, match="smaller than image"):
        gpu.gradient_fill(ctx, small)
    gpu.batch_commit(ctx)


def test_gpu_batch_lifecycle_errors(ctx) -> None:
    """Adding without a batch or committing twice raises."""
    buffer = gpu.pixel_buffer_create(ctx, 256, 256)
    with pytest.raises(RuntimeError):
        gpu.gradient_fill(ctx, buffer)

    gpu.batch_begin(ctx)
    with pytest.raises(RuntimeError):
        gpu.batch_begin(ctx)
    gpu.batch_commit(ctx)
    with pytest.raises(RuntimeError):
        gpu.batch_commit(ctx)


def test_gpu_workgroup_limit_enforced(wgpu_device) -> None:
    """Grids above max_workgroups_per_dim are rejected."""
    ctx = gpu.context_create(GradientConfig(max_workgroups_per_dim=16), device=wgpu_device)
    buffer = gpu.pixel_buffer_create(ctx, 256, 256)
    gpu.batch_begin(ctx)
    with pytest.raises(ValueError, match="exceed maximum"):
        gpu.gradient_fill(ctx, buffer)
    gpu.batch_commit(ctx)
