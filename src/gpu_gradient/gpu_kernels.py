"""WGSL kernels"""

from .gpu_types import GPUContext, GradientConfig

# ============================================================================
# GRADIENT KERNEL
# ============================================================================


def create_gradient_kernel(
    width: int,
    height: int,
    blue: int = 128,
    alpha: int = 255,
    workgroup_size: int = 8,
) -> str:
    """
    Generate the two-axis gradient kernel

    Args:
        width: Image width, baked in as a constant
        height: Image height, baked in as a constant
        blue: Constant blue channel (0-255)
        alpha: Constant alpha channel (0-255)
        workgroup_size: Edge of the square workgroup tile

    Returns:
        WGSL kernel source code as string

    Raises:
        ValueError: If any parameter is out of range

    Note:
        One invocation per pixel. The dispatch grid is rounded up to whole
        tiles, so invocations past the image edge return without writing.
        Channel math uses u32 truncating division, so the last column/row
        gets 254 rather than 255 for a 256 wide image.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got ({width}, {height})")
    if not 0 <= blue <= 255 or not 0 <= alpha <= 255:
        raise ValueError(f"Channel constants must be in [0, 255], got b={blue} a={alpha}")
    if workgroup_size <= 0 or workgroup_size * workgroup_size > 1024:
        raise ValueError(
            f"workgroup_size must give 1..1024 invocations, got {workgroup_size}"
        )

    return f"""
// Two-axis gradient: r follows x, g follows y, b and a constant
// Output word layout: a << 24 | b << 16 | g << 8 | r (RGBA8 little-endian)

@group(0) @binding(0) var<storage, read_write> pixels: array<u32>;

const WIDTH: u32 = {width}u;
const HEIGHT: u32 = {height}u;
const BLUE: u32 = {blue}u;
const ALPHA: u32 = {alpha}u;

@compute @workgroup_size({workgroup_size}, {workgroup_size}, 1)
fn main(@builtin(global_invocation_id) global_id: vec3<u32>) {{
    let x = global_id.x;
    let y = global_id.y;

    // Grid padding past the image edge
    if (x >= WIDTH || y >= HEIGHT) {{
        return;
    }}

    let idx = y * WIDTH + x;

    let r = (x * 255u) / WIDTH;
    let g = (y * 255u) / HEIGHT;

    pixels[idx] = (ALPHA << 24u) | (BLUE << 16u) | (g << 8u) | r;
}}
"""


def get_gradient_kernel(ctx: GPUContext) -> str:
    return gradient_kernel_from_config(ctx.config)


def gradient_kernel_from_config(config: GradientConfig) -> str:
    return create_gradient_kernel(
        config.width,
        config.height,
        config.blue,
        config.alpha,
        config.workgroup_size,
    )
