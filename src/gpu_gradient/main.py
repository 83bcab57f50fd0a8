import argparse
from typing import List, Optional

import numpy as np

from .gpu_types import GradientConfig, PerfStats

CORNER_WORDS = {
    (0, 0): 0xFF800000,
    (255, 0): 0xFF8000FE,
    (0, 255): 0xFF80FE00,
    (255, 255): 0xFF80FEFE,
}


def _render(backend: str, config: GradientConfig):
    """Render with the selected backend; returns (words, perf stats or None)."""
    if backend == "numpy":
        from .numpy_backend import gradient_render

        return gradient_render(config), None
    elif backend == "wgpu":
        from .gpu import context_create, gradient_render, perf_monitor_stats_get

        ctx = context_create(config)
        words = gradient_render(ctx)
        return words, perf_monitor_stats_get(ctx.perf_monitor)
    else:
        raise ValueError(f"Unknown backend {backend}")


def _print_perf(stats: PerfStats) -> None:
    print("\nPerformance:")
    print(f"  Submissions: {stats.total_submissions}")
    for name, times in stats.kernel_times.items():
        print(
            f"  {name}: count={times.count} avg={times.avg_ms:.3f}ms "
            f"min={times.min_ms:.3f}ms max={times.max_ms:.3f}ms"
        )


def render_command(args) -> int:
    from .image_io import image_save

    config = GradientConfig()
    words, stats = _render(args.backend, config)

    image_save(args.output, words, config.width, config.height)

    if args.profile:
        if stats is None:
            print(f"No profiling data for backend {args.backend}")
        else:
            _print_perf(stats)

    return 0


def verify_command(args) -> int:
    from .numpy_backend import gradient_render as reference_render

    config = GradientConfig()
    words, _ = _render(args.backend, config)
    expected = reference_render(config)

    failures = 0

    mismatches = np.argwhere(words != expected)
    if len(mismatches):
        y, x = mismatches[0]
        print(
            f"  ✗ {len(mismatches)} mismatched pixels, first at ({x}, {y}): "
            f"got 0x{int(words[y, x]):08X} expected 0x{int(expected[y, x]):08X}"
        )
        failures += 1
    else:
        print(f"  ✓ {config.width}x{config.height} matches reference")

    for (x, y), word in CORNER_WORDS.items():
        got = int(words[y, x])
        if got != word:
            print(f"  ✗ ({x}, {y}): got 0x{got:08X} expected 0x{word:08X}")
            failures += 1
        else:
            print(f"  ✓ ({x}, {y}) = 0x{word:08X}")

    return 1 if failures else 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Render a two-axis color gradient with a compute kernel"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    render_parser = subparsers.add_parser("render", help="Render and save the image")
    render_parser.add_argument(
        "--backend", default="wgpu", choices=["wgpu", "numpy"], help="Backend to use"
    )
    render_parser.add_argument(
        "--output", default="gradient.png", help="Output PNG path"
    )
    render_parser.add_argument(
        "--profile", action="store_true", help="Print kernel timing"
    )

    verify_parser = subparsers.add_parser(
        "verify", help="Check rendered words against the reference"
    )
    verify_parser.add_argument(
        "--backend", default="wgpu", choices=["wgpu", "numpy"], help="Backend to use"
    )

    args = parser.parse_args(argv)

    if args.command == "render":
        return render_command(args)
    elif args.command == "verify":
        return verify_command(args)
    else:
        parser.print_help()
        return 0
