#!/usr/bin/env python3
"""Render a randomly generated world.

Builds either the classic grid layout or a threshold-driven random world,
sets up a pinhole or thin lens camera and renders with batched sampling.

Usage:
    python -m examples.render_random_world [options]

Options:
    --width WIDTH         Image width in pixels (default: 1200)
    --height HEIGHT       Image height in pixels (default: 800)
    --samples SAMPLES     Jittered samples per pixel (default: 16)
    --max-depth DEPTH     Depth budget of every ray path (default: 30)
    --dev DEV             Sub-pixel jitter amplitude in [0, 1] (default: 1.0)
    --objects N           Number of forms (default: 500)
    --layout LAYOUT       "classic" or "random" (default: classic)
    --focus               Use the thin lens camera
    --seed SEED           Seed for scene generation and sampling
    --output OUTPUT       Output file, .png or .ppm (default: ray_tracing.png)
    --batch-size SIZE     Samples per progress update (default: 4)
    --quiet               Suppress progress output

Example:
    python -m examples.render_random_world --width 300 --height 200 --samples 8
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

import taichi as ti


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a randomly generated world.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--width", type=int, default=1200, help="Image width in pixels (default: 1200)")
    parser.add_argument("--height", type=int, default=800, help="Image height in pixels (default: 800)")
    parser.add_argument(
        "--samples", type=int, default=16, help="Jittered samples per pixel (default: 16)"
    )
    parser.add_argument(
        "--max-depth", type=int, default=30, help="Depth budget of every ray path (default: 30)"
    )
    parser.add_argument(
        "--dev", type=float, default=1.0, help="Sub-pixel jitter amplitude (default: 1.0)"
    )
    parser.add_argument("--objects", type=int, default=500, help="Number of forms (default: 500)")
    parser.add_argument(
        "--layout",
        choices=("classic", "random"),
        default="classic",
        help="Scene layout (default: classic)",
    )
    parser.add_argument("--focus", action="store_true", help="Use the thin lens camera")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument(
        "--output",
        type=str,
        default="ray_tracing.png",
        help="Output file path (default: ray_tracing.png)",
    )
    parser.add_argument(
        "--batch-size", type=int, default=4, help="Samples per progress update (default: 4)"
    )
    parser.add_argument("--quiet", action="store_true", help="Suppress progress output")
    return parser.parse_args()


def render_world(args: argparse.Namespace) -> Path:
    """Build the world, render it and save the image.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from src.radtrace.camera.pinhole import setup_camera
    from src.radtrace.config import RenderConfig, WorldConfig
    from src.radtrace.core.renderer import Renderer
    from src.radtrace.scene.manager import SceneManager
    from src.radtrace.scene.random_world import classic_world, random_world

    logger = logging.getLogger("src.radtrace.examples")

    config = RenderConfig(
        width=args.width,
        height=args.height,
        n_smooth=args.samples,
        max_depth=args.max_depth,
        dev=args.dev,
        focus=args.focus,
        output=args.output,
    )
    config.validate()

    scene = SceneManager(seed=args.seed)
    if args.layout == "classic":
        classic_world(scene, n=args.objects)
    else:
        random_world(scene, WorldConfig(n=args.objects))
    logger.info("scene has %d forms", scene.get_form_count())

    setup_camera(config.make_camera())
    renderer = Renderer(config.width, config.height, max_depth=config.max_depth, dev=config.dev)

    start_time = time.time()

    def progress_callback(current: int, target: int) -> None:
        if not args.quiet:
            elapsed = time.time() - start_time
            progress_pct = (current / target) * 100 if target > 0 else 0
            print(
                f"\r  Progress: {current}/{target} samples ({progress_pct:.1f}%) - {elapsed:.1f}s",
                end="",
                flush=True,
            )

    renderer.render(config.n_smooth, batch_size=args.batch_size, callback=progress_callback)
    if not args.quiet:
        print()

    output_file = renderer.save_image(config.output)
    logger.info("total time: %.2fs", time.time() - start_time)
    return output_file


def main() -> int:
    """Main entry point."""
    args = parse_args()

    from src.radtrace.logconfig import setup_logging

    setup_logging(level=logging.WARNING if args.quiet else logging.INFO)

    if args.seed is None:
        ti.init(arch=ti.cpu)
    else:
        ti.init(arch=ti.cpu, random_seed=args.seed)

    try:
        render_world(args)
        return 0
    except (ValueError, RuntimeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
