#!/usr/bin/env python3
"""Compute view factors of a small enclosure of patches and a sphere.

The scene is two perpendicular rectangles sharing an edge, a square facing
the vertical rectangle, and a sphere above the floor rectangle. Every pair
is estimated by Monte Carlo and printed as "F(i,j) = value" lines.

Usage:
    python -m examples.compute_view_factors [options]

Options:
    --samples N     Samples per pair (default: 10240)
    --pair I J      Only estimate F(I, J)
    --seed SEED     Taichi random seed
    --plot          Show the matrix as a heatmap
    --quiet         Only print the result

Example:
    python -m examples.compute_view_factors --samples 100000 --plot
"""

from __future__ import annotations

import argparse
import logging
import sys

import taichi as ti

# Enclosure dimensions
WIDTH = 0.4
HEIGHT = 0.1
LENGTH = 0.8


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Compute Monte Carlo view factors of a test enclosure.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--samples", type=int, default=10240, help="Samples per pair (default: 10240)")
    parser.add_argument("--pair", type=int, nargs=2, metavar=("I", "J"), help="Only estimate F(I, J)")
    parser.add_argument("--seed", type=int, default=None, help="Taichi random seed")
    parser.add_argument("--plot", action="store_true", help="Show the matrix as a heatmap")
    parser.add_argument("--quiet", action="store_true", help="Only print the result")
    return parser.parse_args()


def build_enclosure():
    """Build the test enclosure.

    Returns:
        The SceneManager holding the forms.
    """
    from src.radtrace.scene.manager import SceneManager

    scene = SceneManager()
    red = scene.add_lambertian_material((0.81, 0.3, 0.3))
    blue = scene.add_lambertian_material((0.3, 0.3, 0.81))

    # Vertical rectangle in the x = 0 plane, facing +x
    scene.add_rectangle(
        center=(0.0, HEIGHT / 2.0, -LENGTH / 2.0),
        length=LENGTH,
        width=HEIGHT,
        material_id=red,
        u=(0.0, 0.0, -1.0),
        v=(0.0, 1.0, 0.0),
        w=(1.0, 0.0, 0.0),
    )
    # Floor rectangle in the y = 0 plane, facing +y
    scene.add_rectangle(
        center=(WIDTH / 2.0, 0.0, -LENGTH / 2.0),
        length=LENGTH,
        width=WIDTH,
        material_id=blue,
        u=(0.0, 0.0, 1.0),
        v=(1.0, 0.0, 0.0),
        w=(0.0, 1.0, 0.0),
    )
    # Square facing the vertical rectangle
    scene.add_square(
        center=(WIDTH, HEIGHT / 2.0, -LENGTH / 2.0),
        length=HEIGHT,
        material_id=blue,
        u=(0.0, 0.0, 1.0),
        v=(0.0, 1.0, 0.0),
        w=(-1.0, 0.0, 0.0),
    )
    scene.add_sphere(center=(WIDTH / 2.0, 0.3, -LENGTH / 2.0), radius=0.1, material_id=red)
    return scene


def main() -> int:
    """Main entry point."""
    args = parse_args()

    from src.radtrace.logconfig import setup_logging

    setup_logging(level=logging.WARNING if args.quiet else logging.INFO)

    if args.seed is None:
        ti.init(arch=ti.cpu)
    else:
        ti.init(arch=ti.cpu, random_seed=args.seed)

    from src.radtrace.config import ViewFactorConfig
    from src.radtrace.radiation.view_factors import view_factor, view_factors

    config = ViewFactorConfig(
        n_samples=args.samples,
        pair=tuple(args.pair) if args.pair else None,
        seed=args.seed,
    )

    try:
        config.validate()
        scene = build_enclosure()
        if config.pair is not None:
            i, j = config.pair
            print(f"F({i},{j}) = {view_factor(scene, config.n_samples, i, j):.4f}")
            return 0

        matrix = view_factors(scene, config.n_samples)
        print(matrix)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.plot:
        from src.radtrace.preview.display import show_view_factors

        show_view_factors(matrix)
    return 0


if __name__ == "__main__":
    sys.exit(main())
