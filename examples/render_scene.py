#!/usr/bin/env python3
"""Render one of the demo scenes (or a scene file) to a PNG.

Usage:
    python -m examples.render_scene [options]

Options:
    --scene NAME        Demo scene: wide_angle or cover (default: cover)
    --scene-file PATH   JSON scene (Scene.to_dict format); the camera of the
                        chosen demo scene is used to view it
    --width WIDTH       Image width in pixels (default: 400)
    --height HEIGHT     Image height in pixels (default: 225)
    --samples SAMPLES   Number of samples per pixel (default: 32)
    --max-depth DEPTH   Maximum bounces per path (default: 10)
    --seed SEED         Seed for the pixel streams and the cover layout (default: 0)
    --output OUTPUT     Output file path (default: render.png)
    --cpu               Force the CPU backend
    --quiet             Suppress progress output

Example:
    python -m examples.render_scene --scene wide_angle --width 200 --height 100 --samples 75
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from pathlib import Path

import taichi as ti


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a path traced scene.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--scene",
        choices=("wide_angle", "cover"),
        default="cover",
        help="Demo scene to render (default: cover)",
    )
    parser.add_argument(
        "--scene-file",
        type=str,
        default=None,
        help="JSON scene file to render instead of the demo scene's spheres",
    )
    parser.add_argument("--width", type=int, default=400, help="Image width (default: 400)")
    parser.add_argument("--height", type=int, default=225, help="Image height (default: 225)")
    parser.add_argument(
        "--samples",
        type=int,
        default=32,
        help="Number of samples per pixel (default: 32)",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=10,
        help="Maximum bounces per path (default: 10)",
    )
    parser.add_argument("--seed", type=int, default=0, help="Random seed (default: 0)")
    parser.add_argument(
        "--output",
        type=str,
        default="render.png",
        help="Output file path (default: render.png)",
    )
    parser.add_argument("--cpu", action="store_true", help="Force the CPU backend")
    parser.add_argument("--quiet", action="store_true", help="Suppress progress output")
    return parser.parse_args()


def render_scene(
    scene_name: str = "cover",
    scene_file: str | None = None,
    width: int = 400,
    height: int = 225,
    num_samples: int = 32,
    max_depth: int = 10,
    seed: int = 0,
    output_path: str = "render.png",
    quiet: bool = False,
) -> Path:
    """Render a scene and save it to file.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from pathtracer.core.renderer import render
    from pathtracer.preview.export import save_png
    from pathtracer.scene.demo import create_cover_scene, create_wide_angle_scene
    from pathtracer.scene.manager import Scene

    if scene_name == "wide_angle":
        scene, camera = create_wide_angle_scene(width, height)
    else:
        scene, camera = create_cover_scene(width, height, seed=seed)

    if scene_file is not None:
        with open(scene_file) as f:
            scene = Scene.from_dict(json.load(f))

    if not quiet:
        print(f"Rendering {scene!r} at {width}x{height}, {num_samples} spp...")

    start_time = time.time()

    def progress_callback(completed: int, total: int) -> None:
        if not quiet:
            progress_pct = (completed / total) * 100 if total > 0 else 0
            print(f"\r  Progress: {progress_pct:5.1f}%", end="", flush=True)

    image = render(
        width,
        height,
        camera,
        0.001,
        float("inf"),
        num_samples,
        max_depth,
        scene,
        seed=seed,
        callback=progress_callback,
    )

    if not quiet:
        print()  # Newline after progress

    output_file = Path(output_path)
    save_png(image, output_file)

    total_time = time.time() - start_time
    if not quiet:
        print(f"Saved to: {output_file.absolute()}")
        print(f"Total time: {total_time:.2f}s")

    return output_file


def main() -> int:
    """Main entry point."""
    args = parse_args()

    logging.basicConfig(
        level=logging.WARNING if args.quiet else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.cpu:
        ti.init(arch=ti.cpu, default_fp=ti.f64)
    else:
        # Device math is f64, which CUDA supports on every GPU; fall back to CPU
        try:
            ti.init(arch=ti.cuda, default_fp=ti.f64)
            if not args.quiet:
                print("Using GPU backend")
        except Exception:
            ti.init(arch=ti.cpu, default_fp=ti.f64)
            if not args.quiet:
                print("Using CPU backend")

    try:
        render_scene(
            scene_name=args.scene,
            scene_file=args.scene_file,
            width=args.width,
            height=args.height,
            num_samples=args.samples,
            max_depth=args.max_depth,
            seed=args.seed,
            output_path=args.output,
            quiet=args.quiet,
        )
        return 0
    except (ValueError, RuntimeError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
