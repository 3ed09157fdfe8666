"""Core rendering module.

This module contains the fundamental building blocks for path tracing:

Components:
    types: Shared device float type (f64) and vec3
    sampler: Counter-based random streams, one per parallel task
    ray: Ray data structure, vector utilities, and random sampling helpers
    integrator: The bounded-depth path tracing loop and sky gradient
    renderer: Parallel per-pixel sampling into a linear color buffer
    progressive: Pass-by-pass accumulation on top of the renderer

All compute-intensive operations use Taichi kernels, parallel across pixels.
"""

from .ray import (
    Ray,
    cross,
    dot,
    length,
    length_squared,
    make_ray,
    near_zero,
    normalize,
    random_in_cube,
    random_in_unit_cube,
    random_in_unit_disk,
    random_in_unit_sphere,
    random_on_unit_sphere,
    ray_at,
    reflect,
    vec3,
)
from .sampler import hash_u32, next_u32, random_float, random_range, seed_stream
from .types import real

# Note: integrator, renderer and progressive are NOT imported here. They declare
# Taichi fields at import time, which must happen after ti.init().

__all__ = [
    "Ray",
    "real",
    "vec3",
    "make_ray",
    "ray_at",
    "length",
    "length_squared",
    "normalize",
    "dot",
    "cross",
    "reflect",
    "near_zero",
    "random_on_unit_sphere",
    "random_in_unit_sphere",
    "random_in_unit_disk",
    "random_in_cube",
    "random_in_unit_cube",
    "hash_u32",
    "seed_stream",
    "next_u32",
    "random_float",
    "random_range",
]
