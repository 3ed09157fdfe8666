"""Ray data structure and vector utilities for Monte Carlo path tracing.

This module provides the fundamental Ray dataclass and vector utility functions
used throughout the renderer. All operations are Taichi functions so they can
be called from kernels on any backend.

A ray carries the time at which it was sampled inside the camera shutter.
Moving primitives are evaluated at that time, which is what produces motion
blur when many samples are averaged.

Random sampling helpers take the caller's stream state (see
``pathtracer.core.sampler``) and return the advanced state alongside the
sample, so every draw is reproducible per pixel.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> origin = ti.math.vec3(0.0, 0.0, 0.0)
    >>> direction = ti.math.vec3(0.0, 0.0, -1.0)
    >>> ray = Ray(origin=origin, direction=direction, time=0.0)
    >>> point = ray_at(ray, 5.0)  # Point 5 units along the ray
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.sampler import random_float, random_range
from pathtracer.core.types import real, vec3


@ti.dataclass
class Ray:
    """A ray with an origin, a direction, and a shutter time sample.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction vector of the ray (vec3). Callers keep it
            unit length; intersection code does not rely on that.
        time: The time inside the shutter interval at which the ray exists.
    """

    origin: vec3
    direction: vec3
    time: real


@ti.func
def ray_at(ray: Ray, t: real) -> vec3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The parameter value. Positive values are in front of the origin.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3, time: real) -> Ray:
    """Create a ray from origin, direction and time."""
    return Ray(origin=origin, direction=direction, time=time)


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def length(v: vec3) -> real:
    """Compute the length (magnitude) of a vector."""
    return tm.length(v)


@ti.func
def length_squared(v: vec3) -> real:
    """Compute the squared length of a vector.

    Cheaper than length() when only comparing magnitudes.
    """
    return tm.dot(v, v)


@ti.func
def normalize(v: vec3) -> vec3:
    """Normalize a vector to unit length.

    The input must not be zero-length.
    """
    return tm.normalize(v)


@ti.func
def dot(a: vec3, b: vec3) -> real:
    return tm.dot(a, b)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    return tm.cross(a, b)


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a normal.

    Args:
        incident: The incoming direction vector (pointing toward the surface).
        normal: The surface normal (unit length).

    Returns:
        The mirrored direction incident - 2 (incident . normal) normal.
    """
    return incident - 2.0 * tm.dot(incident, normal) * normal


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Check if a vector is near zero in all components.

    Used to catch degenerate scatter directions before they reach the
    intersection code.

    Returns:
        1 if all components are near zero, 0 otherwise.
    """
    s = 1e-8
    return ti.abs(v.x) < s and ti.abs(v.y) < s and ti.abs(v.z) < s


# =============================================================================
# Random Sampling Utilities for Monte Carlo
# =============================================================================


@ti.func
def random_on_unit_sphere(state: ti.u32):
    """Generate a random point uniformly distributed on the unit sphere.

    Samples the z coordinate uniformly in [-1, 1) and an azimuth angle
    uniformly in [0, 2 pi), which is area-uniform by Archimedes' theorem.

    Args:
        state: The caller's random stream state.

    Returns:
        A tuple of (new_state, unit_vector).
    """
    s, angle = random_range(state, 0.0, 2.0 * tm.pi)
    s, z = random_range(s, -1.0, 1.0)
    ring = ti.sqrt(ti.max(0.0, 1.0 - z * z))
    return s, vec3(ring * ti.cos(angle), ring * ti.sin(angle), z)


@ti.func
def random_in_unit_sphere(state: ti.u32):
    """Generate a random point uniformly distributed inside the unit ball.

    A point on the sphere is scaled by the cube root of a uniform variate,
    which needs a fixed number of draws (no rejection loop).

    Returns:
        A tuple of (new_state, point) with length(point) <= 1.
    """
    s, on_sphere = random_on_unit_sphere(state)
    s, xi = random_float(s)
    return s, on_sphere * ti.pow(xi, 1.0 / 3.0)


@ti.func
def random_in_unit_disk(state: ti.u32):
    """Generate a random point uniformly distributed inside the xy unit disk.

    Used for sampling the camera lens (depth of field).

    Returns:
        A tuple of (new_state, point) where point is (x, y, 0).
    """
    s, angle = random_range(state, 0.0, 2.0 * tm.pi)
    s, xi = random_float(s)
    radius = ti.sqrt(xi)
    return s, vec3(ti.cos(angle) * radius, ti.sin(angle) * radius, 0.0)


@ti.func
def random_in_cube(state: ti.u32, lo: real, hi: real):
    """Generate a random point with every component uniform in [lo, hi).

    Returns:
        A tuple of (new_state, point).
    """
    s, x = random_range(state, lo, hi)
    s, y = random_range(s, lo, hi)
    s, z = random_range(s, lo, hi)
    return s, vec3(x, y, z)


@ti.func
def random_in_unit_cube(state: ti.u32):
    """Generate a random point in [0, 1)^3, e.g. a random color."""
    return random_in_cube(state, 0.0, 1.0)
