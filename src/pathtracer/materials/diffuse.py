"""Diffuse scattering policies.

Three ways of picking a random bounce direction around the surface normal
are provided. They differ in the distribution of the outgoing direction:

    Lambertian:     unit(normal + p), p uniform on the unit sphere.
                    Produces a cosine-weighted distribution, the correct
                    ideal diffuse reflector.
    Spherical:      normal + p, p uniform inside the unit ball. Biased
                    towards the normal; the result is left unnormalized.
    Hemispherical:  unit(normal + p), p uniform inside the unit ball and
                    flipped into the normal's hemisphere.

All three always scatter. If the sampled direction collapses to (near)
zero, the normal itself is used so the next ray stays well defined.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.gpu, default_fp=ti.f64)
    >>> from pathtracer.materials.diffuse import scatter_lambertian
    >>> # Use within a Taichi kernel:
    >>> # state, direction, did_scatter = scatter_lambertian(normal, state)
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import (
    near_zero,
    random_in_unit_sphere,
    random_on_unit_sphere,
)
from pathtracer.core.types import vec3


@ti.func
def _fallback_to_normal(direction: vec3, normal: vec3) -> vec3:
    """Replace a degenerate direction with the normal."""
    result = direction
    if near_zero(direction):
        result = normal
    return result


@ti.func
def scatter_lambertian(normal: vec3, state: ti.u32):
    """Sample a Lambertian bounce direction.

    Args:
        normal: The unit surface normal, oriented against the incoming ray.
        state: The caller's random stream state.

    Returns:
        A tuple of (new_state, scattered_direction, did_scatter) where the
        direction is unit length and did_scatter is always 1.
    """
    s, p = random_on_unit_sphere(state)
    direction = normal + p
    scattered = normal
    if not near_zero(direction):
        scattered = tm.normalize(direction)
    return s, scattered, 1


@ti.func
def scatter_spherical(normal: vec3, state: ti.u32):
    """Sample a bounce direction from the ball tangent to the hit point.

    The result is not normalized; its length lies in [0, 2].

    Returns:
        A tuple of (new_state, scattered_direction, did_scatter).
    """
    s, p = random_in_unit_sphere(state)
    scattered = _fallback_to_normal(normal + p, normal)
    return s, scattered, 1


@ti.func
def scatter_hemispherical(normal: vec3, state: ti.u32):
    """Sample a bounce direction from the hemisphere around the normal.

    Returns:
        A tuple of (new_state, scattered_direction, did_scatter) where the
        direction is unit length.
    """
    s, p = random_in_unit_sphere(state)
    if tm.dot(p, normal) < 0.0:
        p = -p
    direction = normal + p
    scattered = normal
    if not near_zero(direction):
        scattered = tm.normalize(direction)
    return s, scattered, 1
