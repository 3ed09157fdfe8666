"""Specular (mirror-like) scattering with optional fuzziness.

The reflection formula is:
    R = I - 2(I . N)N

where I is the incident direction and N is the surface normal. For fuzzy
surfaces the reflected direction is perturbed by a random point inside a
ball whose radius is the fuzziness, modeling a brushed or rough finish.

A perturbed direction that ends up at or below the surface is absorbed: the
path terminates and contributes black.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.gpu, default_fp=ti.f64)
    >>> from pathtracer.materials.specular import scatter_specular
    >>> # Use within a Taichi kernel:
    >>> # state, direction, did_scatter = scatter_specular(
    >>> #     incident_dir, normal, fuzziness, state
    >>> # )
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import (
    near_zero,
    random_in_unit_sphere,
    reflect,
)
from pathtracer.core.types import real, vec3


@ti.func
def scatter_specular(
    incident_direction: vec3,
    normal: vec3,
    fuzziness: real,
    state: ti.u32,
):
    """Compute the scattered ray direction for a specular surface.

    A random ball point is drawn even when fuzziness is 0, so the number of
    draws per bounce does not depend on the material parameters.

    Args:
        incident_direction: The incoming ray direction.
        normal: The unit surface normal, oriented against the incoming ray.
        fuzziness: Radius of the perturbation ball (0 = perfect mirror).
        state: The caller's random stream state.

    Returns:
        A tuple of (new_state, scattered_direction, did_scatter) where:
        - scattered_direction: The reflected direction (normalized), or the
          zero vector if absorbed.
        - did_scatter: 1 if the ray scattered above the surface, 0 if absorbed.
    """
    reflected = reflect(incident_direction, normal)

    s, p = random_in_unit_sphere(state)
    perturbed = reflected + fuzziness * p

    did_scatter = 0
    scattered_direction = vec3(0.0, 0.0, 0.0)
    if not near_zero(perturbed):
        direction = tm.normalize(perturbed)
        if tm.dot(direction, normal) > 0.0:
            did_scatter = 1
            scattered_direction = direction

    return s, scattered_direction, did_scatter
