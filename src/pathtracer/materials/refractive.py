"""Refractive (glass/water) scattering.

Key physics:
    - Snell's law for refraction: n1 * sin(theta1) = n2 * sin(theta2)
    - Schlick's approximation for Fresnel reflectance
    - Total internal reflection when the refraction cosine is not real

At each hit the material randomly chooses between reflection and refraction
based on the Schlick reflectance, which increases at grazing angles. A
reflection is a zero-fuzziness specular bounce.

The index ratio depends on which side of the surface the ray arrives from:
    front face (entering): 1 / index
    back face (exiting):   index

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.gpu, default_fp=ti.f64)
    >>> from pathtracer.materials.refractive import scatter_refractive
    >>> # Use within a Taichi kernel:
    >>> # state, direction, did_scatter = scatter_refractive(
    >>> #     incident_dir, normal, front_face, index, state
    >>> # )
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.sampler import random_float
from pathtracer.core.types import real, vec3
from pathtracer.materials.specular import scatter_specular


@ti.func
def schlick_reflectance(cosine: real, index: real) -> real:
    """Compute Fresnel reflectance using Schlick's approximation.

    reflectance = r0 + (1 - r0) * (1 - cos)^5, with r0 = ((1 - n) / (1 + n))^2

    Args:
        cosine: Cosine of the angle between the incident ray and the normal.
        index: Index of refraction of the material.

    Returns:
        The reflectance probability in [0, 1].
    """
    r0 = (1.0 - index) / (1.0 + index)
    r0 = r0 * r0
    return r0 + (1.0 - r0) * ti.pow(1.0 - cosine, 5)


@ti.func
def scatter_refractive(
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    index: real,
    state: ti.u32,
):
    """Compute the scattered ray direction for a refractive material.

    Args:
        incident_direction: The incoming ray direction.
        normal: The unit surface normal, oriented against the incoming ray.
        front_face: 1 if the ray hits the outside of the surface,
            0 if it hits from within the material.
        index: Index of refraction of the material.
        state: The caller's random stream state.

    Returns:
        A tuple of (new_state, scattered_direction, did_scatter). Refracted
        directions are returned as computed (not renormalized); reflections
        follow scatter_specular() and may in principle be absorbed.
    """
    cos_theta = -tm.dot(incident_direction, normal)

    ratio = 1.0 / index
    if front_face == 0:
        ratio = index

    # Squared cosine of the refraction angle; negative means total internal reflection
    k = 1.0 - ratio * ratio * (1.0 - cos_theta * cos_theta)

    s, xi = random_float(state)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    did_scatter = 1
    if k < 0.0 or xi < schlick_reflectance(cos_theta, index):
        s, scattered_direction, did_scatter = scatter_specular(
            incident_direction, normal, 0.0, s
        )
    else:
        scattered_direction = (incident_direction + normal * cos_theta) * ratio - normal * ti.sqrt(k)

    return s, scattered_direction, did_scatter
