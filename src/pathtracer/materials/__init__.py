"""Materials module for surface scattering policies.

Components:
    material: Host-side Material description and the ScatterKind enum
    diffuse: Lambertian, spherical and hemispherical diffuse bounces
    specular: Mirror reflection with optional fuzziness
    refractive: Glass-like refraction with Schlick reflectance
    registry: Device-side material table (declares Taichi fields)

Every scatter function takes the caller's random stream state and returns
(new_state, scattered_direction, did_scatter). The integrator multiplies the
path color by the material's albedo on every successful scatter.

The registry module is not imported here because it allocates Taichi fields;
import it explicitly after ti.init().
"""

from .diffuse import scatter_hemispherical, scatter_lambertian, scatter_spherical
from .material import Material, ScatterKind
from .refractive import schlick_reflectance, scatter_refractive
from .specular import scatter_specular

__all__ = [
    "Material",
    "ScatterKind",
    "scatter_lambertian",
    "scatter_spherical",
    "scatter_hemispherical",
    "scatter_specular",
    "scatter_refractive",
    "schlick_reflectance",
]
