"""Device-side material table.

Materials live in a flat table indexed by material id. Each entry stores the
ScatterKind, the albedo and the scalar parameter (fuzziness or index of
refraction). Spheres store only the id, so one entry can be shared by many
spheres.

The table is filled from host code with add_material() and read inside
kernels with the get_material_* functions.
"""

import taichi as ti

from pathtracer.core.types import real, vec3
from pathtracer.materials.material import Material

# =============================================================================
# Material Field Storage
# =============================================================================

# Maximum number of materials in the scene
MAX_MATERIALS = 1024

material_kinds = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
material_albedos = ti.Vector.field(3, dtype=real, shape=MAX_MATERIALS)
material_params = ti.field(dtype=real, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def clear_materials() -> None:
    """Clear all materials.

    Resets the material count to zero. Existing data in the fields will be
    overwritten when new materials are added.
    """
    num_materials[None] = 0


def add_material(material: Material) -> int:
    """Add a material to the table.

    Args:
        material: The (already validated) material to store.

    Returns:
        The id of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
    """
    idx = num_materials[None]
    if idx >= MAX_MATERIALS:
        raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

    material_kinds[idx] = int(material.kind)
    material_albedos[idx] = vec3(material.albedo[0], material.albedo[1], material.albedo[2])
    material_params[idx] = material.parameter
    num_materials[None] = idx + 1
    return idx


def get_material_count() -> int:
    """Get the number of materials in the table."""
    return int(num_materials[None])


@ti.func
def get_material_kind(material_id: ti.i32) -> ti.i32:
    """Get the ScatterKind value for a material id.

    Returns:
        The kind as an integer, or -1 for invalid ids.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_kinds[material_id]
    return result


@ti.func
def get_material_albedo(material_id: ti.i32) -> vec3:
    """Get the albedo for a material id."""
    return material_albedos[material_id]


@ti.func
def get_material_param(material_id: ti.i32) -> real:
    """Get the fuzziness or index of refraction for a material id."""
    return material_params[material_id]
