"""Scene-level primitive intersection testing.

This module provides scene-level ray intersection testing over all spheres
and returns the closest hit with material information.

The scene stores primitives in Taichi fields for GPU-efficient access. Each
sphere has an associated material ID indexing the material table in
pathtracer.materials.registry, plus a bounding box covering its motion over
the shutter interval.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.gpu, default_fp=ti.f64)
    >>> from pathtracer.scene.manager import Scene
    >>> from pathtracer.scene.intersection import load_scene, intersect_scene
    >>> scene = Scene()
    >>> red = scene.add_lambertian_material((0.8, 0.1, 0.1))
    >>> scene.add_sphere((0, 0, -1), 0.5, red)
    >>> load_scene(scene)
    >>> # Use intersect_scene within a Taichi kernel
"""

import logging
from typing import TYPE_CHECKING

import taichi as ti

from pathtracer.core.ray import Ray
from pathtracer.core.types import real, vec3
from pathtracer.geometry.aabb import Aabb, BoundingBox, aabb_hit, sphere_bounding_box
from pathtracer.geometry.sphere import HitRecord, Sphere, hit_sphere
from pathtracer.materials.registry import add_material, clear_materials

if TYPE_CHECKING:
    from pathtracer.scene.manager import Scene

logger = logging.getLogger(__name__)


@ti.dataclass
class SceneHitRecord:
    """Record of a ray-scene intersection with material information.

    Extends the basic HitRecord with material_id for scene-level queries.

    Attributes:
        hit: Whether the ray intersected any primitive (1 if hit, 0 if miss).
        t: The distance along the ray where intersection occurred.
            Only valid if hit == 1.
        point: The 3D point where the ray intersected the surface.
            Only valid if hit == 1.
        normal: The unit surface normal, oriented against the ray.
            Only valid if hit == 1.
        front_face: Whether the ray hit the front face (1) or back face (0).
            Only valid if hit == 1.
        material_id: The material ID of the hit primitive.
            Only valid if hit == 1. -1 indicates no material assigned.
    """

    hit: ti.i32
    t: real
    point: vec3
    normal: vec3
    front_face: ti.i32
    material_id: ti.i32


# Maximum number of primitives supported in the scene
MAX_SPHERES = 1024

# Sphere storage: Structure of Arrays layout for GPU efficiency
sphere_centers_start = ti.Vector.field(3, dtype=real, shape=MAX_SPHERES)
sphere_centers_end = ti.Vector.field(3, dtype=real, shape=MAX_SPHERES)
sphere_time0 = ti.field(dtype=real, shape=MAX_SPHERES)
sphere_time1 = ti.field(dtype=real, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=real, shape=MAX_SPHERES)
sphere_material_ids = ti.field(dtype=ti.i32, shape=MAX_SPHERES)

# Per-sphere bounds over the shutter interval, used when culling is enabled
sphere_box_min = ti.Vector.field(3, dtype=real, shape=MAX_SPHERES)
sphere_box_max = ti.Vector.field(3, dtype=real, shape=MAX_SPHERES)

num_spheres = ti.field(dtype=ti.i32, shape=())

# Shutter interval the sphere boxes were computed over
bounds_window = ti.field(dtype=real, shape=2)


def clear_scene() -> None:
    """Clear all primitives from the scene.

    Resets the primitive count to zero. The actual field data is not
    cleared but will be overwritten when new primitives are added.
    """
    num_spheres[None] = 0


def add_sphere(
    center_start: vec3,
    center_end: vec3,
    time0: float,
    time1: float,
    radius: float,
    material_id: int,
    box: BoundingBox,
) -> int:
    """Add a sphere to the device scene.

    Args:
        center_start: Center at time0.
        center_end: Center at time1 (equal to center_start when stationary).
        time0: First keyframe time.
        time1: Second keyframe time (equal to time0 when stationary).
        radius: The radius of the sphere (positive).
        material_id: Index into the material table.
        box: Bounds of the sphere over the shutter interval.

    Returns:
        The index of the added sphere.

    Raises:
        RuntimeError: If the maximum number of spheres is exceeded.
    """
    idx = num_spheres[None]
    if idx >= MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")
    sphere_centers_start[idx] = center_start
    sphere_centers_end[idx] = center_end
    sphere_time0[idx] = time0
    sphere_time1[idx] = time1
    sphere_radii[idx] = radius
    sphere_material_ids[idx] = material_id
    sphere_box_min[idx] = vec3(*box.minimum)
    sphere_box_max[idx] = vec3(*box.maximum)
    num_spheres[None] = idx + 1
    return idx


def get_sphere_count() -> int:
    """Get the number of spheres in the scene."""
    return int(num_spheres[None])


def get_bounds_window() -> tuple[float, float]:
    """Get the shutter interval the loaded bounding boxes cover."""
    return (float(bounds_window[0]), float(bounds_window[1]))


def load_scene(scene: "Scene", shutter_open: float = 0.0, shutter_close: float = 1.0) -> None:
    """Upload a host scene into the device fields.

    Replaces the material table and all spheres. The bounding boxes are
    computed over [shutter_open, shutter_close], which must cover every ray
    time the renderer generates for culling to be exact.

    Args:
        scene: The scene to upload.
        shutter_open: Start of the shutter interval.
        shutter_close: End of the shutter interval.

    Raises:
        RuntimeError: If the scene exceeds the material or sphere capacity.
    """
    clear_materials()
    clear_scene()
    bounds_window[0] = shutter_open
    bounds_window[1] = shutter_close

    for material in scene.materials:
        add_material(material)

    for info in scene.spheres:
        path = info.path
        box = sphere_bounding_box(path, info.radius, shutter_open, shutter_close)
        add_sphere(
            vec3(*path.start),
            vec3(*path.end),
            path.time0,
            path.time1,
            info.radius,
            info.material_id,
            box,
        )

    logger.debug(
        "Loaded scene: %d materials, %d spheres (shutter %.3f..%.3f)",
        len(scene.materials),
        len(scene.spheres),
        shutter_open,
        shutter_close,
    )


@ti.func
def _hit_record_to_scene_hit_record(rec: HitRecord, material_id: ti.i32) -> SceneHitRecord:
    """Convert a HitRecord to a SceneHitRecord with material ID."""
    return SceneHitRecord(
        hit=rec.hit,
        t=rec.t,
        point=rec.point,
        normal=rec.normal,
        front_face=rec.front_face,
        material_id=material_id,
    )


@ti.func
def _make_miss_record() -> SceneHitRecord:
    """Create a SceneHitRecord indicating no intersection."""
    return SceneHitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
        material_id=-1,
    )


@ti.func
def _load_sphere(i: ti.i32) -> Sphere:
    return Sphere(
        center_start=sphere_centers_start[i],
        center_end=sphere_centers_end[i],
        time0=sphere_time0[i],
        time1=sphere_time1[i],
        radius=sphere_radii[i],
    )


@ti.func
def intersect_scene(
    ray: Ray,
    min_distance: real,
    max_distance: real,
    use_bounds: ti.i32,
) -> SceneHitRecord:
    """Test ray against all spheres in the scene.

    Iterates through all spheres, shrinking the accepted interval to the
    closest hit found so far, so a later sphere only wins with a strictly
    smaller distance.

    Args:
        ray: The ray to test.
        min_distance: Minimum distance to consider a valid hit.
        max_distance: Maximum distance (exclusive) to consider a valid hit.
        use_bounds: If 1, slab-test each sphere's bounding box first.

    Returns:
        A SceneHitRecord containing the closest intersection, or a miss
        record if no intersection was found.
    """
    closest_t = max_distance
    result = _make_miss_record()

    n_spheres = num_spheres[None]
    for i in range(n_spheres):
        candidate = 1
        if use_bounds == 1:
            box = Aabb(minimum=sphere_box_min[i], maximum=sphere_box_max[i])
            candidate = aabb_hit(box, ray, min_distance, closest_t)
        if candidate == 1:
            rec = hit_sphere(ray, _load_sphere(i), min_distance, closest_t)
            if rec.hit == 1:
                closest_t = rec.t
                result = _hit_record_to_scene_hit_record(rec, sphere_material_ids[i])

    return result
