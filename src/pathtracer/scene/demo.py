"""Demo scene configurations.

This module provides factory functions for two ready-made scenes:

- Wide angle: a blue and a red diffuse sphere side by side, sized so they
  line up with the edges of a very wide (about 127 degree) viewport.
- Cover: the classic "many spheres" scene. A huge ground sphere, a diffuse,
  a glass and a mirror sphere, and a grid of small random spheres. Most
  small spheres are diffuse and bounce upward during the shutter interval
  (motion blur); the camera has a small aperture (depth of field).

Both factories return a (Scene, Camera) pair with the camera's aspect ratio
matching the requested image size.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.gpu, default_fp=ti.f64)
    >>> from pathtracer.scene.demo import create_cover_scene
    >>> scene, camera = create_cover_scene(400, 225, seed=7)
    >>> scene.get_sphere_count() > 4
    True
"""

import math

import numpy as np

from pathtracer.camera.thin_lens import Camera
from pathtracer.scene.manager import Scene

# =============================================================================
# Cover Scene Parameters
# =============================================================================

GROUND_ALBEDO = (0.5, 0.5, 0.5)
DIFFUSE_SPHERE_ALBEDO = (0.4, 0.2, 0.1)
MIRROR_SPHERE_ALBEDO = (0.7, 0.6, 0.5)
GLASS_INDEX = 1.5

SMALL_SPHERE_RADIUS = 0.2
# Probabilities of the small sphere materials (the remainder is glass)
DIFFUSE_PROBABILITY = 0.8
SPECULAR_PROBABILITY = 0.15


def _aspect(width: int, height: int) -> float:
    if width <= 0 or height <= 0:
        raise ValueError(f"Image size must be positive, got {width}x{height}")
    return width / height


def create_wide_angle_scene(width: int, height: int) -> tuple[Scene, Camera]:
    """Create the two-sphere wide angle scene.

    Args:
        width: Image width in pixels (used for the aspect ratio).
        height: Image height in pixels (used for the aspect ratio).

    Returns:
        A tuple of (Scene, Camera).
    """
    scene = Scene()

    # Lines up with the viewport edges
    radius = math.cos(math.pi / 4.0)

    scene.add_lambertian_sphere(center=(-radius, 0.0, -1.0), radius=radius, albedo=(0.0, 0.0, 1.0))
    scene.add_lambertian_sphere(center=(radius, 0.0, -1.0), radius=radius, albedo=(1.0, 0.0, 0.0))

    fov = math.degrees(math.atan(math.tan(math.radians(45.0)) * 2.0) * 2.0)
    camera = Camera(
        origin=(0.0, 0.0, 0.0),
        target=(0.0, 0.0, -1.0),
        aspect_ratio=_aspect(width, height),
        fov=fov,
        focal_distance=1.0,
    )
    return scene, camera


def create_cover_scene(width: int, height: int, seed: int = 0) -> tuple[Scene, Camera]:
    """Create the many-spheres cover scene.

    The small random spheres are generated from a NumPy generator seeded
    with seed, so the same seed always produces the same scene.

    Args:
        width: Image width in pixels (used for the aspect ratio).
        height: Image height in pixels (used for the aspect ratio).
        seed: Seed for the random sphere layout and materials.

    Returns:
        A tuple of (Scene, Camera).
    """
    rng = np.random.default_rng(seed)
    scene = Scene()

    # =========================================================================
    # Large spheres
    # =========================================================================

    scene.add_lambertian_sphere(center=(0.0, -1000.0, 0.0), radius=1000.0, albedo=GROUND_ALBEDO)
    scene.add_lambertian_sphere(center=(-4.0, 1.0, 0.0), radius=1.0, albedo=DIFFUSE_SPHERE_ALBEDO)
    glass = scene.add_refractive_material(index=GLASS_INDEX)
    scene.add_sphere(center=(0.0, 1.0, 0.0), radius=1.0, material_id=glass)
    scene.add_specular_sphere(
        center=(4.0, 1.0, 0.0), radius=1.0, albedo=MIRROR_SPHERE_ALBEDO, fuzziness=0.0
    )

    # =========================================================================
    # Small random spheres
    # =========================================================================

    keep_clear = np.array([4.0, SMALL_SPHERE_RADIUS, 0.0])
    for i in range(-11, 11):
        for j in range(-11, 11):
            choose_mat = rng.random()
            center = np.array(
                [i + 0.9 * rng.random(), SMALL_SPHERE_RADIUS, j + 0.9 * rng.random()]
            )
            if np.linalg.norm(center - keep_clear) <= 0.9:
                continue

            point = (float(center[0]), float(center[1]), float(center[2]))
            if choose_mat < DIFFUSE_PROBABILITY:
                albedo = rng.random(3) * rng.random(3)
                material_id = scene.add_lambertian_material(tuple(albedo.tolist()))
                lift = rng.uniform(0.0, 0.5)
                scene.add_moving_sphere(
                    center_start=point,
                    center_end=(point[0], point[1] + lift, point[2]),
                    time0=0.0,
                    time1=1.0,
                    radius=SMALL_SPHERE_RADIUS,
                    material_id=material_id,
                )
            elif choose_mat < DIFFUSE_PROBABILITY + SPECULAR_PROBABILITY:
                albedo = rng.uniform(0.5, 1.0, 3)
                scene.add_specular_sphere(
                    center=point,
                    radius=SMALL_SPHERE_RADIUS,
                    albedo=tuple(albedo.tolist()),
                    fuzziness=rng.uniform(0.0, 0.5),
                )
            else:
                scene.add_sphere(center=point, radius=SMALL_SPHERE_RADIUS, material_id=glass)

    # =========================================================================
    # Camera Setup
    # =========================================================================

    fov = math.degrees(math.atan(math.tan(math.radians(20.0)) * 2.0))
    camera = Camera(
        origin=(13.0, 2.0, 3.0),
        target=(0.0, 0.0, 0.0),
        aspect_ratio=_aspect(width, height),
        fov=fov,
        roll=0.0,
        aperture=0.1,
        focal_distance=10.0,
        shutter_open=0.0,
        shutter_close=1.0,
    )
    return scene, camera
