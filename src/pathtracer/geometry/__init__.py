"""Geometry module for primitives, motion and bounding volumes.

Components:
    motion: Fixed and linearly moving center curves (motion blur)
    aabb: Axis-aligned bounding boxes and the slab test
    sphere: Movable sphere primitive with ray-sphere intersection

All intersection routines are implemented as Taichi functions (@ti.func)
so they can run inside parallel kernels. Ray-object intersection follows
the pattern:
    record = hit_shape(ray, shape, min_distance, max_distance)
"""

from .aabb import Aabb, BoundingBox, aabb_hit, aabb_merge, sphere_bounding_box
from .motion import MotionCurve, MotionPath, curve_at
from .sphere import HitRecord, Sphere, hit_sphere, make_sphere, sphere_center

__all__ = [
    "MotionCurve",
    "MotionPath",
    "curve_at",
    "Aabb",
    "BoundingBox",
    "aabb_hit",
    "aabb_merge",
    "sphere_bounding_box",
    "Sphere",
    "HitRecord",
    "hit_sphere",
    "make_sphere",
    "sphere_center",
]
