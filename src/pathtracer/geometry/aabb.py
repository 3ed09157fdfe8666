"""Axis-aligned bounding boxes.

Bounding boxes support the slab-test culling hint used by scene
intersection (see ``intersect_scene(..., use_bounds=1)``) and are the
building block for future acceleration structures.

Host-side BoundingBox values are computed when a scene is uploaded; the
device-side Aabb struct and aabb_hit() run inside kernels.

Slab test:
    For each axis, the ray enters the slab at t0 = (min - o) / d and leaves
    it at t1 = (max - o) / d (swapped when d < 0). The ray hits the box iff
    the intersection of all three [t0, t1] intervals with
    [min_distance, max_distance] is non-empty.
"""

from dataclasses import dataclass

import taichi as ti

from pathtracer.core.ray import Ray
from pathtracer.core.types import real, vec3
from pathtracer.geometry.motion import MotionPath


@ti.dataclass
class Aabb:
    """Device-side axis-aligned box.

    Attributes:
        minimum: The corner with the smallest coordinates.
        maximum: The corner with the largest coordinates.
    """

    minimum: vec3
    maximum: vec3


@ti.func
def aabb_hit(box: Aabb, ray: Ray, min_distance: real, max_distance: real) -> ti.i32:
    """Slab test between a ray and a box.

    A zero direction component is handled without dividing: the ray misses
    if its origin lies outside that axis' slab.

    Args:
        box: The box to test.
        ray: The ray to test.
        min_distance: Start of the accepted distance interval.
        max_distance: End of the accepted distance interval.

    Returns:
        1 if the ray overlaps the box within the interval, 0 otherwise.
    """
    t_near = min_distance
    t_far = max_distance
    did_hit = 1

    for axis in ti.static(range(3)):
        o = ray.origin[axis]
        d = ray.direction[axis]
        if d == 0.0:
            if o < box.minimum[axis] or o > box.maximum[axis]:
                did_hit = 0
        else:
            inv_d = 1.0 / d
            t0 = (box.minimum[axis] - o) * inv_d
            t1 = (box.maximum[axis] - o) * inv_d
            if inv_d < 0.0:
                tmp = t0
                t0 = t1
                t1 = tmp
            t_near = ti.max(t0, t_near)
            t_far = ti.min(t1, t_far)
            if t_near > t_far:
                did_hit = 0

    return did_hit


@ti.func
def aabb_merge(a: Aabb, b: Aabb) -> Aabb:
    """Smallest box containing both boxes."""
    return Aabb(
        minimum=ti.min(a.minimum, b.minimum),
        maximum=ti.max(a.maximum, b.maximum),
    )


@dataclass(frozen=True)
class BoundingBox:
    """Host-side axis-aligned box.

    Attributes:
        minimum: The corner with the smallest coordinates (x, y, z).
        maximum: The corner with the largest coordinates (x, y, z).
    """

    minimum: tuple[float, float, float]
    maximum: tuple[float, float, float]

    @classmethod
    def around(cls, center: tuple[float, float, float], radius: float) -> "BoundingBox":
        """Box offset by radius in every direction from center."""
        return cls(
            minimum=(center[0] - radius, center[1] - radius, center[2] - radius),
            maximum=(center[0] + radius, center[1] + radius, center[2] + radius),
        )

    def merge(self, other: "BoundingBox") -> "BoundingBox":
        """Smallest box containing both boxes."""
        return BoundingBox(
            minimum=(
                min(self.minimum[0], other.minimum[0]),
                min(self.minimum[1], other.minimum[1]),
                min(self.minimum[2], other.minimum[2]),
            ),
            maximum=(
                max(self.maximum[0], other.maximum[0]),
                max(self.maximum[1], other.maximum[1]),
                max(self.maximum[2], other.maximum[2]),
            ),
        )

    def hit(
        self,
        origin: tuple[float, float, float],
        direction: tuple[float, float, float],
        min_distance: float,
        max_distance: float,
    ) -> bool:
        """Host-side slab test, same rules as aabb_hit()."""
        t_near = min_distance
        t_far = max_distance
        for axis in range(3):
            o = origin[axis]
            d = direction[axis]
            if d == 0.0:
                if o < self.minimum[axis] or o > self.maximum[axis]:
                    return False
                continue
            t0 = (self.minimum[axis] - o) / d
            t1 = (self.maximum[axis] - o) / d
            if d < 0.0:
                t0, t1 = t1, t0
            t_near = max(t0, t_near)
            t_far = min(t1, t_far)
            if t_near > t_far:
                return False
        return True


def sphere_bounding_box(
    path: MotionPath,
    radius: float,
    time0: float,
    time1: float,
) -> "BoundingBox":
    """Bound a (possibly moving) sphere over the shutter interval.

    For a moving path the boxes at both shutter endpoints are merged, which
    is exact for linear motion. Paths that leave and re-enter the box between
    the endpoints are not supported.

    Args:
        path: The sphere's center path.
        radius: The sphere's radius.
        time0: Shutter open time.
        time1: Shutter close time.

    Returns:
        A BoundingBox enclosing the sphere at every time in [time0, time1].
    """
    if not path.is_moving:
        return BoundingBox.around(path.start, radius)

    start = tuple(float(c) for c in path.at(time0))
    end = tuple(float(c) for c in path.at(time1))
    return BoundingBox.around(start, radius).merge(BoundingBox.around(end, radius))
