"""Movable sphere primitive with ray-sphere intersection.

The sphere's center follows a motion curve, evaluated at the ray's shutter
time before solving the intersection quadratic. Roots are computed with the
robust quadratic formula from Ray Tracing Gems to avoid catastrophic
cancellation when b^2 is nearly equal to ac.

Root selection:
    The nearer root is tried first and rejected outright if it lies at or
    beyond max_distance (the farther root would be too). If it lies before
    min_distance, the farther root is tried instead. This lets a bounced ray
    skip its own starting point (min_distance is a small epsilon) while still
    finding the far side of a sphere it is inside of.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from pathtracer.geometry.sphere import make_sphere, hit_sphere
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import Ray, ray_at
from pathtracer.core.types import real, vec3
from pathtracer.geometry.motion import MotionCurve, curve_at


@ti.dataclass
class Sphere:
    """A sphere whose center may move linearly over time.

    The center is stored as the fields of a MotionCurve; a stationary sphere
    has center_start == center_end and time0 == time1.

    Attributes:
        center_start: Center at time0.
        center_end: Center at time1.
        time0: First keyframe time.
        time1: Second keyframe time.
        radius: The radius of the sphere (positive).
    """

    center_start: vec3
    center_end: vec3
    time0: real
    time1: real
    radius: real


@ti.dataclass
class HitRecord:
    """Record of a ray-sphere intersection.

    Attributes:
        hit: Whether the ray intersected the sphere (1 if hit, 0 if miss).
        t: The distance along the ray of the intersection.
            Only valid if hit == 1.
        point: The 3D point where the ray intersected the sphere.
            Only valid if hit == 1.
        normal: The unit surface normal, oriented against the ray: the
            outward normal for front-face hits, the inward normal for
            back-face hits. Only valid if hit == 1.
        front_face: 1 if the ray arrived from outside the sphere, 0 if from
            inside. Only valid if hit == 1.
    """

    hit: ti.i32
    t: real
    point: vec3
    normal: vec3
    front_face: ti.i32


@ti.func
def make_sphere(curve: MotionCurve, radius: real) -> Sphere:
    """Create a sphere from a center curve and radius."""
    return Sphere(
        center_start=curve.start,
        center_end=curve.end,
        time0=curve.time0,
        time1=curve.time1,
        radius=radius,
    )


@ti.func
def sphere_center(sphere: Sphere, time: real) -> vec3:
    """Evaluate the sphere's center at the given time."""
    curve = MotionCurve(
        start=sphere.center_start,
        end=sphere.center_end,
        time0=sphere.time0,
        time1=sphere.time1,
    )
    return curve_at(curve, time)


@ti.func
def _solve_quadratic_robust(h: real, a: real, c: real, sqrt_d: real):
    """Solve a*t^2 + 2*h*t + c = 0 using a numerically stable method.

    Args:
        h: Half of the linear coefficient.
        a: Quadratic coefficient.
        c: Constant term.
        sqrt_d: Square root of the discriminant (h^2 - a*c).

    Returns:
        Tuple of (t0, t1) where t0 <= t1.
    """
    # q = -(h + sign(h) * sqrt(discriminant)) avoids cancellation
    sign_h = ti.select(h < 0.0, -1.0, 1.0)
    q = -(h + sign_h * sqrt_d)

    t0 = 0.0
    t1 = 0.0

    if ti.abs(q) < 1e-10:
        # Tangent ray through the center plane; fall back to the standard formula
        t0 = (-h - sqrt_d) / a
        t1 = (-h + sqrt_d) / a
    else:
        t0 = q / a
        t1 = c / q

    if t0 > t1:
        temp = t0
        t0 = t1
        t1 = temp

    return t0, t1


@ti.func
def hit_sphere(
    ray: Ray,
    sphere: Sphere,
    min_distance: real,
    max_distance: real,
) -> HitRecord:
    """Intersect a ray with a (possibly moving) sphere.

    The ray-sphere intersection is found by solving:
        |origin + t * direction - center(time)|^2 = radius^2

    which expands to a*t^2 + 2*h*t + c = 0 with
        a = dot(direction, direction)
        h = dot(direction, origin - center)
        c = dot(origin - center, origin - center) - radius^2

    Args:
        ray: The ray to test. Its time selects the sphere's center.
        sphere: The sphere to test against.
        min_distance: Smallest accepted distance (inclusive).
        max_distance: Largest accepted distance (exclusive).

    Returns:
        A HitRecord whose hit field tells whether an intersection with
        min_distance <= t < max_distance was found.
    """
    center = sphere_center(sphere, ray.time)
    oc = ray.origin - center

    a = tm.dot(ray.direction, ray.direction)
    h = tm.dot(ray.direction, oc)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius

    discriminant = h * h - a * c

    # Initialize result fields (Taichi requires outer-scope declaration)
    did_hit = 0
    hit_t = 0.0
    hit_point = vec3(0.0, 0.0, 0.0)
    hit_normal = vec3(0.0, 0.0, 0.0)
    is_front_face = 0

    if discriminant >= 0.0:
        sqrt_d = ti.sqrt(discriminant)
        t0, t1 = _solve_quadratic_robust(h, a, c, sqrt_d)

        # A near root at or past max_distance means the far root is too
        t = t0
        valid = 0
        if t < max_distance:
            if t >= min_distance:
                valid = 1
            else:
                t = t1
                if t >= min_distance and t < max_distance:
                    valid = 1

        if valid == 1:
            did_hit = 1
            hit_t = t
            hit_point = ray_at(ray, t)

            outward_normal = (hit_point - center) / sphere.radius

            if tm.dot(ray.direction, outward_normal) < 0.0:
                is_front_face = 1
                hit_normal = outward_normal
            else:
                # Ray is inside the sphere (or grazing it), moving outward
                is_front_face = 0
                hit_normal = -outward_normal

    return HitRecord(
        hit=did_hit,
        t=hit_t,
        point=hit_point,
        normal=hit_normal,
        front_face=is_front_face,
    )
