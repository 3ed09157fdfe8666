"""Path tracing integrator for Monte Carlo light transport.

This module implements the bounded-depth path tracing loop. A path starts
with a white color; every scattering bounce multiplies the color by the hit
material's albedo, and a path that escapes the scene is lit by a vertical
sky gradient. Absorbed paths and paths that run out of bounces contribute
black.

The path tracer solves a simplified rendering equation: the sky is the only
light source, so the color of a path is the product of the albedos along it
times the sky color in the direction the path escapes.

Key features:
    - Material dispatch over the closed set of scattering kinds
    - Sky gradient between a horizon and a zenith color (configurable)
    - Explicit random stream state, threaded through every bounce
    - Self-intersection avoidance through a minimum hit distance

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.gpu, default_fp=ti.f64)
    >>> from pathtracer.core.integrator import trace_ray
    >>> from pathtracer.scene.intersection import load_scene
    >>> from pathtracer.scene.manager import Scene
    >>>
    >>> load_scene(Scene())
    >>> color = trace_ray((0, 0, 0), (0, 1, 0))  # Straight up: the zenith color
"""

import math

import taichi as ti

from pathtracer.core.ray import Ray, make_ray
from pathtracer.core.sampler import seed_stream
from pathtracer.core.types import real, vec3
from pathtracer.materials.diffuse import (
    scatter_hemispherical,
    scatter_lambertian,
    scatter_spherical,
)
from pathtracer.materials.material import ScatterKind
from pathtracer.materials.refractive import scatter_refractive
from pathtracer.materials.registry import (
    get_material_albedo,
    get_material_kind,
    get_material_param,
)
from pathtracer.materials.specular import scatter_specular
from pathtracer.scene.intersection import get_bounds_window, intersect_scene

# =============================================================================
# Rendering Constants
# =============================================================================

# Default minimum hit distance; bounced rays start on the surface
DEFAULT_MIN_DISTANCE = 0.001

# Default bounce limit
DEFAULT_MAX_DEPTH = 10

# Default sky colors
DEFAULT_HORIZON_COLOR = (1.0, 1.0, 1.0)
DEFAULT_ZENITH_COLOR = (0.5, 0.7, 1.0)

# =============================================================================
# Sky Configuration
# =============================================================================

_sky_horizon = ti.Vector.field(3, dtype=real, shape=())
_sky_zenith = ti.Vector.field(3, dtype=real, shape=())


def setup_sky(
    horizon: tuple[float, float, float] = DEFAULT_HORIZON_COLOR,
    zenith: tuple[float, float, float] = DEFAULT_ZENITH_COLOR,
) -> None:
    """Configure the sky gradient.

    Args:
        horizon: Color at the bottom of the gradient (direction y = -1).
        zenith: Color for rays pointing straight up (y = 1).

    Raises:
        ValueError: If any component is negative or not finite.
    """
    for name, color in (("horizon", horizon), ("zenith", zenith)):
        if len(color) != 3:
            raise ValueError(f"Sky {name} color must have 3 components, got {color!r}")
        for component in color:
            if not math.isfinite(component) or component < 0.0:
                raise ValueError(f"Sky {name} color components must be finite and >= 0")

    _sky_horizon[None] = [horizon[0], horizon[1], horizon[2]]
    _sky_zenith[None] = [zenith[0], zenith[1], zenith[2]]


def reset_sky() -> None:
    """Restore the default white-to-blue sky."""
    setup_sky(DEFAULT_HORIZON_COLOR, DEFAULT_ZENITH_COLOR)


def get_sky_colors() -> dict[str, tuple[float, float, float]]:
    """Get the current sky colors.

    Returns:
        Dictionary with 'horizon' and 'zenith' RGB tuples.
    """
    h = _sky_horizon[None]
    z = _sky_zenith[None]
    return {
        "horizon": (float(h[0]), float(h[1]), float(h[2])),
        "zenith": (float(z[0]), float(z[1]), float(z[2])),
    }


reset_sky()


@ti.func
def sky_color(direction: vec3) -> vec3:
    """Sky radiance for an escaping ray.

    The vertical direction component is remapped from [-1, 1] to [0, 1] and
    used to blend between the horizon and zenith colors.
    """
    t = (direction.y + 1.0) * 0.5
    return _sky_zenith[None] * t + _sky_horizon[None] * (1.0 - t)


# =============================================================================
# Material Dispatch
# =============================================================================


@ti.func
def _scatter_material(
    material_id: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    state: ti.u32,
):
    """Dispatch to the appropriate material scattering function.

    Args:
        material_id: Index into the material table.
        incident_direction: The incoming ray direction.
        normal: The surface normal (unit length, facing the ray).
        front_face: 1 if hit front face, 0 if back face.
        state: The caller's random stream state.

    Returns:
        A tuple of (new_state, scattered_direction, did_scatter). Unknown
        material ids absorb the ray.
    """
    kind = get_material_kind(material_id)

    s = state
    scattered_direction = vec3(0.0, 0.0, 0.0)
    did_scatter = 0

    if kind == int(ScatterKind.LAMBERTIAN):
        s, scattered_direction, did_scatter = scatter_lambertian(normal, s)

    elif kind == int(ScatterKind.SPHERICAL):
        s, scattered_direction, did_scatter = scatter_spherical(normal, s)

    elif kind == int(ScatterKind.HEMISPHERICAL):
        s, scattered_direction, did_scatter = scatter_hemispherical(normal, s)

    elif kind == int(ScatterKind.SPECULAR):
        fuzziness = get_material_param(material_id)
        s, scattered_direction, did_scatter = scatter_specular(
            incident_direction, normal, fuzziness, s
        )

    elif kind == int(ScatterKind.REFRACTIVE):
        index = get_material_param(material_id)
        s, scattered_direction, did_scatter = scatter_refractive(
            incident_direction, normal, front_face, index, s
        )

    return s, scattered_direction, did_scatter


# =============================================================================
# Path Tracing Core
# =============================================================================


@ti.func
def trace_path(
    ray: Ray,
    min_distance: real,
    max_distance: real,
    max_depth: ti.i32,
    state: ti.u32,
    use_bounds: ti.i32,
):
    """Trace a single path through the scene.

    Each iteration finds the nearest hit in [min_distance, max_distance).
    A miss ends the path with the accumulated color times the sky; an
    absorbing hit ends it with black; a scattering hit continues from the
    hit point with the same time and the color multiplied by the albedo.
    Running out of bounces also yields black.

    Args:
        ray: The camera ray.
        min_distance: Smallest accepted hit distance (self-hit epsilon).
        max_distance: Largest accepted hit distance (exclusive).
        max_depth: Maximum number of hits before the path is cut off.
        state: The caller's random stream state.
        use_bounds: If 1, cull spheres with their bounding boxes.

    Returns:
        A tuple of (new_state, color).
    """
    s = state
    current = ray
    color = vec3(1.0, 1.0, 1.0)
    result = vec3(0.0, 0.0, 0.0)

    # Active flag for path continuation (Taichi doesn't support break in ti.func loops)
    active = 1

    for _ in range(max_depth):
        if active == 1:
            hit_record = intersect_scene(current, min_distance, max_distance, use_bounds)

            if hit_record.hit == 0:
                result = color * sky_color(current.direction)
                active = 0
            else:
                material_id = hit_record.material_id
                s, scattered_direction, did_scatter = _scatter_material(
                    material_id,
                    current.direction,
                    hit_record.normal,
                    hit_record.front_face,
                    s,
                )

                if did_scatter == 0:
                    # Absorbed: the path contributes nothing
                    active = 0
                else:
                    color *= get_material_albedo(material_id)
                    current = make_ray(hit_record.point, scattered_direction, current.time)

    return s, result


# =============================================================================
# Debugging Kernel
# =============================================================================


@ti.kernel
def _trace_single(
    origin: vec3,
    direction: vec3,
    time: real,
    min_distance: real,
    max_distance: real,
    max_depth: ti.i32,
    seed: ti.i32,
    use_bounds: ti.i32,
) -> vec3:
    state = seed_stream(ti.cast(seed, ti.u32), ti.cast(0, ti.u32), ti.cast(0, ti.u32))
    ray = make_ray(origin, direction, time)
    _, color = trace_path(ray, min_distance, max_distance, max_depth, state, use_bounds)
    return color


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    time: float = 0.0,
    min_distance: float = DEFAULT_MIN_DISTANCE,
    max_distance: float = math.inf,
    max_depth: int = DEFAULT_MAX_DEPTH,
    seed: int = 0,
    use_bounds: bool = False,
) -> tuple[float, float, float]:
    """Trace one path from Python (for testing and debugging).

    The scene must already be uploaded with load_scene(). For production
    rendering use pathtracer.core.renderer.render(), which processes all
    pixels in parallel.

    Args:
        origin: Ray origin.
        direction: Ray direction.
        time: Ray time (selects moving sphere positions).
        min_distance: Smallest accepted hit distance.
        max_distance: Largest accepted hit distance (exclusive).
        max_depth: Maximum number of bounces.
        seed: Seed for the path's random stream.
        use_bounds: Whether to cull spheres by their bounding boxes.

    Returns:
        Tuple of (R, G, B) color values.

    Raises:
        ValueError: If use_bounds is set and time lies outside the shutter
            interval passed to load_scene(), which the boxes were built for.
    """
    if use_bounds:
        shutter_open, shutter_close = get_bounds_window()
        if not shutter_open <= time <= shutter_close:
            raise ValueError(
                f"Ray time {time} is outside the loaded shutter interval "
                f"[{shutter_open}, {shutter_close}]; bounding boxes would cull wrongly"
            )
    color = _trace_single(
        vec3(origin[0], origin[1], origin[2]),
        vec3(direction[0], direction[1], direction[2]),
        time,
        min_distance,
        max_distance,
        max_depth,
        seed % (2**31),
        int(use_bounds),
    )
    return (float(color[0]), float(color[1]), float(color[2]))
