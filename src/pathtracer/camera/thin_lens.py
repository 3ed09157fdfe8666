"""Thin-lens camera model with roll, depth of field and a shutter interval.

This module implements the camera that generates primary rays for rendering.
The camera supports:
- Look-at positioning (origin, target) with world up fixed at +Y
- Horizontal field of view and arbitrary aspect ratios
- Roll (clockwise rotation of the image about the view direction)
- Depth of field through a circular lens aperture and a focal distance
- Motion blur through a shutter interval sampled per ray

The camera builds a viewport from the view parameters:
- horizontal_unit: points right in the image plane (rotated by roll)
- vertical_unit: points DOWN in the image plane, so v = 0 is the top row
- upper_left: upper-left viewport corner relative to the camera origin

All viewport geometry is computed once on the host with NumPy and uploaded
into Taichi fields; ray generation runs inside kernels.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.gpu, default_fp=ti.f64)
    >>> from pathtracer.camera.thin_lens import Camera, setup_camera, get_ray
    >>>
    >>> camera = Camera(
    ...     origin=(13.0, 2.0, 3.0),
    ...     target=(0.0, 0.0, 0.0),
    ...     aspect_ratio=16.0 / 9.0,
    ...     fov=40.0,
    ...     aperture=0.1,
    ...     focal_distance=10.0,
    ... )
    >>> setup_camera(camera)
    >>>
    >>> @ti.kernel
    ... def render():
    ...     state, ray = get_ray(0.5, 0.5, state)  # Ray through image center
"""

import math
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import make_ray, random_in_unit_disk
from pathtracer.core.sampler import random_float
from pathtracer.core.types import real

# World up direction used to orient every camera
WORLD_UP = (0.0, 1.0, 0.0)

# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass
class Camera:
    """Configuration for a thin-lens camera.

    Attributes:
        origin: Camera position in world space (x, y, z).
        target: Point the camera is looking at; only the direction matters
            for orientation.
        aspect_ratio: Width divided by height of the viewport.
        fov: Angle in degrees between the left and right edges of the
            viewport as seen from the origin.
        roll: Clockwise angle in degrees between the top of the viewport and
            world up.
        aperture: Lens diameter. 0 gives a pinhole (everything in focus).
        focal_distance: Distance from the origin at which objects are in focus;
            the viewport is placed at this distance.
        shutter_open: Time at which the shutter opens.
        shutter_close: Time at which the shutter closes. Equal to shutter_open
            for an instantaneous exposure.

    Raises:
        ValueError: On construction if any parameter is out of range or the
            view direction is parallel to world up.
    """

    origin: tuple[float, float, float]
    target: tuple[float, float, float]
    aspect_ratio: float
    fov: float
    roll: float = 0.0
    aperture: float = 0.0
    focal_distance: float = 1.0
    shutter_open: float = 0.0
    shutter_close: float = 0.0

    def __post_init__(self) -> None:
        values = (
            *self.origin,
            *self.target,
            self.aspect_ratio,
            self.fov,
            self.roll,
            self.aperture,
            self.focal_distance,
            self.shutter_open,
            self.shutter_close,
        )
        if not all(math.isfinite(float(x)) for x in values):
            raise ValueError("Camera parameters must be finite")
        if self.aspect_ratio <= 0.0:
            raise ValueError(f"Aspect ratio must be positive, got {self.aspect_ratio}")
        if not 0.0 < self.fov < 180.0:
            raise ValueError(f"Field of view must be in (0, 180) degrees, got {self.fov}")
        if self.aperture < 0.0:
            raise ValueError(f"Aperture must be non-negative, got {self.aperture}")
        if self.focal_distance <= 0.0:
            raise ValueError(f"Focal distance must be positive, got {self.focal_distance}")
        if self.shutter_close < self.shutter_open:
            raise ValueError(
                f"Shutter closes ({self.shutter_close}) before it opens ({self.shutter_open})"
            )

        direction = np.subtract(self.target, self.origin).astype(np.float64)
        norm = np.linalg.norm(direction)
        if norm == 0.0:
            raise ValueError("Camera origin and target must differ")
        side = np.cross(direction / norm, WORLD_UP)
        if np.linalg.norm(side) < 1e-9:
            raise ValueError(
                "Camera view direction is parallel to world up; the basis is undefined"
            )


@dataclass(frozen=True)
class CameraBasis:
    """Viewport geometry derived from a Camera.

    All vectors are relative to the camera origin except origin itself.
    """

    origin: npt.NDArray[np.float64]
    upper_left: npt.NDArray[np.float64]
    horizontal_unit: npt.NDArray[np.float64]
    horizontal: npt.NDArray[np.float64]
    vertical_unit: npt.NDArray[np.float64]
    vertical: npt.NDArray[np.float64]
    lens_radius: float
    shutter_open: float
    shutter_close: float


def _unit(v: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
    return v / np.linalg.norm(v)


def compute_camera_basis(camera: Camera) -> CameraBasis:
    """Derive the viewport geometry for a camera.

    The viewport width at unit distance is 2 * tan(fov / 2) and its height
    is width / aspect_ratio; both are scaled by the focal distance so that
    lens offsets converge at the focal plane.

    Args:
        camera: A validated camera configuration.

    Returns:
        The CameraBasis (float64 NumPy vectors).
    """
    origin = np.array(camera.origin, dtype=np.float64)
    up = np.array(WORLD_UP, dtype=np.float64)
    direction = _unit(np.array(camera.target, dtype=np.float64) - origin)
    roll = math.radians(camera.roll)

    width = 2.0 * math.tan(math.radians(camera.fov) / 2.0)
    height = width / camera.aspect_ratio

    # Perpendicular to direction and up, then rotated clockwise by the roll
    horizontal_unit = _unit(np.cross(direction, up)) * math.cos(roll) - up * math.sin(roll)
    # Points down the image
    vertical_unit = np.cross(direction, horizontal_unit)

    horizontal = horizontal_unit * width * camera.focal_distance
    vertical = vertical_unit * height * camera.focal_distance
    upper_left = direction * camera.focal_distance - horizontal / 2.0 - vertical / 2.0

    return CameraBasis(
        origin=origin,
        upper_left=upper_left,
        horizontal_unit=horizontal_unit,
        horizontal=horizontal,
        vertical_unit=vertical_unit,
        vertical=vertical,
        lens_radius=camera.aperture / 2.0,
        shutter_open=float(camera.shutter_open),
        shutter_close=float(camera.shutter_close),
    )


# =============================================================================
# Taichi Fields for Camera State (GPU-accessible)
# =============================================================================

_camera_origin = ti.Vector.field(3, dtype=real, shape=())
_upper_left = ti.Vector.field(3, dtype=real, shape=())
_horizontal_unit = ti.Vector.field(3, dtype=real, shape=())
_horizontal = ti.Vector.field(3, dtype=real, shape=())
_vertical_unit = ti.Vector.field(3, dtype=real, shape=())
_vertical = ti.Vector.field(3, dtype=real, shape=())
_lens_radius = ti.field(dtype=real, shape=())
_shutter_open = ti.field(dtype=real, shape=())
_shutter_close = ti.field(dtype=real, shape=())

# Flag to track if the camera has been set up
_camera_initialized = ti.field(dtype=ti.i32, shape=())


# =============================================================================
# Camera Setup (Python-side, called once per camera configuration)
# =============================================================================


def setup_camera(camera: Camera) -> None:
    """Initialize camera state from configuration.

    Computes the viewport geometry and writes it to Taichi fields. This must
    be called before rendering.

    Args:
        camera: Camera configuration.

    Note:
        This function writes to Taichi fields and should be called from
        Python (not from within a Taichi kernel).
    """
    basis = compute_camera_basis(camera)

    _camera_origin[None] = basis.origin.tolist()
    _upper_left[None] = basis.upper_left.tolist()
    _horizontal_unit[None] = basis.horizontal_unit.tolist()
    _horizontal[None] = basis.horizontal.tolist()
    _vertical_unit[None] = basis.vertical_unit.tolist()
    _vertical[None] = basis.vertical.tolist()
    _lens_radius[None] = basis.lens_radius
    _shutter_open[None] = basis.shutter_open
    _shutter_close[None] = basis.shutter_close
    _camera_initialized[None] = 1


# =============================================================================
# Ray Generation (Taichi-compatible, GPU-callable)
# =============================================================================


@ti.func
def get_ray(u: real, v: real, state: ti.u32):
    """Generate a ray through normalized image coordinates (u, v).

    The ray starts at a random point on the lens and passes through the
    point (u, v) on the viewport at the focal distance. Its time is drawn
    uniformly from the shutter interval.

    The coordinates are normalized:
    - u = 0: left edge of image, u = 1: right edge
    - v = 0: top edge of image, v = 1: bottom edge

    Args:
        u: Horizontal coordinate in [0, 1).
        v: Vertical coordinate in [0, 1).
        state: The caller's random stream state.

    Returns:
        A tuple of (new_state, ray) with a unit-length ray direction.
    """
    s, disk = random_in_unit_disk(state)
    w = disk * _lens_radius[None]
    offset = _horizontal_unit[None] * w.x + _vertical_unit[None] * w.y

    origin = _camera_origin[None] + offset
    direction = tm.normalize(
        _upper_left[None] + _horizontal[None] * u + _vertical[None] * v - offset
    )

    s, xi = random_float(s)
    time0 = _shutter_open[None]
    time1 = _shutter_close[None]
    time = time0
    if time1 > time0:
        time = time0 + (time1 - time0) * xi

    return s, make_ray(origin, direction, time)


# =============================================================================
# Utility Functions
# =============================================================================


def _as_tuple(vec) -> tuple[float, float, float]:
    return (float(vec[0]), float(vec[1]), float(vec[2]))


def get_camera_info() -> dict:
    """Get current camera state for debugging.

    Returns a dictionary with the uploaded viewport geometry that can be
    inspected from Python. Useful for verifying camera setup.

    Returns:
        Dictionary with origin, upper_left, horizontal_unit, horizontal,
        vertical_unit, vertical, lens_radius, shutter_open, shutter_close.

    Raises:
        RuntimeError: If setup_camera() has not been called.
    """
    if _camera_initialized[None] == 0:
        raise RuntimeError("Camera not set up. Call setup_camera() first.")

    return {
        "origin": _as_tuple(_camera_origin[None]),
        "upper_left": _as_tuple(_upper_left[None]),
        "horizontal_unit": _as_tuple(_horizontal_unit[None]),
        "horizontal": _as_tuple(_horizontal[None]),
        "vertical_unit": _as_tuple(_vertical_unit[None]),
        "vertical": _as_tuple(_vertical[None]),
        "lens_radius": float(_lens_radius[None]),
        "shutter_open": float(_shutter_open[None]),
        "shutter_close": float(_shutter_close[None]),
    }
