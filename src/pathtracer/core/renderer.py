"""Parallel Monte Carlo renderer.

This module turns a scene and a camera into a grid of linear RGB colors.
Every pixel draws samples_per_pixel jittered camera rays, traces one path
per ray and stores the average. Pixels are processed in parallel by a Taichi
kernel; the samples of one pixel run sequentially on that pixel's own random
stream, so the result does not depend on thread scheduling:

    state = seed_stream(seed, y * width + x, pass_index)

Rows are rendered in bands so that a progress callback can be reported
between kernel launches.

The color buffer accumulates a running average over passes, which is what
pathtracer.core.progressive builds on: a pass with k samples updates a pixel
holding the average of n earlier samples to (avg * n + sum) / (n + k).

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.gpu, default_fp=ti.f64)
    >>> from pathtracer.core.renderer import render
    >>> from pathtracer.scene.demo import create_wide_angle_scene
    >>>
    >>> scene, camera = create_wide_angle_scene(200, 100)
    >>> image = render(200, 100, camera, 0.001, float("inf"), 16, 10, scene, seed=1)
    >>> image.shape
    (100, 200, 3)
"""

import logging
import math
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Optional

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from pathtracer.camera.thin_lens import Camera, get_ray, setup_camera
from pathtracer.core.integrator import DEFAULT_MAX_DEPTH, DEFAULT_MIN_DISTANCE, trace_path
from pathtracer.core.sampler import random_float, seed_stream
from pathtracer.core.types import real, vec3
from pathtracer.scene.intersection import load_scene
from pathtracer.scene.manager import Scene

logger = logging.getLogger(__name__)

# Type alias for progress callback
# Callback receives (completed_pixels, total_pixels)
ProgressCallback = Callable[[int, int], None]

# =============================================================================
# Render Settings
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

# Rows per kernel launch between progress callbacks
DEFAULT_ROWS_PER_BATCH = 16


@dataclass
class RenderSettings:
    """Parameters of a render.

    Attributes:
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels (max MAX_IMAGE_HEIGHT).
        samples_per_pixel: Number of camera rays averaged per pixel.
        max_depth: Maximum number of bounces per path.
        min_distance: Smallest accepted hit distance (self-hit epsilon).
        max_distance: Largest accepted hit distance (may be infinite).
        seed: Seed of the per-pixel random streams.
        use_bounds: Whether to cull spheres with their bounding boxes.
        rows_per_batch: Rows rendered per kernel launch.

    Raises:
        ValueError: On construction if any value is out of range.
    """

    width: int
    height: int
    samples_per_pixel: int = 16
    max_depth: int = DEFAULT_MAX_DEPTH
    min_distance: float = DEFAULT_MIN_DISTANCE
    max_distance: float = math.inf
    seed: int = 0
    use_bounds: bool = False
    rows_per_batch: int = DEFAULT_ROWS_PER_BATCH

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Image dimensions must be positive, got {self.width}x{self.height}")
        if self.width > MAX_IMAGE_WIDTH or self.height > MAX_IMAGE_HEIGHT:
            raise ValueError(
                f"Image dimensions ({self.width}x{self.height}) exceed maximum supported "
                f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
            )
        if self.samples_per_pixel <= 0:
            raise ValueError(f"samples_per_pixel must be positive, got {self.samples_per_pixel}")
        if self.max_depth <= 0:
            raise ValueError(f"max_depth must be positive, got {self.max_depth}")
        if math.isnan(self.min_distance) or self.min_distance < 0.0:
            raise ValueError(f"min_distance must be >= 0, got {self.min_distance}")
        if math.isnan(self.max_distance) or self.max_distance <= self.min_distance:
            raise ValueError(
                f"max_distance ({self.max_distance}) must exceed min_distance "
                f"({self.min_distance})"
            )
        if self.rows_per_batch <= 0:
            raise ValueError(f"rows_per_batch must be positive, got {self.rows_per_batch}")

    @property
    def total_pixels(self) -> int:
        return self.width * self.height


# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Running average of all samples per pixel, indexed [x, y] with y = 0 on top
_color_buffer = ti.Vector.field(3, dtype=real, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Samples accumulated per pixel
_sample_count = ti.field(dtype=ti.i32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Pixels whose sample sum was NaN or infinite
_nonfinite_count = ti.field(dtype=ti.i32, shape=())


def clear_accumulation() -> None:
    """Clear the color buffer, the sample counts and the non-finite counter."""
    _color_buffer.fill(0.0)
    _sample_count.fill(0)
    _nonfinite_count[None] = 0


def get_nonfinite_count() -> int:
    """Number of pixel updates whose sample sum was not finite."""
    return int(_nonfinite_count[None])


def get_accumulated_samples(width: int, height: int) -> int:
    """Smallest sample count over the active region."""
    counts = _sample_count.to_numpy()[:width, :height]
    return int(counts.min())


def get_accumulated_image(width: int, height: int) -> npt.NDArray[np.float32]:
    """Get the accumulated image as a NumPy array.

    Args:
        width: Active image width.
        height: Active image height.

    Returns:
        Linear, unclamped colors of shape (height, width, 3), float32, with
        row 0 at the top of the image.
    """
    full_image = _color_buffer.to_numpy()
    image = full_image[:width, :height, :]
    # Transpose from (width, height, 3) to (height, width, 3)
    image = np.transpose(image, (1, 0, 2))
    return np.ascontiguousarray(image, dtype=np.float32)


# =============================================================================
# Rendering Kernel
# =============================================================================


@ti.kernel
def _render_band(
    row_start: ti.i32,
    row_end: ti.i32,
    width: ti.i32,
    height: ti.i32,
    samples_per_pixel: ti.i32,
    max_depth: ti.i32,
    min_distance: real,
    max_distance: real,
    seed: ti.i32,
    salt: ti.i32,
    use_bounds: ti.i32,
):
    """Accumulate samples_per_pixel samples into rows [row_start, row_end)."""
    for x, y in ti.ndrange(width, (row_start, row_end)):
        pixel_index = y * width + x
        state = seed_stream(
            ti.cast(seed, ti.u32), ti.cast(pixel_index, ti.u32), ti.cast(salt, ti.u32)
        )

        total = vec3(0.0, 0.0, 0.0)
        for _ in range(samples_per_pixel):
            state, jitter_u = random_float(state)
            state, jitter_v = random_float(state)
            u = (ti.cast(x, real) + jitter_u) / ti.cast(width, real)
            v = (ti.cast(y, real) + jitter_v) / ti.cast(height, real)

            state, ray = get_ray(u, v, state)
            state, color = trace_path(ray, min_distance, max_distance, max_depth, state, use_bounds)
            total += color

        finite = 1
        for c in ti.static(range(3)):
            if tm.isnan(total[c]) or tm.isinf(total[c]):
                finite = 0
        if finite == 0:
            ti.atomic_add(_nonfinite_count[None], 1)

        n = _sample_count[x, y]
        _color_buffer[x, y] = (_color_buffer[x, y] * ti.cast(n, real) + total) / ti.cast(
            n + samples_per_pixel, real
        )
        _sample_count[x, y] = n + samples_per_pixel


def accumulate_pass(
    settings: RenderSettings,
    samples: int,
    salt: int,
    callback: Optional[ProgressCallback] = None,
) -> None:
    """Add one pass of samples to every pixel.

    The scene and camera must already be uploaded. Rows are rendered in
    bands of settings.rows_per_batch; after each band the callback receives
    the number of pixels completed so far in this pass and the total.

    Args:
        settings: The render settings.
        samples: Samples per pixel in this pass.
        salt: Pass discriminator for the random streams; distinct passes
            must use distinct salts.
        callback: Optional progress callback.

    Raises:
        RuntimeError: If any pixel received a non-finite sample sum.
    """
    width = settings.width
    height = settings.height
    seed = settings.seed % (2**31)

    for row_start in range(0, height, settings.rows_per_batch):
        row_end = min(row_start + settings.rows_per_batch, height)
        _render_band(
            row_start,
            row_end,
            width,
            height,
            samples,
            settings.max_depth,
            settings.min_distance,
            settings.max_distance,
            seed,
            salt % (2**31),
            int(settings.use_bounds),
        )
        logger.debug("Rendered rows %d..%d of %d", row_start, row_end, height)
        if callback is not None:
            callback(row_end * width, settings.total_pixels)

    bad = get_nonfinite_count()
    if bad > 0:
        raise RuntimeError(
            f"{bad} pixel(s) produced non-finite colors; check the scene for "
            "degenerate geometry or materials"
        )


def prepare_render(camera: Camera, scene: Scene, settings: RenderSettings) -> None:
    """Upload the scene and camera and clear the accumulation buffers."""
    aspect = settings.width / settings.height
    if not math.isclose(camera.aspect_ratio, aspect, rel_tol=1e-3):
        logger.warning(
            "Camera aspect ratio %.4f differs from image aspect ratio %.4f; "
            "the image will look stretched",
            camera.aspect_ratio,
            aspect,
        )
    load_scene(scene, camera.shutter_open, camera.shutter_close)
    setup_camera(camera)
    clear_accumulation()


# =============================================================================
# Public Rendering API
# =============================================================================


def render(
    width: int,
    height: int,
    camera: Camera,
    min_distance: float,
    max_distance: float,
    samples_per_pixel: int,
    max_depth: int,
    scene: Scene,
    *,
    seed: int = 0,
    use_bounds: bool = False,
    callback: Optional[ProgressCallback] = None,
    rows_per_batch: int = DEFAULT_ROWS_PER_BATCH,
) -> npt.NDArray[np.float32]:
    """Render a scene to a grid of linear RGB colors.

    Each pixel (x, y) averages samples_per_pixel paths through
    u = (x + jitter) / width, v = (y + jitter) / height. The same seed always
    produces bit-identical output.

    Args:
        width: Image width in pixels.
        height: Image height in pixels.
        camera: The camera to render from.
        min_distance: Smallest accepted hit distance (e.g. 0.001).
        max_distance: Largest accepted hit distance (may be float("inf")).
        samples_per_pixel: Number of paths averaged per pixel.
        max_depth: Maximum number of bounces per path.
        scene: The scene to render; it is not modified.
        seed: Seed of the per-pixel random streams.
        use_bounds: Whether to cull spheres with their bounding boxes.
        callback: Optional progress callback receiving
            (completed_pixels, total_pixels) after each band of rows.
        rows_per_batch: Rows rendered per kernel launch.

    Returns:
        Linear, unclamped colors of shape (height, width, 3), float32, with
        row 0 at the top of the image.

    Raises:
        ValueError: If any setting is out of range.
        RuntimeError: If the scene exceeds capacity or any pixel produced a
            non-finite color.
    """
    settings = RenderSettings(
        width=width,
        height=height,
        samples_per_pixel=samples_per_pixel,
        max_depth=max_depth,
        min_distance=min_distance,
        max_distance=max_distance,
        seed=seed,
        use_bounds=use_bounds,
        rows_per_batch=rows_per_batch,
    )
    return render_with_settings(camera, scene, settings, callback=callback)


def render_with_settings(
    camera: Camera,
    scene: Scene,
    settings: RenderSettings,
    callback: Optional[ProgressCallback] = None,
) -> npt.NDArray[np.float32]:
    """Render with a prebuilt RenderSettings. See render()."""
    logger.info(
        "Rendering %dx%d, %d spp, max depth %d, %d spheres, seed %d",
        settings.width,
        settings.height,
        settings.samples_per_pixel,
        settings.max_depth,
        scene.get_sphere_count(),
        settings.seed,
    )
    start = time.perf_counter()

    prepare_render(camera, scene, settings)
    accumulate_pass(settings, settings.samples_per_pixel, salt=0, callback=callback)
    image = get_accumulated_image(settings.width, settings.height)

    logger.info("Render finished in %.2fs", time.perf_counter() - start)
    return image
