"""Progressive renderer for iterative sample accumulation.

This module provides a convenient wrapper around the core renderer that supports:
- Progressive rendering that refines over time
- Batch rendering (multiple SPP per pass)
- Progress callbacks for UI updates
- Easy reset and re-render functionality

Every batch is one pass of the renderer with its own stream salt, so the
samples of different batches are independent, and the whole sequence is
still reproducible from the settings' seed. A single batch of N samples
gives exactly the same image as render() with N samples.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.gpu, default_fp=ti.f64)
    >>> from pathtracer.core.progressive import ProgressiveRenderer
    >>> from pathtracer.core.renderer import RenderSettings
    >>> from pathtracer.scene.demo import create_cover_scene
    >>>
    >>> scene, camera = create_cover_scene(400, 225)
    >>> renderer = ProgressiveRenderer(camera, scene, RenderSettings(400, 225))
    >>> renderer.render(100, batch_size=10)  # Render 100 SPP
    >>> image = renderer.get_image_numpy()
"""

import logging
from collections.abc import Generator
from pathlib import Path
from typing import Optional, Union

import numpy as np
import numpy.typing as npt

from pathtracer.camera.thin_lens import Camera
from pathtracer.core.renderer import (
    ProgressCallback,
    RenderSettings,
    accumulate_pass,
    clear_accumulation,
    get_accumulated_image,
    prepare_render,
)
from pathtracer.preview.export import image_to_uint8, save_png
from pathtracer.scene.manager import Scene

logger = logging.getLogger(__name__)


class ProgressiveRenderer:
    """A progressive renderer that accumulates samples over time.

    The renderer uploads its scene and camera on construction and delegates
    to the global renderer buffers (which are Taichi fields), so only one
    ProgressiveRenderer should be active at a time.

    Attributes:
        camera: The camera being rendered.
        scene: The scene being rendered.
        settings: Image size, depth, distances and seed. Its
            samples_per_pixel is unused; passes choose their own counts.
    """

    def __init__(self, camera: Camera, scene: Scene, settings: RenderSettings) -> None:
        """Initialize the progressive renderer.

        Raises:
            RuntimeError: If the scene exceeds capacity.
        """
        self.camera = camera
        self.scene = scene
        self.settings = settings
        self._sample_count = 0
        self._passes = 0
        prepare_render(camera, scene, settings)

    @property
    def width(self) -> int:
        """Get the image width."""
        return self.settings.width

    @property
    def height(self) -> int:
        """Get the image height."""
        return self.settings.height

    @property
    def sample_count(self) -> int:
        """Get the current number of accumulated samples per pixel."""
        return self._sample_count

    def reset(self) -> None:
        """Reset the accumulator for a new render.

        Clears the color buffer and sample count. The pass counter restarts
        too, so re-rendering after a reset reproduces the same image.
        """
        clear_accumulation()
        self._sample_count = 0
        self._passes = 0

    def _render_batch(self, batch: int) -> None:
        accumulate_pass(self.settings, batch, salt=self._passes)
        self._passes += 1
        self._sample_count += batch
        logger.debug("Pass %d: %d spp, %d accumulated", self._passes, batch, self._sample_count)

    def render(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
        callback: Optional[ProgressCallback] = None,
    ) -> None:
        """Render samples progressively with optional progress callback.

        Accumulates the specified number of samples into the existing buffer.
        Can be called multiple times to continue refining the image.

        Args:
            num_samples: Total number of samples to add.
            batch_size: Number of samples to render before each callback.
                A larger batch size reduces callback overhead but provides
                less frequent updates.
            callback: Optional callback function called after each batch.
                Receives (current_total_samples, target_total_samples).

        Raises:
            ValueError: If batch_size is not positive.
            RuntimeError: If any pixel produced a non-finite color.

        Example:
            >>> def progress(current, target):
            ...     print(f"Progress: {current}/{target} samples")
            >>> renderer.render(100, batch_size=10, callback=progress)
        """
        for current, target in self.render_progressive(num_samples, batch_size):
            if callback is not None:
                callback(current, target)

    def render_progressive(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
    ) -> Generator[tuple[int, int], None, None]:
        """Render samples progressively, yielding progress after each batch.

        This is a generator-based alternative to render() with callbacks,
        useful for integration with asyncio or iterative processing.

        Args:
            num_samples: Total number of samples to add.
            batch_size: Number of samples to render before each yield.

        Yields:
            Tuple of (current_total_samples, target_total_samples).

        Example:
            >>> for current, target in renderer.render_progressive(100, batch_size=10):
            ...     print(f"Progress: {current}/{target} samples")
            ...     # Could update UI, check for cancellation, etc.
        """
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        if num_samples <= 0:
            return

        target_samples = self.sample_count + num_samples

        remaining = num_samples
        while remaining > 0:
            batch = min(batch_size, remaining)
            self._render_batch(batch)
            remaining -= batch
            yield (self.sample_count, target_samples)

    def get_image_numpy(self) -> npt.NDArray[np.float32]:
        """Get the accumulated linear image of shape (height, width, 3)."""
        return get_accumulated_image(self.width, self.height)

    def get_image_uint8(self, gamma: float = 2.0) -> npt.NDArray[np.uint8]:
        """Get the rendered image gamma encoded as 8-bit values."""
        return image_to_uint8(self.get_image_numpy(), gamma=gamma)

    def save_image(self, filepath: Union[str, Path], gamma: float = 2.0) -> None:
        """Save the rendered image to a PNG file.

        Args:
            filepath: Path to save the image (e.g., "output.png").
            gamma: Gamma encoding exponent. Default 2.0 (square root).
        """
        save_png(self.get_image_numpy(), filepath, gamma=gamma)

    def __repr__(self) -> str:
        """Return a string representation of the renderer state."""
        return (
            f"ProgressiveRenderer(width={self.width}, height={self.height}, "
            f"samples={self.sample_count})"
        )
