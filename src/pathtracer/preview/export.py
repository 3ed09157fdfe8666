"""Image export utilities for rendered images.

This module provides functions for turning the renderer's linear colors
into displayable 8-bit images and saving them to files.

Encoding:
    encoded = max(linear, 0) ** (1 / gamma)      (gamma 2.0 = square root)
    byte    = min(encoded * 256, 255)             (truncated to uint8)

Scaling by 256 and clamping at 255 gives every byte value an equal-width
bin of linear intensities.

Supported formats:
    - PNG (8-bit via Pillow)

Example:
    >>> from pathtracer.preview.export import save_png
    >>> from pathtracer.core.renderer import render
    >>>
    >>> image = render(200, 100, camera, 0.001, float("inf"), 75, 10, scene)
    >>> save_png(image, "output.png")
"""

from __future__ import annotations

from pathlib import Path

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

# Default encoding exponent; 2.0 encodes with a square root
DEFAULT_GAMMA = 2.0


def gamma_encode(
    image: npt.NDArray[np.float32],
    gamma: float = DEFAULT_GAMMA,
) -> npt.NDArray[np.float32]:
    """Apply gamma encoding to a linear image.

    Negative values are clamped to zero first (to avoid NaN); values above
    one are left unclamped.

    Args:
        image: Linear image array of shape (H, W, 3).
        gamma: Gamma value (default 2.0).

    Returns:
        Gamma encoded image as float32.

    Raises:
        ValueError: If gamma is not positive.
    """
    if gamma <= 0.0:
        raise ValueError(f"Gamma must be positive, got {gamma}")

    image = np.maximum(np.asarray(image, dtype=np.float32), 0.0)
    if gamma == 1.0:
        return image
    return np.power(image, 1.0 / gamma).astype(np.float32)


def image_to_uint8(
    image: npt.NDArray[np.float32],
    *,
    gamma: float = DEFAULT_GAMMA,
) -> npt.NDArray[np.uint8]:
    """Convert a linear float32 image to uint8 for display/export.

    Args:
        image: Linear image array of shape (H, W, 3).
        gamma: Gamma value (default 2.0).

    Returns:
        8-bit image array of shape (H, W, 3) with dtype uint8.

    Raises:
        ValueError: If the image contains NaN values.
    """
    if np.isnan(image).any():
        raise ValueError("Image contains NaN values")
    encoded = gamma_encode(image, gamma)
    return np.minimum(encoded * 256.0, 255.0).astype(np.uint8)


def save_png(
    image: npt.NDArray[np.float32],
    filepath: str | Path,
    *,
    gamma: float = DEFAULT_GAMMA,
) -> None:
    """Save a linear image array as a PNG file.

    Args:
        image: Linear image array of shape (H, W, 3), row 0 at the top.
        filepath: Output file path (should end in .png).
        gamma: Gamma value (default 2.0).

    Raises:
        ValueError: If the image does not have shape (H, W, 3).
    """
    if image.ndim != 3 or image.shape[2] != 3:
        raise ValueError(f"Expected an image of shape (H, W, 3), got {image.shape}")

    image_uint8 = image_to_uint8(image, gamma=gamma)

    # Save using Pillow
    pil_image = PILImage.fromarray(image_uint8)
    pil_image.save(filepath)


def compute_rmse(
    image_a: npt.NDArray[np.floating[npt.NBitBase]],
    image_b: npt.NDArray[np.floating[npt.NBitBase]],
) -> float:
    """Compute root mean squared error between two images.

    Args:
        image_a: First image array.
        image_b: Second image array (must have same shape as image_a).

    Returns:
        RMSE value (lower is more similar).

    Raises:
        ValueError: If image shapes don't match.
    """
    if image_a.shape != image_b.shape:
        raise ValueError(
            f"Image shapes must match: {image_a.shape} vs {image_b.shape}"
        )

    diff = image_a.astype(np.float64) - image_b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))
