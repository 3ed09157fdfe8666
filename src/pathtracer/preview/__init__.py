"""Preview module for image output.

Components:
    export: Gamma encoding, 8-bit conversion and PNG export

The renderer produces linear, unclamped colors. Before display they are
gamma encoded (square root by default) and quantized to 8 bits.

Example:
    >>> from pathtracer.preview import save_png
    >>> from pathtracer.core.renderer import render
    >>>
    >>> image = render(200, 100, camera, 0.001, float("inf"), 75, 10, scene)
    >>> save_png(image, "output.png", gamma=2.0)
"""

from pathtracer.preview.export import (
    DEFAULT_GAMMA,
    compute_rmse,
    gamma_encode,
    image_to_uint8,
    save_png,
)

__all__ = [
    "DEFAULT_GAMMA",
    "gamma_encode",
    "image_to_uint8",
    "save_png",
    "compute_rmse",
]
