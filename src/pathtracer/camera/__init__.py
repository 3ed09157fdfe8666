"""Camera module for view and ray generation.

This module provides the camera model for generating primary rays:

Components:
    thin_lens: Look-at camera with roll, depth of field and a shutter interval

Camera responsibilities:
    - Transform (u, v) image coordinates to world-space rays
    - Sample the lens aperture for depth of field
    - Sample the shutter interval for motion blur

Ray generation uses normalized image coordinates:
    u in [0, 1): left to right across image
    v in [0, 1): top to bottom across image

Importing this package declares Taichi fields; call ti.init() first.
"""

from .thin_lens import (
    Camera,
    CameraBasis,
    compute_camera_basis,
    get_camera_info,
    get_ray,
    setup_camera,
)

__all__ = [
    "Camera",
    "CameraBasis",
    "compute_camera_basis",
    "setup_camera",
    "get_ray",
    "get_camera_info",
]
