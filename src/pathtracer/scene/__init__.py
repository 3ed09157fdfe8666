"""Scene module for scene description and ray-scene queries.

Components:
    manager: Host-side Scene container (material table and spheres)
    intersection: Device-side sphere storage, load_scene() and intersect_scene()
    demo: Ready-made wide angle and cover scenes

Scene data is organized for efficient GPU access:
    - Structure-of-Arrays layout for geometric data
    - Contiguous material ID arrays
    - Per-sphere bounding boxes for optional culling

The intersection and demo modules are not imported here because they
declare Taichi fields (demo through the camera); import them explicitly
after ti.init().
"""

from .manager import Scene, SceneConfig, SphereInfo

__all__ = [
    "Scene",
    "SceneConfig",
    "SphereInfo",
]
