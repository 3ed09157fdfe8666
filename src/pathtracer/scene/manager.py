"""Host-side scene description.

A Scene is a plain container of materials and spheres built before
rendering. Materials live in a table and spheres refer to them by index
(material_id), so a material may be shared by any number of spheres. The
scene is uploaded into Taichi fields by pathtracer.scene.intersection.load_scene
and is read-only for the duration of a render.

This module declares no Taichi fields and may be imported before ti.init().

Example:
    >>> from pathtracer.scene.manager import Scene
    >>> scene = Scene()
    >>> red = scene.add_lambertian_material(albedo=(0.8, 0.3, 0.3))
    >>> glass = scene.add_refractive_material(index=1.5)
    >>> scene.add_sphere(center=(0, 0, -1), radius=0.5, material_id=red)
    >>> scene.add_moving_sphere((1, 0, -1), (1, 0.5, -1), 0.0, 1.0, 0.5, glass)
    >>> scene.get_sphere_count()
    2
"""

import math
from dataclasses import dataclass, field
from typing import Any, Optional

from pathtracer.geometry.aabb import BoundingBox, sphere_bounding_box
from pathtracer.geometry.motion import MotionPath
from pathtracer.materials.material import Material


@dataclass
class SphereInfo:
    """Information about a sphere in the scene.

    Attributes:
        sphere_index: The index in the scene's sphere list.
        path: The sphere's center over time.
        radius: The radius of the sphere.
        material_id: The material ID assigned to the sphere.
    """

    sphere_index: int
    path: MotionPath
    radius: float
    material_id: int


@dataclass
class SceneConfig:
    """Configuration for scene serialization.

    Attributes:
        materials: List of material configurations.
        spheres: List of sphere configurations.
    """

    materials: list[dict[str, Any]] = field(default_factory=list)
    spheres: list[dict[str, Any]] = field(default_factory=list)


class Scene:
    """Container of materials and (possibly moving) spheres.

    Attributes:
        materials: The material table; a material's id is its index.
        spheres: SphereInfo for all spheres in the scene.

    Example:
        >>> scene = Scene()
        >>> ground = scene.add_lambertian_material(albedo=(0.5, 0.5, 0.5))
        >>> gold = scene.add_specular_material(albedo=(0.8, 0.6, 0.2), fuzziness=0.3)
        >>> scene.add_sphere((0, -1000, 0), 1000, ground)
        >>> scene.add_sphere((0, 1, 0), 1, gold)
    """

    def __init__(self) -> None:
        """Initialize an empty scene."""
        self.materials: list[Material] = []
        self.spheres: list[SphereInfo] = []

    def clear(self) -> None:
        """Remove all materials and spheres."""
        self.materials.clear()
        self.spheres.clear()

    # =========================================================================
    # Material Management
    # =========================================================================

    def add_material(self, material: Material) -> int:
        """Add a material to the scene's material table.

        Args:
            material: The material to add.

        Returns:
            The material ID (index into the material table).
        """
        if not isinstance(material, Material):
            raise TypeError(f"Expected a Material, got {type(material).__name__}")
        self.materials.append(material)
        return len(self.materials) - 1

    def add_lambertian_material(self, albedo: tuple[float, float, float]) -> int:
        """Add a Lambertian (diffuse) material and return its ID."""
        return self.add_material(Material.lambertian(albedo))

    def add_spherical_material(self, albedo: tuple[float, float, float]) -> int:
        """Add a spherical-diffuse material and return its ID."""
        return self.add_material(Material.spherical(albedo))

    def add_hemispherical_material(self, albedo: tuple[float, float, float]) -> int:
        """Add a hemispherical-diffuse material and return its ID."""
        return self.add_material(Material.hemispherical(albedo))

    def add_specular_material(
        self,
        albedo: tuple[float, float, float],
        fuzziness: float = 0.0,
    ) -> int:
        """Add a specular (mirror-like) material and return its ID.

        Args:
            albedo: The reflective color as (R, G, B), each in [0, 1].
            fuzziness: Perturbation radius. Default is 0 (perfect mirror).

        Raises:
            ValueError: If the albedo is outside [0, 1] or fuzziness < 0.
        """
        return self.add_material(Material.specular(albedo, fuzziness))

    def add_refractive_material(
        self,
        index: float = 1.5,
        albedo: tuple[float, float, float] = (1.0, 1.0, 1.0),
    ) -> int:
        """Add a refractive (glass/water) material and return its ID.

        Args:
            index: Index of refraction. Default is 1.5 (typical glass).
                Common values: Air=1.0, Water=1.33, Glass=1.5, Diamond=2.4
            albedo: The transmission tint. Default is clear (white).

        Raises:
            ValueError: If index <= 0 or the albedo is outside [0, 1].
        """
        return self.add_material(Material.refractive(albedo, index))

    def get_material_count(self) -> int:
        """Get the total number of materials in the scene."""
        return len(self.materials)

    def get_material(self, material_id: int) -> Optional[Material]:
        """Get a material by ID, or None if the ID is invalid."""
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id]
        return None

    # =========================================================================
    # Primitive Management
    # =========================================================================

    def add_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        material_id: int,
    ) -> int:
        """Add a stationary sphere to the scene.

        Args:
            center: The center point of the sphere as (x, y, z).
            radius: The radius of the sphere (positive and finite).
            material_id: The material ID to assign to the sphere.

        Returns:
            The index of the added sphere.

        Raises:
            ValueError: If the radius or material_id is invalid.
        """
        return self._add(MotionPath.fixed(center), radius, material_id)

    def add_moving_sphere(
        self,
        center_start: tuple[float, float, float],
        center_end: tuple[float, float, float],
        time0: float,
        time1: float,
        radius: float,
        material_id: int,
    ) -> int:
        """Add a sphere whose center moves linearly between two keyframes.

        Args:
            center_start: Center at time0.
            center_end: Center at time1.
            time0: First keyframe time.
            time1: Second keyframe time (must differ from time0).
            radius: The radius of the sphere (positive and finite).
            material_id: The material ID to assign to the sphere.

        Returns:
            The index of the added sphere.

        Raises:
            ValueError: If time0 == time1, or the radius or material_id is invalid.
        """
        path = MotionPath.linear(center_start, center_end, time0, time1)
        return self._add(path, radius, material_id)

    def _add(self, path: MotionPath, radius: float, material_id: int) -> int:
        radius = float(radius)
        if not math.isfinite(radius) or radius <= 0.0:
            raise ValueError(f"Sphere radius must be positive and finite, got {radius}")
        if material_id < 0 or material_id >= len(self.materials):
            raise ValueError(f"Invalid material_id: {material_id}")

        info = SphereInfo(
            sphere_index=len(self.spheres),
            path=path,
            radius=radius,
            material_id=material_id,
        )
        self.spheres.append(info)
        return info.sphere_index

    # =========================================================================
    # Convenience Methods (material + sphere in one call)
    # =========================================================================

    def add_lambertian_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        albedo: tuple[float, float, float],
    ) -> tuple[int, int]:
        """Add a sphere with a new Lambertian material.

        Returns:
            A tuple of (sphere_index, material_id).
        """
        material_id = self.add_lambertian_material(albedo)
        return self.add_sphere(center, radius, material_id), material_id

    def add_specular_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        albedo: tuple[float, float, float],
        fuzziness: float = 0.0,
    ) -> tuple[int, int]:
        """Add a sphere with a new specular material.

        Returns:
            A tuple of (sphere_index, material_id).
        """
        material_id = self.add_specular_material(albedo, fuzziness)
        return self.add_sphere(center, radius, material_id), material_id

    def add_refractive_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        index: float = 1.5,
    ) -> tuple[int, int]:
        """Add a sphere with a new clear refractive material.

        Returns:
            A tuple of (sphere_index, material_id).
        """
        material_id = self.add_refractive_material(index)
        return self.add_sphere(center, radius, material_id), material_id

    def get_sphere_count(self) -> int:
        """Get the number of spheres in the scene."""
        return len(self.spheres)

    def bounding_box(self, time0: float = 0.0, time1: float = 1.0) -> Optional[BoundingBox]:
        """Bounds of all spheres over [time0, time1], or None for an empty scene."""
        result = None
        for info in self.spheres:
            box = sphere_bounding_box(info.path, info.radius, time0, time1)
            result = box if result is None else result.merge(box)
        return result

    # =========================================================================
    # Scene Serialization
    # =========================================================================

    def to_config(self) -> SceneConfig:
        """Export the scene to a configuration object.

        Returns:
            A SceneConfig containing all materials and spheres.
        """
        config = SceneConfig()

        for material in self.materials:
            config.materials.append(material.to_dict())

        for sphere in self.spheres:
            sphere_config: dict[str, Any] = {
                "center": list(sphere.path.start),
                "radius": sphere.radius,
                "material_id": sphere.material_id,
            }
            if sphere.path.is_moving:
                sphere_config["center_end"] = list(sphere.path.end)
                sphere_config["time0"] = sphere.path.time0
                sphere_config["time1"] = sphere.path.time1
            config.spheres.append(sphere_config)

        return config

    def from_config(self, config: SceneConfig) -> None:
        """Load a scene from a configuration object.

        Clears the current scene and loads the configuration.

        Args:
            config: The scene configuration to load.

        Raises:
            ValueError: If the configuration contains invalid data.
        """
        self.clear()

        # Load materials first (needed for spheres)
        for mat_config in config.materials:
            self.add_material(Material.from_dict(mat_config))

        for sphere_config in config.spheres:
            center_list = sphere_config.get("center", [0, 0, 0])
            center: tuple[float, float, float] = (
                center_list[0],
                center_list[1],
                center_list[2],
            )
            radius = sphere_config.get("radius", 1.0)
            material_id = sphere_config.get("material_id", 0)
            if "center_end" in sphere_config:
                end_list = sphere_config["center_end"]
                center_end: tuple[float, float, float] = (
                    end_list[0],
                    end_list[1],
                    end_list[2],
                )
                self.add_moving_sphere(
                    center,
                    center_end,
                    sphere_config.get("time0", 0.0),
                    sphere_config.get("time1", 1.0),
                    radius,
                    material_id,
                )
            else:
                self.add_sphere(center, radius, material_id)

    def to_dict(self) -> dict[str, Any]:
        """Export the scene to a dictionary (for JSON serialization).

        Returns:
            A dictionary representation of the scene.
        """
        config = self.to_config()
        return {
            "materials": config.materials,
            "spheres": config.spheres,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Scene":
        """Create a scene from a dictionary.

        Args:
            data: Dictionary with 'materials' and 'spheres' keys.
        """
        scene = cls()
        config = SceneConfig(
            materials=data.get("materials", []),
            spheres=data.get("spheres", []),
        )
        scene.from_config(config)
        return scene

    def __repr__(self) -> str:
        return f"Scene(materials={len(self.materials)}, spheres={len(self.spheres)})"
