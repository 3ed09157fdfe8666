"""Host-side material description.

A Material is an immutable value naming one of the closed set of scattering
policies together with its albedo and (for specular and refractive surfaces)
a scalar parameter. Scenes store materials in a table and spheres refer to
them by index, so one material can be shared by any number of spheres.

This module declares no Taichi fields and may be imported before ti.init().

Example:
    >>> from pathtracer.materials.material import Material
    >>> glass = Material.refractive(albedo=(1.0, 1.0, 1.0), index=1.5)
    >>> glass.kind.name
    'REFRACTIVE'
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import IntEnum
from typing import Any


class ScatterKind(IntEnum):
    """Enumeration of supported scattering policies.

    The integer values are stored in the device material table and used for
    dispatch inside the path tracing kernel.
    """

    LAMBERTIAN = 0
    SPHERICAL = 1
    HEMISPHERICAL = 2
    SPECULAR = 3
    REFRACTIVE = 4


# Kinds whose parameter field carries meaning
_PARAMETER_NAMES = {
    ScatterKind.SPECULAR: "fuzziness",
    ScatterKind.REFRACTIVE: "index",
}


@dataclass(frozen=True)
class Material:
    """A surface scattering policy plus its albedo.

    Attributes:
        kind: The scattering policy.
        albedo: Per-channel attenuation applied at every bounce (R, G, B),
            each component in [0, 1].
        parameter: Fuzziness for SPECULAR, index of refraction for
            REFRACTIVE, unused (0) otherwise.
    """

    kind: ScatterKind
    albedo: tuple[float, float, float]
    parameter: float = 0.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", ScatterKind(self.kind))
        object.__setattr__(self, "albedo", _validate_albedo(self.albedo))
        parameter = float(self.parameter)
        if not math.isfinite(parameter):
            raise ValueError(f"Material parameter must be finite, got {parameter}")
        if self.kind == ScatterKind.SPECULAR and parameter < 0.0:
            raise ValueError(f"Fuzziness = {parameter} must be >= 0")
        if self.kind == ScatterKind.REFRACTIVE and parameter <= 0.0:
            raise ValueError(f"Index of refraction = {parameter} must be > 0")
        object.__setattr__(self, "parameter", parameter)

    @classmethod
    def lambertian(cls, albedo: tuple[float, float, float]) -> Material:
        """Diffuse scattering around the normal via a unit-sphere point."""
        return cls(ScatterKind.LAMBERTIAN, albedo)

    @classmethod
    def spherical(cls, albedo: tuple[float, float, float]) -> Material:
        """Diffuse scattering via a point inside the unit ball."""
        return cls(ScatterKind.SPHERICAL, albedo)

    @classmethod
    def hemispherical(cls, albedo: tuple[float, float, float]) -> Material:
        """Diffuse scattering via a ball point flipped into the normal's hemisphere."""
        return cls(ScatterKind.HEMISPHERICAL, albedo)

    @classmethod
    def specular(cls, albedo: tuple[float, float, float], fuzziness: float = 0.0) -> Material:
        """Mirror reflection perturbed by fuzziness (0 is a perfect mirror)."""
        return cls(ScatterKind.SPECULAR, albedo, fuzziness)

    @classmethod
    def refractive(cls, albedo: tuple[float, float, float], index: float = 1.5) -> Material:
        """Dielectric with the given index of refraction."""
        return cls(ScatterKind.REFRACTIVE, albedo, index)

    def to_dict(self) -> dict[str, Any]:
        """Export the material to a dictionary (for JSON serialization)."""
        data: dict[str, Any] = {
            "type": self.kind.name.lower(),
            "albedo": list(self.albedo),
        }
        name = _PARAMETER_NAMES.get(self.kind)
        if name is not None:
            data[name] = self.parameter
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Material:
        """Create a material from a dictionary produced by to_dict().

        Raises:
            ValueError: If the type is unknown or parameters are invalid.
        """
        type_name = str(data.get("type", "")).upper()
        try:
            kind = ScatterKind[type_name]
        except KeyError:
            raise ValueError(f"Unknown material type: {data.get('type')!r}") from None

        albedo_list = data.get("albedo", [0.5, 0.5, 0.5])
        albedo = (albedo_list[0], albedo_list[1], albedo_list[2])
        name = _PARAMETER_NAMES.get(kind)
        if name is None:
            return cls(kind, albedo)
        default = 1.5 if kind == ScatterKind.REFRACTIVE else 0.0
        return cls(kind, albedo, data.get(name, default))


def _validate_albedo(albedo: tuple[float, float, float]) -> tuple[float, float, float]:
    """Check an albedo has three components in [0, 1]."""
    if len(albedo) != 3:
        raise ValueError(f"Albedo must have 3 components, got {albedo!r}")
    result = (float(albedo[0]), float(albedo[1]), float(albedo[2]))
    for i, component in enumerate(result):
        if not 0.0 <= component <= 1.0:
            raise ValueError(
                f"Albedo component {i} = {component} is outside [0, 1]. "
                "This would violate energy conservation."
            )
    return result
