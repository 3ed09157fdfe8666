"""Motion curves: positions as a function of time.

A primitive's center is described by a curve that is either fixed or moves
linearly between two keyframes. The renderer evaluates the curve at each
ray's shutter time, so a moving sphere is smeared across the shutter
interval (motion blur).

Two representations are provided:
    - MotionPath: host-side description used when building scenes and
      computing bounding boxes (NumPy).
    - MotionCurve: the Taichi struct evaluated inside kernels.

Evaluation extrapolates linearly outside the keyframe window.
"""

from dataclasses import dataclass

import numpy as np
import numpy.typing as npt
import taichi as ti

from pathtracer.core.types import real, vec3


@ti.dataclass
class MotionCurve:
    """Device-side motion curve.

    A curve with time0 == time1 is constant and always evaluates to start.

    Attributes:
        start: Position at time0.
        end: Position at time1.
        time0: First keyframe time.
        time1: Second keyframe time.
    """

    start: vec3
    end: vec3
    time0: real
    time1: real


@ti.func
def curve_at(curve: MotionCurve, time: real) -> vec3:
    """Evaluate a motion curve at the given time.

    Args:
        curve: The curve to evaluate.
        time: The evaluation time (usually a ray's shutter time).

    Returns:
        The interpolated (or extrapolated) position.
    """
    result = curve.start
    if curve.time1 != curve.time0:
        alpha = (time - curve.time0) / (curve.time1 - curve.time0)
        result = curve.start + (curve.end - curve.start) * alpha
    return result


@dataclass(frozen=True)
class MotionPath:
    """Host-side description of a primitive's center over time.

    Use MotionPath.fixed() for stationary objects and MotionPath.linear()
    for objects moving between two keyframes.

    Attributes:
        start: Position at time0 (x, y, z).
        end: Position at time1 (x, y, z). Equal to start for fixed paths.
        time0: First keyframe time.
        time1: Second keyframe time. Equal to time0 for fixed paths.
    """

    start: tuple[float, float, float]
    end: tuple[float, float, float]
    time0: float = 0.0
    time1: float = 0.0

    @classmethod
    def fixed(cls, point: tuple[float, float, float]) -> "MotionPath":
        """Create a stationary path."""
        p = _as_point(point)
        return cls(start=p, end=p, time0=0.0, time1=0.0)

    @classmethod
    def linear(
        cls,
        start: tuple[float, float, float],
        end: tuple[float, float, float],
        time0: float,
        time1: float,
    ) -> "MotionPath":
        """Create a path moving linearly from start (at time0) to end (at time1).

        Raises:
            ValueError: If time0 == time1 (the velocity would be undefined).
        """
        if time0 == time1:
            raise ValueError(
                f"Keyframe times must differ for a moving path (got {time0} and {time1})"
            )
        return cls(start=_as_point(start), end=_as_point(end), time0=time0, time1=time1)

    @property
    def is_moving(self) -> bool:
        """Whether the path has two distinct keyframe times."""
        return self.time0 != self.time1

    def at(self, time: float) -> npt.NDArray[np.float64]:
        """Evaluate the path at the given time (host-side).

        Mirrors curve_at(): constant paths return start, moving paths
        interpolate and extrapolate linearly.
        """
        start = np.array(self.start, dtype=np.float64)
        if not self.is_moving:
            return start
        end = np.array(self.end, dtype=np.float64)
        alpha = (time - self.time0) / (self.time1 - self.time0)
        return start + (end - start) * alpha


def _as_point(value: tuple[float, float, float]) -> tuple[float, float, float]:
    """Validate and normalize a 3-component point to a float tuple."""
    if len(value) != 3:
        raise ValueError(f"Expected a 3-component point, got {value!r}")
    point = (float(value[0]), float(value[1]), float(value[2]))
    if not all(np.isfinite(point)):
        raise ValueError(f"Point components must be finite, got {point}")
    return point
