"""Unit tests for the specular scattering policy.

Tests cover:
- Perfect mirror reflection with zero fuzziness
- Fuzzy reflection stays within the perturbation ball
- Absorption of directions below the surface
"""

import math

import numpy as np
import pytest
import taichi as ti


def _scatter_many(incident, normal, fuzziness, n):
    from pathtracer.core.sampler import seed_stream
    from pathtracer.materials.specular import scatter_specular

    directions = ti.Vector.field(3, dtype=ti.f64, shape=n)
    flags = ti.field(dtype=ti.i32, shape=n)

    @ti.kernel
    def test_kernel(d: ti.math.vec3, nrm: ti.math.vec3, fuzz: ti.f64):
        for i in range(n):
            s = seed_stream(ti.cast(31, ti.u32), ti.cast(i, ti.u32), ti.cast(0, ti.u32))
            _, direction, did_scatter = scatter_specular(d, nrm, fuzz, s)
            directions[i] = direction
            flags[i] = did_scatter

    test_kernel(ti.math.vec3(*incident), ti.math.vec3(*normal), fuzziness)
    return directions.to_numpy(), flags.to_numpy()


class TestMirror:
    """Tests for zero-fuzziness reflection."""

    def test_zero_fuzz_is_exact_mirror(self):
        """Test the scattered direction equals the reflected direction."""
        r = 1.0 / math.sqrt(2.0)
        directions, flags = _scatter_many((r, -r, 0.0), (0.0, 1.0, 0.0), 0.0, 16)

        assert np.all(flags == 1)
        np.testing.assert_allclose(directions, np.tile([r, r, 0.0], (16, 1)), atol=1e-6)

    def test_head_on_reflection(self):
        directions, flags = _scatter_many((0.0, 0.0, -1.0), (0.0, 0.0, 1.0), 0.0, 4)
        assert np.all(flags == 1)
        np.testing.assert_allclose(directions, np.tile([0.0, 0.0, 1.0], (4, 1)), atol=1e-6)


class TestFuzzyReflection:
    """Tests for perturbed reflection."""

    def test_fuzzy_directions_near_mirror(self):
        """Test scattered directions are unit length and near the mirror direction."""
        fuzziness = 0.3
        directions, flags = _scatter_many((0.0, -1.0, 0.0), (0.0, 1.0, 0.0), fuzziness, 2048)

        assert np.all(flags == 1)
        np.testing.assert_allclose(np.linalg.norm(directions, axis=1), 1.0, atol=1e-4)
        # Angle to the mirror direction is at most asin(fuzziness)
        cos_to_mirror = directions[:, 1]
        assert cos_to_mirror.min() >= math.sqrt(1.0 - fuzziness**2) - 1e-4
        # Not all identical
        assert np.std(directions[:, 0]) > 0.01

    def test_grazing_fuzzy_reflection_can_be_absorbed(self):
        """Test perturbations below the surface are absorbed with a zero direction."""
        incident = (math.cos(0.05), -math.sin(0.05), 0.0)
        directions, flags = _scatter_many(incident, (0.0, 1.0, 0.0), 1.0, 2048)

        absorbed = flags == 0
        assert absorbed.any()
        assert (~absorbed).any()
        np.testing.assert_allclose(directions[absorbed], 0.0)
        assert np.all(directions[~absorbed][:, 1] > 0.0)

    @pytest.mark.parametrize("fuzziness", [0.0, 0.5])
    def test_scattered_directions_face_the_normal(self, fuzziness):
        directions, flags = _scatter_many((0.6, -0.8, 0.0), (0.0, 1.0, 0.0), fuzziness, 512)
        assert np.all(directions[flags == 1][:, 1] > 0.0)
