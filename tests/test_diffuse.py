"""Unit tests for the diffuse scattering policies.

Tests cover:
- Lambertian, spherical and hemispherical directions stay above the surface
- Normalization of the Lambertian and hemispherical directions
- Cosine weighting of the Lambertian distribution
- Determinism for a given stream state
"""

import numpy as np
import taichi as ti

N = 4096


def _scatter_many(scatter, normal):
    """Scatter N samples about the given normal."""
    from pathtracer.core.sampler import seed_stream

    directions = ti.Vector.field(3, dtype=ti.f64, shape=N)
    flags = ti.field(dtype=ti.i32, shape=N)

    @ti.kernel
    def test_kernel(n: ti.math.vec3):
        for i in range(N):
            s = seed_stream(ti.cast(23, ti.u32), ti.cast(i, ti.u32), ti.cast(0, ti.u32))
            _, direction, did_scatter = scatter(n, s)
            directions[i] = direction
            flags[i] = did_scatter

    test_kernel(ti.math.vec3(*normal))
    return directions.to_numpy(), flags.to_numpy()


class TestLambertian:
    """Tests for scatter_lambertian."""

    def test_always_scatters_unit_directions(self):
        from pathtracer.materials.diffuse import scatter_lambertian

        directions, flags = _scatter_many(scatter_lambertian, (0.0, 1.0, 0.0))
        assert np.all(flags == 1)
        np.testing.assert_allclose(np.linalg.norm(directions, axis=1), 1.0, atol=1e-4)

    def test_directions_in_normal_hemisphere(self):
        from pathtracer.materials.diffuse import scatter_lambertian

        directions, _ = _scatter_many(scatter_lambertian, (0.0, 0.0, 1.0))
        assert np.all(directions[:, 2] >= -1e-5)

    def test_cosine_weighted_mean(self):
        """Test E[cos theta] = 2/3 for a cosine-weighted hemisphere."""
        from pathtracer.materials.diffuse import scatter_lambertian

        directions, _ = _scatter_many(scatter_lambertian, (1.0, 0.0, 0.0))
        assert abs(directions[:, 0].mean() - 2.0 / 3.0) < 0.02
        assert abs(directions[:, 1].mean()) < 0.03
        assert abs(directions[:, 2].mean()) < 0.03


class TestSpherical:
    """Tests for scatter_spherical."""

    def test_directions_in_tangent_ball(self):
        """Test directions are normal + a unit-ball point (not normalized)."""
        from pathtracer.materials.diffuse import scatter_spherical

        normal = np.array([0.0, 1.0, 0.0])
        directions, flags = _scatter_many(scatter_spherical, tuple(normal))
        assert np.all(flags == 1)
        offsets = np.linalg.norm(directions - normal, axis=1)
        assert np.all(offsets <= 1.0 + 1e-5)
        lengths = np.linalg.norm(directions, axis=1)
        assert lengths.max() <= 2.0 + 1e-5
        # Not normalized
        assert np.std(lengths) > 0.1

    def test_mean_direction_is_normal(self):
        from pathtracer.materials.diffuse import scatter_spherical

        directions, _ = _scatter_many(scatter_spherical, (0.0, 1.0, 0.0))
        np.testing.assert_allclose(directions.mean(axis=0), [0.0, 1.0, 0.0], atol=0.03)


class TestHemispherical:
    """Tests for scatter_hemispherical."""

    def test_unit_directions_above_surface(self):
        from pathtracer.materials.diffuse import scatter_hemispherical

        directions, flags = _scatter_many(scatter_hemispherical, (0.0, 0.0, -1.0))
        assert np.all(flags == 1)
        np.testing.assert_allclose(np.linalg.norm(directions, axis=1), 1.0, atol=1e-4)
        # normal + p with p in the normal's hemisphere stays at least 45 degrees up
        assert np.all(directions[:, 2] <= -np.cos(np.pi / 4.0) + 1e-4)


class TestDeterminism:
    """Tests that scattering is a pure function of the stream state."""

    def test_same_state_same_direction(self):
        from pathtracer.materials.diffuse import scatter_lambertian, vec3

        out = ti.Vector.field(3, dtype=ti.f64, shape=2)

        @ti.kernel
        def test_kernel():
            for i in range(2):
                _, d, _flag = scatter_lambertian(vec3(0.0, 1.0, 0.0), ti.cast(987654321, ti.u32))
                out[i] = d

        test_kernel()
        values = out.to_numpy()
        np.testing.assert_array_equal(values[0], values[1])
