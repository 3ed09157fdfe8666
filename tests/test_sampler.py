"""Unit tests for the counter-based random streams.

Tests cover:
- Stream seeding is a pure function of (seed, index, salt)
- Uniform floats lie in [0, 1) and have the expected moments
- random_range maps onto [lo, hi)
"""

import numpy as np
import taichi as ti


class TestSeedStream:
    """Tests for seed_stream and hash_u32."""

    def test_same_inputs_same_sequence(self):
        """Test that identical seeds reproduce identical draws."""
        from pathtracer.core.sampler import random_float, seed_stream

        out = ti.field(dtype=ti.f64, shape=(2, 8))

        @ti.kernel
        def test_kernel():
            for row in range(2):
                s = seed_stream(ti.cast(7, ti.u32), ti.cast(123, ti.u32), ti.cast(0, ti.u32))
                for k in range(8):
                    s, value = random_float(s)
                    out[row, k] = value

        test_kernel()
        values = out.to_numpy()
        np.testing.assert_array_equal(values[0], values[1])

    def test_different_index_different_sequence(self):
        """Test that neighbouring pixel indices get unrelated streams."""
        from pathtracer.core.sampler import random_float, seed_stream

        out = ti.field(dtype=ti.f64, shape=64)

        @ti.kernel
        def test_kernel():
            for i in range(64):
                s = seed_stream(ti.cast(1, ti.u32), ti.cast(i, ti.u32), ti.cast(0, ti.u32))
                _, value = random_float(s)
                out[i] = value

        test_kernel()
        values = out.to_numpy()
        assert len(np.unique(values)) == 64

    def test_salt_changes_sequence(self):
        """Test that the pass salt decorrelates streams for the same pixel."""
        from pathtracer.core.sampler import random_float, seed_stream

        out = ti.field(dtype=ti.f64, shape=2)

        @ti.kernel
        def test_kernel():
            for salt in range(2):
                s = seed_stream(ti.cast(1, ti.u32), ti.cast(5, ti.u32), ti.cast(salt, ti.u32))
                _, value = random_float(s)
                out[salt] = value

        test_kernel()
        assert out[0] != out[1]

    def test_seeded_state_is_nonzero(self):
        """Test that seeding never yields xorshift's zero fixed point."""
        from pathtracer.core.sampler import seed_stream

        zeros = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            for i in range(4096):
                s = seed_stream(ti.cast(0, ti.u32), ti.cast(i, ti.u32), ti.cast(0, ti.u32))
                if s == 0:
                    ti.atomic_add(zeros[None], 1)

        test_kernel()
        assert zeros[None] == 0


class TestRandomFloat:
    """Tests for random_float and random_range."""

    def test_random_float_range_and_mean(self):
        """Test uniform draws lie in [0, 1) with mean 1/2 and variance 1/12."""
        from pathtracer.core.sampler import random_float, seed_stream

        n = 20000
        out = ti.field(dtype=ti.f64, shape=n)

        @ti.kernel
        def test_kernel():
            for i in range(n):
                s = seed_stream(ti.cast(3, ti.u32), ti.cast(i, ti.u32), ti.cast(0, ti.u32))
                s, _ = random_float(s)
                _, value = random_float(s)
                out[i] = value

        test_kernel()
        values = out.to_numpy()
        assert values.min() >= 0.0
        assert values.max() < 1.0
        assert abs(values.mean() - 0.5) < 0.02
        assert abs(values.var() - 1.0 / 12.0) < 0.01

    def test_sequential_draws_differ(self):
        """Test that a stream advances between draws."""
        from pathtracer.core.sampler import random_float, seed_stream

        out = ti.field(dtype=ti.f64, shape=16)

        @ti.kernel
        def test_kernel():
            s = seed_stream(ti.cast(9, ti.u32), ti.cast(0, ti.u32), ti.cast(0, ti.u32))
            for k in ti.static(range(16)):
                s, value = random_float(s)
                out[k] = value

        test_kernel()
        values = out.to_numpy()
        assert len(np.unique(values)) == 16

    def test_random_range_bounds(self):
        """Test random_range maps draws into [lo, hi)."""
        from pathtracer.core.sampler import random_range, seed_stream

        n = 4096
        out = ti.field(dtype=ti.f64, shape=n)

        @ti.kernel
        def test_kernel():
            for i in range(n):
                s = seed_stream(ti.cast(11, ti.u32), ti.cast(i, ti.u32), ti.cast(0, ti.u32))
                _, value = random_range(s, -2.0, 3.0)
                out[i] = value

        test_kernel()
        values = out.to_numpy()
        assert values.min() >= -2.0
        assert values.max() < 3.0
        assert abs(values.mean() - 0.5) < 0.1
