"""Counter-based random streams for reproducible parallel sampling.

Taichi's built-in ``ti.random()`` keeps one generator per hardware thread,
so the numbers a pixel receives depend on how the runtime schedules loop
iterations. This module instead derives an independent stream for every
parallel task from a global seed, the task index, and a salt:

    state = seed_stream(seed, pixel_index, pass_index)
    state, xi = random_float(state)

The state is a single u32 that is threaded explicitly through every
sampling function, which keeps all device code pure: the same seed always
produces bit-identical images regardless of thread count or backend
scheduling.

The stream itself is xorshift32, seeded through a Wang integer hash so that
neighbouring task indices start from uncorrelated states.

Example:
    >>> @ti.kernel
    ... def noise(seed: ti.i32):
    ...     for i in range(n):
    ...         state = seed_stream(ti.cast(seed, ti.u32), ti.cast(i, ti.u32), 0)
    ...         state, value = random_float(state)
    ...         out[i] = value
"""

import taichi as ti

from pathtracer.core.types import real

# Fallback state used when hashing lands on zero (xorshift's fixed point)
NONZERO_STATE = 0x6D2B79F5

# 2^-24, maps the top 24 bits of a u32 into [0, 1)
INV_2_24 = 1.0 / 16777216.0


@ti.func
def hash_u32(key: ti.u32) -> ti.u32:
    """Thomas Wang's 32-bit integer hash.

    Args:
        key: The value to hash.

    Returns:
        A well-mixed u32.
    """
    k = (key ^ ti.cast(61, ti.u32)) ^ (key >> 16)
    k = k * ti.cast(9, ti.u32)
    k = k ^ (k >> 4)
    k = k * ti.cast(0x27D4EB2D, ti.u32)
    k = k ^ (k >> 15)
    return k


@ti.func
def seed_stream(seed: ti.u32, index: ti.u32, salt: ti.u32) -> ti.u32:
    """Derive the initial state of an independent random stream.

    Args:
        seed: The global render seed.
        index: The task index (typically the linear pixel index).
        salt: Extra discriminator, e.g. the progressive pass number.

    Returns:
        A non-zero u32 state for ``next_u32``.
    """
    state = hash_u32(seed ^ hash_u32(index ^ hash_u32(salt)))
    if state == 0:
        state = ti.cast(NONZERO_STATE, ti.u32)
    return state


@ti.func
def next_u32(state: ti.u32) -> ti.u32:
    """Advance a xorshift32 state by one step."""
    x = state
    x = x ^ (x << 13)
    x = x ^ (x >> 17)
    x = x ^ (x << 5)
    return x


@ti.func
def random_float(state: ti.u32):
    """Draw a uniform float in [0, 1).

    Args:
        state: The current stream state.

    Returns:
        A tuple of (new_state, value).
    """
    new_state = next_u32(state)
    value = ti.cast(new_state >> 8, real) * INV_2_24
    return new_state, value


@ti.func
def random_range(state: ti.u32, lo: real, hi: real):
    """Draw a uniform float in [lo, hi).

    Returns:
        A tuple of (new_state, value).
    """
    new_state, xi = random_float(state)
    return new_state, lo + (hi - lo) * xi
