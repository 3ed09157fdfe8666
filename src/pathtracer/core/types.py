"""Device numeric types shared by every Taichi module.

Scenes mix spheres of radius 1000 with hit tolerances of 0.001. Near such
a sphere one f32 ulp of |origin - center|^2 is larger than the tolerance,
so a bounced ray can find its own surface again. All device math therefore
runs in f64; initialise Taichi with ``ti.init(..., default_fp=ti.f64)`` so
literals and locals use the same precision.
"""

import taichi as ti

real = ti.f64

vec3 = ti.types.vector(3, real)
